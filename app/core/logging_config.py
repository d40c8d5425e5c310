import logging

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Attach one stream handler to the root logger; calling twice is a no-op."""
    root = logging.getLogger()
    root.setLevel(level.upper())

    if not any(getattr(h, "_bazchat", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._bazchat = True
        root.addHandler(handler)

    return root
