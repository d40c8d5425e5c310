import asyncio
import logging
from collections.abc import Awaitable, Callable

from app.core.errors import BazChatError

logger = logging.getLogger(__name__)

DEFAULT_SESSION_POLL_SECONDS = 5.0
DEFAULT_MESSAGE_POLL_SECONDS = 3.0


class CancellationToken:
    """Stops future polls. A refresh already in flight is allowed to finish."""

    def __init__(self):
        self._event = asyncio.Event()
        self.task: asyncio.Task | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    async def join(self) -> None:
        """Wait until the poll loop has exited."""
        if self.task is not None:
            await self.task


class Poller:
    """
    Scheduled refresh: run `refresh` now, then every `interval` seconds until cancelled.

    Each refresh is a full refetch. Any error raised by a refresh (network
    failures included) is logged and the next tick tries again.
    """

    def __init__(self, refresh: Callable[[], Awaitable], interval: float, name: str = "poll"):
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.refresh = refresh
        self.interval = interval
        self.name = name

    def start(self, token: CancellationToken | None = None) -> CancellationToken:
        token = token or CancellationToken()
        token.task = asyncio.create_task(self._run(token), name=self.name)
        return token

    async def _run(self, token: CancellationToken) -> None:
        while not token.cancelled:
            try:
                await self.refresh()
            except BazChatError as e:
                logger.warning("%s refresh failed: %s", self.name, e)
            except Exception:
                logger.exception("%s refresh crashed", self.name)

            try:
                await asyncio.wait_for(token.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass
