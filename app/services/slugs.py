import re
import secrets
import string

_ALPHABET = string.ascii_lowercase + string.digits


def random_token(length: int) -> str:
    """Random lowercase base36 token, e.g. for slug suffixes and ids."""
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def generate_slug(name: str) -> str:
    """
    Derive a URL-safe slug from a business/owner name.

    Non-ASCII letters are dropped, so a fully Arabic name yields a random
    "shop-xxxxx" slug.
    """
    slug = name.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug, flags=re.ASCII)
    slug = re.sub(r"[\s_-]+", "-", slug)
    slug = slug.strip("-")
    return slug or f"shop-{random_token(5)}"


def with_suffix(slug: str) -> str:
    return f"{slug}-{random_token(3)}"


def normalize_slug(slug: str) -> str:
    """Lowercase and keep only [a-z0-9_-]."""
    return re.sub(r"[^a-z0-9_-]", "", slug.lower())
