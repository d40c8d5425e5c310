import logging
import ssl
from collections.abc import AsyncGenerator
from urllib.parse import urlparse, parse_qs, urlencode, urlunparse, ParseResult

from sqlalchemy import inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.core.config import settings
from app.core.errors import BootstrapFailure

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


# Columns added after the first release. Bootstrap adds whichever are missing.
ADDITIVE_COLUMNS: list[tuple[str, str, str]] = [
    ("profiles", "slug", "TEXT"),
    ("profiles", "description", "TEXT"),
    ("profiles", "meta_description", "TEXT"),
    ("profiles", "faqs", "JSON"),
    ("profiles", "ai_enabled", "BOOLEAN DEFAULT FALSE"),
    ("profiles", "ai_business_info", "TEXT"),
    ("chat_messages", "is_ai", "BOOLEAN DEFAULT FALSE"),
]


def strip_query_params(url: str, drop_keys=("sslmode", "channel_binding")) -> str:
    """asyncpg.connect() rejects libpq-only parameters, so drop them from the URL."""
    p = urlparse(url)
    qs = parse_qs(p.query, keep_blank_values=True)
    for k in list(qs.keys()):
        if k in drop_keys:
            qs.pop(k)
    new_query = urlencode({k: v[0] for k, v in qs.items()})
    newp = ParseResult(
        scheme=p.scheme, netloc=p.netloc, path=p.path,
        params=p.params, query=new_query, fragment=p.fragment
    )
    return urlunparse(newp)


def build_engine_args(database_url: str) -> tuple[str, dict]:
    """Normalize a DATABASE_URL for the async driver and pick engine kwargs."""
    if database_url.startswith("postgresql://") or database_url.startswith("postgres://"):
        database_url = "postgresql+asyncpg://" + database_url.split("://", 1)[1]

    if not database_url.startswith("postgresql+asyncpg://"):
        return database_url, {}

    wants_ssl = parse_qs(urlparse(database_url).query).get("sslmode", [""])[0] in (
        "require", "verify-ca", "verify-full",
    )
    connect_args = {"ssl": ssl.create_default_context()} if wants_ssl else {}
    return strip_query_params(database_url), {
        "connect_args": connect_args,
        "pool_pre_ping": True,
        "pool_recycle": 1800,
        "pool_size": 5,
        "max_overflow": 10,
    }


DATABASE_URL, ENGINE_KWARGS = build_engine_args(settings.DATABASE_URL)

engine = create_async_engine(DATABASE_URL, echo=settings.SQL_ECHO, **ENGINE_KWARGS)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    autoflush=False,
    expire_on_commit=False,
    class_=AsyncSession,
)


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Session factory for work that outlives the request, e.g. background tasks."""
    return AsyncSessionLocal


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


def _existing_columns(sync_conn) -> dict[str, set[str]]:
    inspector = inspect(sync_conn)
    return {
        table: {c["name"] for c in inspector.get_columns(table)}
        for table in {t for t, _, _ in ADDITIVE_COLUMNS}
        if inspector.has_table(table)
    }


async def init_tables(bind: AsyncEngine | None = None) -> None:
    """
    Idempotent schema bootstrap, run on every process start.

    Creates missing tables, then adds any missing columns from ADDITIVE_COLUMNS.
    Column additions are best-effort: a failure is logged and skipped.
    Table creation failure raises BootstrapFailure.
    """
    import app.models  # noqa: F401  registers mappers on Base.metadata

    bind = bind or engine

    try:
        async with bind.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    except (SQLAlchemyError, OSError) as e:
        logger.error("Failed to initialize tables: %s", e)
        raise BootstrapFailure(f"Failed to initialize tables: {e}") from e

    async with bind.connect() as conn:
        existing = await conn.run_sync(_existing_columns)

    for table, column, ddl in ADDITIVE_COLUMNS:
        if column in existing.get(table, set()):
            continue
        try:
            async with bind.begin() as conn:
                await conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {column} {ddl}"))
            logger.info("Added column %s.%s", table, column)
        except SQLAlchemyError as e:
            logger.warning("Could not add column %s.%s: %s", table, column, e)

    logger.info("Database initialized")
