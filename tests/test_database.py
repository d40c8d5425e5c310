import logging
import ssl

from sqlalchemy import inspect, text

from app.core import database
from app.core.database import build_engine_args, init_tables, strip_query_params


def _columns(sync_conn, table):
    return {c["name"] for c in inspect(sync_conn).get_columns(table)}


async def test_init_tables_is_idempotent(engine):
    await init_tables(engine)
    await init_tables(engine)

    async with engine.connect() as conn:
        tables = await conn.run_sync(lambda c: set(inspect(c).get_table_names()))
    assert {"users", "profiles", "chat_sessions", "chat_messages"} <= tables


async def test_init_tables_upgrades_legacy_tables(engine):
    async with engine.begin() as conn:
        await conn.execute(text("DROP TABLE chat_messages"))
        await conn.execute(text(
            "CREATE TABLE chat_messages ("
            "id INTEGER PRIMARY KEY, session_id VARCHAR(120), sender VARCHAR(20), "
            "text TEXT, timestamp DATETIME, is_read BOOLEAN)"
        ))
        await conn.execute(text(
            "INSERT INTO chat_messages (session_id, sender, text, is_read) "
            "VALUES ('sess_1', 'customer', 'old row', 0)"
        ))

    await init_tables(engine)

    async with engine.connect() as conn:
        columns = await conn.run_sync(_columns, "chat_messages")
        rows = (await conn.execute(text("SELECT text FROM chat_messages"))).all()
    assert "is_ai" in columns
    assert rows == [("old row",)]


async def test_failed_column_is_logged_and_skipped(engine, monkeypatch, caplog):
    monkeypatch.setattr(
        database,
        "ADDITIVE_COLUMNS",
        [
            ("profiles", "broken", "NOT A TYPE ((("),
            ("profiles", "extra_note", "TEXT"),
        ],
    )

    with caplog.at_level(logging.WARNING, logger="app.core.database"):
        await init_tables(engine)

    assert "Could not add column profiles.broken" in caplog.text
    async with engine.connect() as conn:
        columns = await conn.run_sync(_columns, "profiles")
    assert "extra_note" in columns
    assert "broken" not in columns


def test_strip_query_params():
    url = "postgresql+asyncpg://u:p@host/db?sslmode=require&channel_binding=require&application_name=bazchat"
    assert strip_query_params(url) == "postgresql+asyncpg://u:p@host/db?application_name=bazchat"


def test_build_engine_args_postgres():
    url, kwargs = build_engine_args("postgres://u:p@host/db?sslmode=require")

    assert url == "postgresql+asyncpg://u:p@host/db"
    assert isinstance(kwargs["connect_args"]["ssl"], ssl.SSLContext)
    assert kwargs["pool_pre_ping"] is True


def test_build_engine_args_postgres_without_ssl():
    url, kwargs = build_engine_args("postgresql://u:p@localhost/db")

    assert url == "postgresql+asyncpg://u:p@localhost/db"
    assert kwargs["connect_args"] == {}


def test_build_engine_args_leaves_other_drivers_alone():
    assert build_engine_args("sqlite+aiosqlite:///./bazchat.db") == ("sqlite+aiosqlite:///./bazchat.db", {})
