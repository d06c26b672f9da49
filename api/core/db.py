"""
Async database access helpers (raw SQL) using asyncpg.

This module owns the connection pool. FastAPI initializes it on startup and
closes it on shutdown (see `api/main.py`).

SQL parameter style:
- asyncpg uses positional placeholders: $1, $2, $3, ...

Driver failures never leave this module as asyncpg exceptions: they are
translated into `PersistenceError` (or `ConflictError` for foreign-key
violations) so services and routers only deal with the shared taxonomy.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit

import asyncpg

from . import settings
from .errors import ConflictError, PersistenceError

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA_FILE = Path(__file__).with_name("schema.sql")

_pool: asyncpg.Pool | None = None

_DRIVER_ERRORS = (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError)


def _sanitize_database_url(url: str) -> str:
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def database_url() -> str:
    """
    DATABASE_URL wins; otherwise build a DSN from the DB_* variables.
    """
    url = settings.env_str("DATABASE_URL", "")
    if url:
        return _sanitize_database_url(url)

    host = settings.env_str("DB_HOST", "localhost")
    port = settings.env_int("DB_PORT", 5432)
    user = quote(settings.env_str("DB_USER", "postgres"), safe="")
    password = quote(settings.env_str("DB_PASSWORD", ""), safe="")
    name = settings.env_str("DB_NAME", "postgres")
    credentials = f"{user}:{password}" if password else user
    return f"postgresql://{credentials}@{host}:{port}/{name}"


def schema_file() -> Path:
    raw = settings.env_str("SCHEMA_FILE", "")
    return Path(raw) if raw else DEFAULT_SCHEMA_FILE


def _translate(exc: BaseException, action: str) -> PersistenceError:
    if isinstance(exc, asyncpg.ForeignKeyViolationError):
        return ConflictError(f"{action} violates a foreign-key reference.")
    return PersistenceError(f"{action} failed: {type(exc).__name__}")


async def init_pool() -> None:
    global _pool
    if _pool is not None:
        return None
    try:
        _pool = await asyncpg.create_pool(
            dsn=database_url(),
            min_size=settings.env_int("DB_POOL_MIN", 1),
            max_size=settings.env_int("DB_POOL_MAX", 5),
            command_timeout=settings.env_float("DB_COMMAND_TIMEOUT_S", 30.0),
        )
    except _DRIVER_ERRORS as exc:
        raise _translate(exc, "Connecting to the database") from exc
    logger.info("db_pool_ready")


async def close_pool() -> None:
    global _pool
    if _pool is None:
        return None
    await _pool.close()
    _pool = None
    logger.info("db_pool_closed")


def pool() -> asyncpg.Pool:
    if _pool is None:
        raise PersistenceError("DB pool is not initialized. Call init_pool() on startup.")
    return _pool


def _record_to_dict(record: asyncpg.Record) -> dict[str, Any]:
    return dict(record)


async def fetch_one(sql: str, *args: Any, conn: asyncpg.Connection | None = None) -> dict[str, Any] | None:
    """
    Run a query and return a single row as a dict (or None).
    """
    executor = conn if conn is not None else pool()
    try:
        row = await executor.fetchrow(sql, *args)
    except _DRIVER_ERRORS as exc:
        raise _translate(exc, "Query") from exc
    return _record_to_dict(row) if row is not None else None


async def fetch_all(sql: str, *args: Any, conn: asyncpg.Connection | None = None) -> list[dict[str, Any]]:
    """
    Run a query and return all rows as a list of dicts.
    """
    executor = conn if conn is not None else pool()
    try:
        rows = await executor.fetch(sql, *args)
    except _DRIVER_ERRORS as exc:
        raise _translate(exc, "Query") from exc
    return [_record_to_dict(r) for r in rows]


async def execute(sql: str, *args: Any, conn: asyncpg.Connection | None = None) -> None:
    """
    Run a statement (INSERT/UPDATE/DELETE/DDL). No result returned.
    """
    executor = conn if conn is not None else pool()
    try:
        await executor.execute(sql, *args)
    except _DRIVER_ERRORS as exc:
        raise _translate(exc, "Statement") from exc


@asynccontextmanager
async def transaction() -> AsyncIterator[asyncpg.Connection]:
    """
    Yield a pooled connection inside a transaction.

    The transaction rolls back on any exception, including request
    cancellation, so an aborted request leaves no partial write.
    """
    try:
        async with pool().acquire() as conn:
            async with conn.transaction():
                yield conn
    except _DRIVER_ERRORS as exc:
        raise _translate(exc, "Transaction") from exc


async def run_schema_file(path: Path | None = None) -> None:
    """
    Execute the DDL script once at startup. The script must be idempotent.
    """
    path = path or schema_file()
    try:
        sql = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise PersistenceError(f"Cannot read schema file {path}.") from exc
    await execute(sql)
    logger.info("schema_applied file=%s", path)
