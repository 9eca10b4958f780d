"""Shared SQLAlchemy async implementation of the provider contract.

Each backend subclasses ``SQLAlchemyProvider`` and supplies its catalog
queries and dialect-specific statements.  Everything else -- connection
lifetime, error translation, identifier quoting, batched writes and value
normalization -- lives here.

The provider holds a single connection for its whole lifetime so that
session-scoped settings (foreign key enforcement) apply to every later
statement.  Each operation runs in its own transaction on that connection.

Usage:
    async with SqliteProvider("app.db") as provider:
        tables = await provider.list_tables()
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Any, AsyncIterator
from uuid import UUID

from sqlalchemy import text
from sqlalchemy.engine import URL
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

from db_restore.errors import ProviderConnectionError, QueryError, WriteError
from db_restore.schema.models import Column

logger = logging.getLogger(__name__)

_DURATION_RE = re.compile(r"^(-)?(\d+):(\d{2}):(\d{2})(?:\.(\d{1,6}))?$")


def format_duration(value: timedelta) -> str:
    """Render a duration as ``[-]HH:MM:SS[.ffffff]`` with unbounded hours.

    Both PostgreSQL ``interval`` and MySQL ``TIME`` accept this form.

    Examples:
        >>> format_duration(timedelta(days=1, hours=2))
        '26:00:00'
        >>> format_duration(timedelta(hours=-1, microseconds=-500))
        '-01:00:00.000500'
    """
    micros = value // timedelta(microseconds=1)
    sign = "-" if micros < 0 else ""
    seconds, micros = divmod(abs(micros), 1_000_000)
    minutes, seconds = divmod(seconds, 60)
    hours, minutes = divmod(minutes, 60)
    rendered = f"{sign}{hours:02d}:{minutes:02d}:{seconds:02d}"
    if micros:
        rendered += f".{micros:06d}"
    return rendered


def parse_duration(raw: str) -> timedelta | None:
    """Inverse of :func:`format_duration`; ``None`` if ``raw`` is not a duration."""
    match = _DURATION_RE.match(raw)
    if match is None:
        return None
    sign, hours, minutes, seconds, fraction = match.groups()
    value = timedelta(
        hours=int(hours),
        minutes=int(minutes),
        seconds=int(seconds),
        microseconds=int((fraction or "0").ljust(6, "0")),
    )
    return -value if sign else value


def create_async_engine_pooled(database_url: str | URL, **kwargs: Any) -> AsyncEngine:
    """Create an async SQLAlchemy engine for a provider.

    Default settings:

    - ``pool_pre_ping=True``: Validate the connection before checkout.
    - ``echo=False``: SQL is logged through ``logging`` at DEBUG instead.

    Args:
        database_url: SQLAlchemy URL with an async driver
            (``postgresql+asyncpg``, ``mysql+aiomysql``, ``sqlite+aiosqlite``).
        **kwargs: Forwarded to ``create_async_engine``; override defaults.

    Returns:
        Configured ``AsyncEngine``.  No connection is opened yet.
    """
    defaults: dict[str, Any] = {
        "pool_pre_ping": True,
        "echo": False,
    }
    merged = {**defaults, **kwargs}
    return create_async_engine(database_url, **merged)


class SQLAlchemyProvider(ABC):
    """Base class for SQLAlchemy-backed providers.

    Subclasses implement ``list_tables``, ``list_columns`` and
    ``list_primary_key_columns`` and set the ``*_sql`` class attributes.

    Args:
        database_url: SQLAlchemy URL with an async driver.
        **engine_kwargs: Forwarded to ``create_async_engine_pooled``.
    """

    #: Human-readable backend name used in error messages
    name: str = "sql"

    #: Column type names (lower case) holding JSON documents
    json_types: frozenset[str] = frozenset()

    #: Whether the driver binds Python lists to native array columns
    native_arrays: bool = False

    #: Placed between the column list and VALUES, e.g. to override identities
    insert_override: str = ""

    disable_fk_sql: str = ""
    enable_fk_sql: str = ""

    def __init__(self, database_url: str | URL, **engine_kwargs: Any) -> None:
        self._engine: AsyncEngine = create_async_engine_pooled(database_url, **engine_kwargs)
        self._conn: AsyncConnection | None = None

    # ------------------------------------------------------------------
    # Connection lifetime
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open the provider's connection.  No-op if already connected.

        Raises:
            ProviderConnectionError: If the database cannot be reached.
        """
        if self._conn is not None:
            return
        try:
            self._conn = await self._engine.connect()
        except (DBAPIError, OSError) as e:
            raise ProviderConnectionError(
                f"Failed to connect to {self.name} database: {e}"
            ) from e
        logger.debug("Connected to %s database", self.name)

    async def close(self) -> None:
        """Close the connection and dispose of the engine."""
        if self._conn is not None:
            await self._conn.close()
            self._conn = None
        await self._engine.dispose()

    async def __aenter__(self) -> "SQLAlchemyProvider":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _connection(self) -> AsyncConnection:
        if self._conn is None:
            raise ProviderConnectionError(
                f"{self.name} provider is not connected. Call connect() first."
            )
        return self._conn

    @asynccontextmanager
    async def _transaction(
        self, action: str, error_cls: type[QueryError] = QueryError
    ) -> AsyncIterator[AsyncConnection]:
        """Run a block in a transaction, translating driver errors.

        Args:
            action: Description for error messages (e.g. ``"reading users"``).
            error_cls: Error raised for statement failures.
        """
        conn = self._connection()
        try:
            async with conn.begin():
                yield conn
        except DBAPIError as e:
            if e.connection_invalidated:
                raise ProviderConnectionError(
                    f"Lost {self.name} connection while {action}: {e.orig}"
                ) from e
            raise error_cls(f"Failed {action}: {e.orig}") from e
        except OSError as e:
            raise ProviderConnectionError(
                f"Lost {self.name} connection while {action}: {e}"
            ) from e

    async def _fetch_all(
        self,
        sql: str,
        params: dict[str, Any] | None = None,
        *,
        action: str,
        error_cls: type[QueryError] = QueryError,
    ) -> list[dict[str, Any]]:
        """Execute a query and return its rows as dicts."""
        async with self._transaction(action, error_cls) as conn:
            result = await conn.execute(text(sql), params or {})
            col_names = list(result.keys())
            rows = result.fetchall()
        return [dict(zip(col_names, row)) for row in rows]

    async def _execute(
        self,
        sql: str,
        params: dict[str, Any] | list[dict[str, Any]] | None = None,
        *,
        action: str,
        error_cls: type[QueryError] = WriteError,
    ) -> None:
        """Execute a statement; a list of param dicts runs it once per entry."""
        async with self._transaction(action, error_cls) as conn:
            await conn.execute(text(sql), params or {})

    # ------------------------------------------------------------------
    # SQL building
    # ------------------------------------------------------------------

    def quote(self, identifier: str) -> str:
        """Quote an identifier for this dialect, escaping embedded quotes."""
        return self._engine.dialect.identifier_preparer.quote_identifier(identifier)

    def _placeholder(self, index: int, column: Column) -> str:
        return f":p{index}"

    def _conflict_clause(self, columns: list[Column], primary_key_columns: list[str]) -> str:
        """``ON CONFLICT`` clause shared by PostgreSQL and SQLite."""
        conflict = ", ".join(self.quote(k) for k in primary_key_columns)
        updates = [
            f"{self.quote(c.name)} = excluded.{self.quote(c.name)}"
            for c in columns
            if c.name not in primary_key_columns
        ]
        if updates:
            return f" ON CONFLICT ({conflict}) DO UPDATE SET {', '.join(updates)}"
        return f" ON CONFLICT ({conflict}) DO NOTHING"

    def build_upsert_sql(
        self, table: str, columns: list[Column], primary_key_columns: list[str]
    ) -> str:
        """Build the INSERT statement used by ``upsert()``.

        Parameters are named ``p0``, ``p1``, ... in column order so that
        column names never have to be valid bind parameter names.
        """
        col_list = ", ".join(self.quote(c.name) for c in columns)
        placeholders = ", ".join(self._placeholder(i, c) for i, c in enumerate(columns))
        sql = (
            f"INSERT INTO {self.quote(table)} ({col_list}){self.insert_override} "
            f"VALUES ({placeholders})"
        )
        if primary_key_columns:
            sql += self._conflict_clause(columns, primary_key_columns)
        return sql

    # ------------------------------------------------------------------
    # Value conversion
    # ------------------------------------------------------------------

    def _normalize_value(self, value: Any, data_type: str) -> Any:
        """Convert a fetched value into something the codec understands.

        Decimals and UUIDs become strings (exact digits preserved), dates and
        times become ISO strings, durations become ``HH:MM:SS`` and JSON
        column text becomes Python data.
        """
        if value is None:
            return None
        if isinstance(value, memoryview):
            return bytes(value)
        if isinstance(value, (Decimal, UUID)):
            return str(value)
        if isinstance(value, datetime):
            return value
        if isinstance(value, (date, time)):
            return value.isoformat()
        if isinstance(value, timedelta):
            return format_duration(value)
        if data_type.lower() in self.json_types and isinstance(value, (str, bytes)):
            return json.loads(value)
        return value

    def _bind_datetime(self, value: datetime, data_type: str) -> Any:
        """Bind an instant.  Default: naive UTC for columns without zones."""
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def _bind_value(self, value: Any, data_type: str) -> Any:
        """Convert a decoded value into a driver parameter for ``data_type``."""
        if value is None:
            return None
        if data_type.lower() in self.json_types:
            return json.dumps(value)
        if isinstance(value, dict) or (isinstance(value, list) and not self.native_arrays):
            return json.dumps(value)
        if isinstance(value, datetime):
            return self._bind_datetime(value, data_type)
        return value

    # ------------------------------------------------------------------
    # Provider contract
    # ------------------------------------------------------------------

    @abstractmethod
    async def list_tables(self) -> list[str]: ...

    @abstractmethod
    async def list_columns(self, table: str) -> list[Column]: ...

    @abstractmethod
    async def list_primary_key_columns(self, table: str) -> list[str]: ...

    async def read_all_rows(self, table: str) -> list[dict[str, Any]]:
        """Full-table scan with values normalized for encoding."""
        types = {c.name: c.type for c in await self.list_columns(table)}
        rows = await self._fetch_all(
            f"SELECT * FROM {self.quote(table)}", action=f"reading {table}"
        )
        return [
            {k: self._normalize_value(v, types.get(k, "")) for k, v in row.items()}
            for row in rows
        ]

    def _truncate_sql(self, table: str) -> str:
        return f"TRUNCATE TABLE {self.quote(table)}"

    async def truncate(self, table: str) -> None:
        await self._execute(self._truncate_sql(table), action=f"truncating {table}")

    async def upsert(
        self,
        table: str,
        columns: list[Column],
        primary_key_columns: list[str],
        rows: list[dict[str, Any]],
    ) -> None:
        """Insert-or-update ``rows`` in a single executemany call."""
        if not rows or not columns:
            return

        sql = self.build_upsert_sql(table, columns, primary_key_columns)
        params = [
            {f"p{i}": self._bind_value(row.get(c.name), c.type) for i, c in enumerate(columns)}
            for row in rows
        ]
        logger.debug("Writing %d rows to %s", len(rows), table)
        await self._execute(sql, params, action=f"writing rows to {table}")

    async def reset_sequences(self, table: str) -> None:
        """No-op: the backend advances its generators on explicit inserts."""
        return None

    async def disable_foreign_key_enforcement(self) -> None:
        await self._execute(
            self.disable_fk_sql,
            action="disabling foreign key checks",
            error_cls=QueryError,
        )

    async def enable_foreign_key_enforcement(self) -> None:
        await self._execute(
            self.enable_fk_sql,
            action="enabling foreign key checks",
            error_cls=QueryError,
        )
