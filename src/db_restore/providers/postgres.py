"""Async PostgreSQL provider.

Provides ``PostgresProvider`` using SQLAlchemy's async engine with the
``asyncpg`` driver.  Works on the ``public`` schema.

Foreign key enforcement is toggled with ``session_replication_role``, which
requires a superuser (the usual case for a local development database).

Usage:
    from db_restore.providers.postgres import PostgresProvider

    async with PostgresProvider("postgresql://postgres:pw@localhost:5432/app") as provider:
        tables = await provider.list_tables()
"""

from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any

from sqlalchemy.engine import URL

from db_restore.errors import WriteError
from db_restore.providers.sql import SQLAlchemyProvider, parse_duration
from db_restore.schema.models import Column

SCHEMA = "public"

CONNECT_TIMEOUT_SECONDS = 10


def normalize_url(database_url: str) -> str:
    """Rewrite ``postgres://`` and ``postgresql://`` to the asyncpg driver.

    Examples:
        >>> normalize_url("postgres://u:p@localhost/db")
        'postgresql+asyncpg://u:p@localhost/db'
        >>> normalize_url("postgresql+asyncpg://u:p@localhost/db")
        'postgresql+asyncpg://u:p@localhost/db'
    """
    url = database_url
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    if url.startswith("postgresql://"):
        url = "postgresql+asyncpg://" + url[len("postgresql://"):]
    return url


class PostgresProvider(SQLAlchemyProvider):
    """PostgreSQL implementation of the ``DatabaseProvider`` protocol.

    Args:
        database_url: Connection URL.  Accepts ``postgres://``,
            ``postgresql://`` or ``postgresql+asyncpg://`` strings, or a
            SQLAlchemy ``URL``.
        **engine_kwargs: Forwarded to ``create_async_engine_pooled``.
    """

    name = "postgres"
    json_types = frozenset({"json", "jsonb"})
    native_arrays = True
    # Dumped keys win over GENERATED ALWAYS identities
    insert_override = " OVERRIDING SYSTEM VALUE"

    disable_fk_sql = "SET session_replication_role = 'replica'"
    enable_fk_sql = "SET session_replication_role = 'origin'"

    def __init__(self, database_url: str | URL, **engine_kwargs: Any) -> None:
        if isinstance(database_url, str):
            database_url = normalize_url(database_url)
        engine_kwargs.setdefault("connect_args", {"timeout": CONNECT_TIMEOUT_SECONDS})
        super().__init__(database_url, **engine_kwargs)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    async def list_tables(self) -> list[str]:
        rows = await self._fetch_all(
            "SELECT tablename FROM pg_catalog.pg_tables "
            "WHERE schemaname = :schema ORDER BY tablename",
            {"schema": SCHEMA},
            action="listing tables",
        )
        return [r["tablename"] for r in rows]

    async def list_columns(self, table: str) -> list[Column]:
        rows = await self._fetch_all(
            """
            SELECT column_name, data_type
            FROM information_schema.columns
            WHERE table_schema = :schema
              AND table_name = :table
            ORDER BY ordinal_position
            """,
            {"schema": SCHEMA, "table": table},
            action=f"listing columns of {table}",
        )
        return [Column(name=r["column_name"], type=r["data_type"]) for r in rows]

    async def list_primary_key_columns(self, table: str) -> list[str]:
        rows = await self._fetch_all(
            """
            SELECT kcu.column_name
            FROM information_schema.table_constraints tc
            JOIN information_schema.key_column_usage kcu
                ON tc.constraint_name = kcu.constraint_name
                AND tc.table_schema = kcu.table_schema
                AND tc.table_name = kcu.table_name
            WHERE tc.table_schema = :schema
              AND tc.table_name = :table
              AND tc.constraint_type = 'PRIMARY KEY'
            ORDER BY kcu.ordinal_position
            """,
            {"schema": SCHEMA, "table": table},
            action=f"listing primary key of {table}",
        )
        return [r["column_name"] for r in rows]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _placeholder(self, index: int, column: Column) -> str:
        # asyncpg will not bind a Python str to a json/jsonb parameter
        if column.type.lower() in self.json_types:
            return f"CAST(:p{index} AS {column.type.lower()})"
        return f":p{index}"

    def _truncate_sql(self, table: str) -> str:
        return f"TRUNCATE TABLE {self.quote(table)} CASCADE"

    def _bind_datetime(self, value: datetime, data_type: str) -> Any:
        if data_type.lower() == "timestamp with time zone":
            if value.tzinfo is None:
                return value.replace(tzinfo=timezone.utc)
            return value
        return super()._bind_datetime(value, data_type)

    def _bind_value(self, value: Any, data_type: str) -> Any:
        """Parse ISO strings back into the native types asyncpg requires.

        Dumps carry dates, times, durations and numerics as strings; asyncpg binds
        parameters by their declared column type and rejects ``str``.
        """
        if isinstance(value, str):
            kind = data_type.lower()
            if kind == "date":
                return date.fromisoformat(value)
            if kind.startswith("time "):
                return time.fromisoformat(value)
            if kind.startswith("timestamp"):
                value = datetime.fromisoformat(value)
            elif kind in ("numeric", "decimal"):
                return Decimal(value)
            elif kind == "interval":
                duration = parse_duration(value)
                if duration is not None:
                    return duration
        return super()._bind_value(value, data_type)

    async def reset_sequences(self, table: str) -> None:
        """Set every sequence owned by ``table`` to ``max(column) + 1``.

        Covers both ``serial`` columns and ``GENERATED ... AS IDENTITY``
        columns.  Tables without sequences are left alone.
        """
        qualified = self.quote(table)
        rows = await self._fetch_all(
            """
            SELECT column_name
            FROM information_schema.columns
            WHERE table_schema = :schema
              AND table_name = :table
              AND pg_get_serial_sequence(:qualified, column_name) IS NOT NULL
            ORDER BY ordinal_position
            """,
            {"schema": SCHEMA, "table": table, "qualified": qualified},
            action=f"finding sequences of {table}",
            error_cls=WriteError,
        )
        for row in rows:
            column = row["column_name"]
            await self._execute(
                f"SELECT setval(pg_get_serial_sequence(:qualified, :column), "
                f"COALESCE(MAX({self.quote(column)}), 0) + 1, false) "
                f"FROM {qualified}",
                {"qualified": qualified, "column": column},
                action=f"resetting sequence of {table}.{column}",
            )
