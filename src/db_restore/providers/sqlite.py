"""Async SQLite provider.

Provides ``SqliteProvider`` using SQLAlchemy's async engine with the
``aiosqlite`` driver.

Usage:
    from db_restore.providers.sqlite import SqliteProvider

    async with SqliteProvider("./dev.db") as provider:
        tables = await provider.list_tables()
"""

from datetime import datetime
from pathlib import Path
from typing import Any

from sqlalchemy.engine import URL

from db_restore.providers.sql import SQLAlchemyProvider
from db_restore.schema.models import Column


class SqliteProvider(SQLAlchemyProvider):
    """SQLite implementation of the ``DatabaseProvider`` protocol.

    SQLite keeps its ``AUTOINCREMENT`` counters in step with explicit
    inserts, so ``reset_sequences`` is inherited as a no-op.

    Args:
        path: Database file path.
        **engine_kwargs: Forwarded to ``create_async_engine_pooled``.
    """

    name = "sqlite"

    disable_fk_sql = "PRAGMA foreign_keys = OFF"
    enable_fk_sql = "PRAGMA foreign_keys = ON"

    def __init__(self, path: str | Path, **engine_kwargs: Any) -> None:
        self.path = str(path)
        url = URL.create("sqlite+aiosqlite", database=self.path)
        super().__init__(url, **engine_kwargs)

    async def list_tables(self) -> list[str]:
        rows = await self._fetch_all(
            "SELECT name FROM sqlite_master "
            "WHERE type = 'table' AND name NOT LIKE 'sqlite_%'",
            action="listing tables",
        )
        return [r["name"] for r in rows]

    async def _table_info(self, table: str) -> list[dict[str, Any]]:
        return await self._fetch_all(
            f"PRAGMA table_info({self.quote(table)})",
            action=f"describing {table}",
        )

    async def list_columns(self, table: str) -> list[Column]:
        return [Column(name=r["name"], type=r["type"]) for r in await self._table_info(table)]

    async def list_primary_key_columns(self, table: str) -> list[str]:
        # pk holds the 1-based position within the key, 0 for non-key columns
        info = [r for r in await self._table_info(table) if r["pk"] > 0]
        return [r["name"] for r in sorted(info, key=lambda r: r["pk"])]

    def _truncate_sql(self, table: str) -> str:
        return f"DELETE FROM {self.quote(table)}"

    def _bind_datetime(self, value: datetime, data_type: str) -> Any:
        # Stored as text; sqlite3's implicit datetime adapter is deprecated
        return value.isoformat(sep=" ")
