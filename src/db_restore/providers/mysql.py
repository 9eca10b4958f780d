"""Async MySQL provider.

Provides ``MysqlProvider`` using SQLAlchemy's async engine with the
``aiomysql`` driver.  Works on the connection's current database.

Usage:
    from db_restore.providers.mysql import MysqlProvider

    async with MysqlProvider("mysql://root:pw@localhost:3306/app") as provider:
        tables = await provider.list_tables()
"""

from typing import Any

from sqlalchemy.engine import URL

from db_restore.providers.sql import SQLAlchemyProvider
from db_restore.schema.models import Column

CONNECT_TIMEOUT_SECONDS = 10


def normalize_url(database_url: str) -> str:
    """Rewrite ``mysql://`` to the aiomysql driver.

    Example:
        >>> normalize_url("mysql://root@localhost/app")
        'mysql+aiomysql://root@localhost/app'
    """
    if database_url.startswith("mysql://"):
        return "mysql+aiomysql://" + database_url[len("mysql://"):]
    return database_url


class MysqlProvider(SQLAlchemyProvider):
    """MySQL implementation of the ``DatabaseProvider`` protocol.

    ``reset_sequences`` is inherited as a no-op: InnoDB moves
    ``AUTO_INCREMENT`` past any explicitly inserted key.
    """

    name = "mysql"
    json_types = frozenset({"json"})

    disable_fk_sql = "SET FOREIGN_KEY_CHECKS = 0"
    enable_fk_sql = "SET FOREIGN_KEY_CHECKS = 1"

    def __init__(self, database_url: str | URL, **engine_kwargs: Any) -> None:
        if isinstance(database_url, str):
            database_url = normalize_url(database_url)
        engine_kwargs.setdefault("connect_args", {"connect_timeout": CONNECT_TIMEOUT_SECONDS})
        super().__init__(database_url, **engine_kwargs)

    async def list_tables(self) -> list[str]:
        rows = await self._fetch_all(
            """
            SELECT TABLE_NAME AS table_name
            FROM information_schema.tables
            WHERE table_schema = DATABASE()
              AND table_type = 'BASE TABLE'
            ORDER BY TABLE_NAME
            """,
            action="listing tables",
        )
        return [r["table_name"] for r in rows]

    async def list_columns(self, table: str) -> list[Column]:
        rows = await self._fetch_all(
            """
            SELECT COLUMN_NAME AS column_name, DATA_TYPE AS data_type
            FROM information_schema.columns
            WHERE table_schema = DATABASE()
              AND table_name = :table
            ORDER BY ORDINAL_POSITION
            """,
            {"table": table},
            action=f"listing columns of {table}",
        )
        return [Column(name=r["column_name"], type=r["data_type"]) for r in rows]

    async def list_primary_key_columns(self, table: str) -> list[str]:
        rows = await self._fetch_all(
            """
            SELECT COLUMN_NAME AS column_name
            FROM information_schema.key_column_usage
            WHERE table_schema = DATABASE()
              AND table_name = :table
              AND constraint_name = 'PRIMARY'
            ORDER BY ORDINAL_POSITION
            """,
            {"table": table},
            action=f"listing primary key of {table}",
        )
        return [r["column_name"] for r in rows]

    def _conflict_clause(self, columns: list[Column], primary_key_columns: list[str]) -> str:
        updates = [
            f"{self.quote(c.name)} = VALUES({self.quote(c.name)})"
            for c in columns
            if c.name not in primary_key_columns
        ]
        if not updates:
            # Key-only table: turn the duplicate into a no-op
            key = self.quote(primary_key_columns[0])
            updates = [f"{key} = {key}"]
        return f" ON DUPLICATE KEY UPDATE {', '.join(updates)}"
