"""Database providers package.

Provides the ``DatabaseProvider`` Protocol and the SQLAlchemy-backed
implementations for PostgreSQL, MySQL and SQLite.

Usage:
    from db_restore.providers import DatabaseProvider, SqliteProvider
"""

from db_restore.providers.base import DatabaseProvider
from db_restore.providers.mysql import MysqlProvider
from db_restore.providers.postgres import PostgresProvider
from db_restore.providers.sql import SQLAlchemyProvider
from db_restore.providers.sqlite import SqliteProvider

__all__ = [
    "DatabaseProvider",
    "SQLAlchemyProvider",
    "PostgresProvider",
    "MysqlProvider",
    "SqliteProvider",
]
