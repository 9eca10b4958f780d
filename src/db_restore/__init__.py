"""db-restore: dump a development database to JSON and restore it into a drifted schema.

Usage:
    from db_restore import perform_dump, perform_restore, SqliteProvider

    async with SqliteProvider("dev.db") as provider:
        await perform_dump(provider, "sqlite", "./db-backup")
"""

__version__ = "0.1.0"

from db_restore.backup import (
    DumpResult,
    DumpValidationResult,
    RestoreResult,
    perform_dump,
    perform_restore,
    validate_dump,
)
from db_restore.config import DatabaseProfile, load_profile, save_profile
from db_restore.errors import (
    DbRestoreError,
    DumpNotFoundError,
    ProfileNotFoundError,
    ProviderConnectionError,
    QueryError,
    WriteError,
)
from db_restore.factory import create_provider
from db_restore.providers import (
    DatabaseProvider,
    MysqlProvider,
    PostgresProvider,
    SqliteProvider,
)

__all__ = [
    "__version__",
    # Engines
    "perform_dump",
    "perform_restore",
    "validate_dump",
    "DumpResult",
    "RestoreResult",
    "DumpValidationResult",
    # Providers
    "DatabaseProvider",
    "PostgresProvider",
    "MysqlProvider",
    "SqliteProvider",
    "create_provider",
    # Config
    "DatabaseProfile",
    "load_profile",
    "save_profile",
    # Errors
    "DbRestoreError",
    "ProviderConnectionError",
    "QueryError",
    "WriteError",
    "DumpNotFoundError",
    "ProfileNotFoundError",
]
