"""Dump and restore of table data.

Provides the dump engine, the schema-drift-aware restore engine, offline
dump validation and archiving of stale dumps.

Usage:
    from db_restore.backup import perform_dump, perform_restore, validate_dump
"""

from db_restore.backup.archive import archive_dump
from db_restore.backup.batch import chunk
from db_restore.backup.dump import perform_dump
from db_restore.backup.files import clear_dump, dump_exists, read_metadata
from db_restore.backup.models import (
    Column,
    DumpMetadata,
    DumpResult,
    DumpValidationResult,
    RestoreResult,
    TableDump,
)
from db_restore.backup.restore import perform_restore
from db_restore.backup.validate import validate_dump

__all__ = [
    "Column",
    "TableDump",
    "DumpMetadata",
    "DumpResult",
    "RestoreResult",
    "DumpValidationResult",
    "perform_dump",
    "perform_restore",
    "validate_dump",
    "archive_dump",
    "clear_dump",
    "dump_exists",
    "read_metadata",
    "chunk",
]
