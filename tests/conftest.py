"""Shared fixtures for db-restore tests."""

import sqlite3
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock

import pytest

from db_restore.backup.files import write_metadata, write_table_dump
from db_restore.backup.models import DumpMetadata, TableDump
from db_restore.constants import DUMP_FORMAT_VERSION
from db_restore.schema.models import Column


# ------------------------------------------------------------------
# Helper: mock provider
# ------------------------------------------------------------------


def make_mock_provider(tables: dict[str, dict[str, Any]] | None = None) -> AsyncMock:
    """Create an AsyncMock provider backed by an in-memory table layout.

    Args:
        tables: mapping of table name -> {"columns": [Column], "primary_keys":
            [str], "rows": [dict]}.  Missing keys default to empty lists.
    """
    tables = tables or {}
    provider = AsyncMock()

    provider.list_tables = AsyncMock(return_value=list(tables))
    provider.list_columns = AsyncMock(
        side_effect=lambda table: list(tables[table].get("columns", []))
    )
    provider.list_primary_key_columns = AsyncMock(
        side_effect=lambda table: list(tables[table].get("primary_keys", []))
    )
    provider.read_all_rows = AsyncMock(
        side_effect=lambda table: [dict(r) for r in tables[table].get("rows", [])]
    )
    provider.truncate = AsyncMock()
    provider.upsert = AsyncMock()
    provider.reset_sequences = AsyncMock()
    provider.disable_foreign_key_enforcement = AsyncMock()
    provider.enable_foreign_key_enforcement = AsyncMock()
    provider.close = AsyncMock()

    return provider


def cols(*names: str) -> list[Column]:
    """Columns with empty types, for tests that only care about names."""
    return [Column(name=n) for n in names]


def write_dump(
    directory: Path,
    dumps: list[TableDump],
    *,
    version: int = DUMP_FORMAT_VERSION,
    with_metadata: bool = True,
) -> Path:
    """Write table files and (optionally) the manifest into ``directory``."""
    for dump in dumps:
        write_table_dump(dump, directory)
    if with_metadata:
        write_metadata(
            DumpMetadata(
                provider="sqlite",
                timestamp="2024-01-01T00:00:00.000Z",
                tables=[d.table for d in dumps],
                version=version,
            ),
            directory,
        )
    return directory


# ------------------------------------------------------------------
# Helper: SQLite files seeded through the stdlib driver
# ------------------------------------------------------------------


def seed_sqlite(path: Path, statements: list[str], params: dict[str, list] | None = None) -> Path:
    """Run DDL statements, then insert ``params`` rows (``{sql: [tuple]}``)."""
    conn = sqlite3.connect(path)
    try:
        for stmt in statements:
            conn.execute(stmt)
        for sql, rows in (params or {}).items():
            conn.executemany(sql, rows)
        conn.commit()
    finally:
        conn.close()
    return path


def fetch_sqlite(path: Path, sql: str) -> list[tuple]:
    conn = sqlite3.connect(path)
    try:
        return conn.execute(sql).fetchall()
    finally:
        conn.close()


@pytest.fixture
def profiles_dir(tmp_path, monkeypatch) -> Path:
    """Isolated profile store via DB_RESTORE_CONFIG_DIR."""
    directory = tmp_path / "profiles"
    monkeypatch.setenv("DB_RESTORE_CONFIG_DIR", str(directory))
    return directory
