"""Dump every user table of a database into a dump directory.

Usage:
    from db_restore.backup.dump import perform_dump

    async with SqliteProvider("dev.db") as provider:
        result = await perform_dump(provider, "sqlite", "./db-backup")
"""

import logging
from datetime import datetime, timezone
from pathlib import Path

from db_restore.backup.files import write_metadata, write_table_dump
from db_restore.backup.models import DumpedTable, DumpMetadata, DumpResult, TableDump
from db_restore.constants import DUMP_FORMAT_VERSION, EXCLUDED_TABLES
from db_restore.encoding.codec import encode_row
from db_restore.providers.base import DatabaseProvider

logger = logging.getLogger(__name__)


async def perform_dump(
    provider: DatabaseProvider,
    provider_label: str,
    output_dir: str | Path,
) -> DumpResult:
    """Export all user tables to ``output_dir``.

    Tables in ``EXCLUDED_TABLES`` (ORM/migration bookkeeping) are skipped.
    Each remaining table is written to ``<table>.json`` in listing order,
    then the ``_metadata.json`` manifest is written last.  A crash before the
    manifest leaves a directory that ``dump_exists()`` reports as no dump.

    Args:
        provider: Connected provider implementing ``DatabaseProvider``.
        provider_label: Backend name recorded in the manifest
            (e.g. ``"postgres"``).
        output_dir: Dump directory.  Created if absent.

    Returns:
        ``DumpResult`` with per-table row counts and the grand total.

    Example:
        result = await perform_dump(provider, "postgres", "./db-backup")
        print(result.total_rows)
    """
    all_tables = await provider.list_tables()
    tables = [t for t in all_tables if t not in EXCLUDED_TABLES]

    skipped = len(all_tables) - len(tables)
    if skipped:
        logger.debug("Skipping %d excluded tables", skipped)

    result = DumpResult()

    for table in tables:
        columns = await provider.list_columns(table)
        primary_keys = await provider.list_primary_key_columns(table)
        rows = await provider.read_all_rows(table)

        dump = TableDump(
            table=table,
            primary_keys=primary_keys,
            columns=columns,
            rows=[encode_row(row) for row in rows],
        )
        write_table_dump(dump, output_dir)
        logger.info("Dumped %s (%d rows)", table, len(rows))

        result.tables.append(DumpedTable(table=table, row_count=len(rows)))
        result.total_rows += len(rows)

    now = datetime.now(timezone.utc).replace(tzinfo=None)
    metadata = DumpMetadata(
        provider=provider_label,
        timestamp=now.isoformat(timespec="milliseconds") + "Z",
        tables=tables,
        version=DUMP_FORMAT_VERSION,
    )
    # Written last: its presence marks the dump complete
    write_metadata(metadata, output_dir)

    return result
