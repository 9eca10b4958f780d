"""Reconcile a dump directory into a live, possibly drifted, database.

For every table file the restore engine compares the dumped columns with the
live schema, keeps only the columns present in both, and writes the rows back
with a per-table strategy:

- **upsert** when the live table has a primary key -- dumped rows overwrite
  rows with the same key, rows that exist only in the database are kept;
- **truncate** when it has none -- the table is emptied and the dumped rows
  are inserted.

Schema drift never fails a restore; it is reported in
``RestoreResult.warnings``.

Usage:
    from db_restore.backup.restore import perform_restore

    async with SqliteProvider("dev.db") as provider:
        result = await perform_restore(provider, "./db-backup")
        for warning in result.warnings:
            print(warning)
"""

import logging
from pathlib import Path
from typing import Any

from db_restore.backup.batch import chunk
from db_restore.backup.files import (
    dump_exists,
    list_table_files,
    read_metadata,
    read_table_dump,
)
from db_restore.backup.models import RestoredTable, RestoreResult, TableDump
from db_restore.constants import BATCH_SIZE, DUMP_FORMAT_VERSION
from db_restore.encoding.codec import decode_row
from db_restore.errors import DumpNotFoundError
from db_restore.providers.base import DatabaseProvider
from db_restore.schema.comparator import compare_columns
from db_restore.schema.models import Column

logger = logging.getLogger(__name__)


def _warn(result: RestoreResult, message: str) -> None:
    logger.warning(message)
    result.warnings.append(message)


def _reconcile_columns(
    dump: TableDump, live_columns: list[Column], result: RestoreResult
) -> list[Column]:
    """Columns present in both the dump and the live table, in dump order.

    The live ``Column`` is returned so providers bind values by the column's
    current type.  Emits one warning per dropped and per added column.
    """
    drift = compare_columns(dump.columns, live_columns)
    if not drift.has_drift:
        return drift.matching

    logger.debug(
        "%s: %d dropped, %d added columns", dump.table, len(drift.dropped), len(drift.added)
    )

    for name in drift.dropped:
        _warn(result, f'Skipping removed column "{name}" in table "{dump.table}"')
    for name in drift.added:
        _warn(result, f'New column "{name}" in table "{dump.table}" will use DB default')

    return drift.matching


def _project_rows(dump: TableDump, columns: list[Column]) -> list[dict[str, Any]]:
    """Decode rows and keep only ``columns``; missing values become None."""
    rows: list[dict[str, Any]] = []
    for row in dump.rows:
        decoded = decode_row(row)
        rows.append({col.name: decoded.get(col.name) for col in columns})
    return rows


async def _write_batches(
    provider: DatabaseProvider,
    table: str,
    columns: list[Column],
    primary_keys: list[str],
    rows: list[dict[str, Any]],
) -> None:
    batches = chunk(rows, BATCH_SIZE)
    for i, batch in enumerate(batches, 1):
        logger.debug("%s: batch %d/%d (%d rows)", table, i, len(batches), len(batch))
        await provider.upsert(table, columns, primary_keys, batch)


async def _restore_table(
    provider: DatabaseProvider,
    dump: TableDump,
    result: RestoreResult,
) -> None:
    """Restore a single table whose existence was already checked."""
    table = dump.table

    live_columns = await provider.list_columns(table)
    columns = _reconcile_columns(dump, live_columns, result)

    rows = _project_rows(dump, columns)

    # Strategy follows the live table, not the dump
    primary_keys = await provider.list_primary_key_columns(table)

    if primary_keys:
        await _write_batches(provider, table, columns, primary_keys, rows)
        strategy = "upsert"
    else:
        _warn(
            result,
            f'Table "{table}" has no primary key — using TRUNCATE + INSERT instead of UPSERT',
        )
        await provider.truncate(table)
        await _write_batches(provider, table, columns, [], rows)
        strategy = "truncate"

    logger.info("Restored %s (%d rows, %s)", table, len(rows), strategy)
    result.tables.append(RestoredTable(table=table, row_count=len(rows), strategy=strategy))
    result.total_rows += len(rows)


async def perform_restore(
    provider: DatabaseProvider,
    input_dir: str | Path,
) -> RestoreResult:
    """Restore every table file of a dump directory.

    Foreign key enforcement is disabled for the whole run, so tables can be
    written in any order, and is always re-enabled on the way out -- also
    when a table fails.  After all tables are written, identity/serial
    sequences of every restored table are realigned.

    The restore is not transactional: a failure propagates and tables
    already written stay written.  Re-running against the same dump is safe.

    Args:
        provider: Connected provider implementing ``DatabaseProvider``.
        input_dir: Dump directory produced by ``perform_dump()``.

    Returns:
        ``RestoreResult`` with per-table row counts and strategies, the
        total row count and drift/fallback warnings.

    Raises:
        DumpNotFoundError: If ``input_dir`` has no manifest.
        ProviderConnectionError: If the database session fails.
        QueryError: If introspection fails (``WriteError`` for writes).

    Example:
        result = await perform_restore(provider, "./db-backup")
        for entry in result.tables:
            print(entry.table, entry.row_count, entry.strategy)
    """
    if not dump_exists(input_dir):
        raise DumpNotFoundError(f"No complete dump found in {input_dir}")

    result = RestoreResult()

    metadata = read_metadata(input_dir)
    if metadata.version > DUMP_FORMAT_VERSION:
        _warn(
            result,
            f"Dump format version {metadata.version} is newer than supported "
            f"version {DUMP_FORMAT_VERSION}; unknown value types are restored as-is",
        )

    table_names = list_table_files(input_dir)

    await provider.disable_foreign_key_enforcement()
    try:
        live_tables = set(await provider.list_tables())

        for table_name in table_names:
            dump = read_table_dump(table_name, input_dir)

            if dump.table not in live_tables:
                _warn(
                    result,
                    f'Table "{dump.table}" from dump does not exist in database — skipped',
                )
                continue

            await _restore_table(provider, dump, result)

        # Skipped tables are not realigned
        for entry in result.tables:
            await provider.reset_sequences(entry.table)
    finally:
        await provider.enable_foreign_key_enforcement()

    return result
