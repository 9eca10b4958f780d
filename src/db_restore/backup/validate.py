"""Offline validation of a dump directory.

Checks a dump without touching any database: the manifest must exist, every
table it lists must have a readable file, and every row must only carry
columns the file declares.

Usage:
    from db_restore.backup.validate import validate_dump

    report = validate_dump("./db-backup")
    if not report.valid:
        for error in report.errors:
            print(error)
"""

import json
from pathlib import Path

from pydantic import ValidationError

from db_restore.backup.files import (
    dump_exists,
    list_table_files,
    read_metadata,
    read_table_dump,
    table_dump_path,
)
from db_restore.backup.models import DumpValidationResult
from db_restore.constants import DUMP_FORMAT_VERSION, METADATA_FILENAME


def validate_dump(input_dir: str | Path) -> DumpValidationResult:
    """Validate the format and internal consistency of a dump directory.

    This function is **sync** -- it only reads local JSON files.

    Args:
        input_dir: Dump directory to check.

    Returns:
        ``DumpValidationResult`` with ``valid``, ``errors`` and ``warnings``.

    Example:
        report = validate_dump("./db-backup")
        if report.errors:
            raise SystemExit(1)
    """
    errors: list[str] = []
    warnings: list[str] = []

    if not dump_exists(input_dir):
        errors.append(f"Manifest {METADATA_FILENAME} not found in {input_dir}")
        return DumpValidationResult(valid=False, errors=errors, warnings=warnings)

    try:
        metadata = read_metadata(input_dir)
    except (json.JSONDecodeError, ValidationError) as e:
        errors.append(f"Invalid manifest: {e}")
        return DumpValidationResult(valid=False, errors=errors, warnings=warnings)

    if metadata.version > DUMP_FORMAT_VERSION:
        warnings.append(
            f"Dump format version {metadata.version} is newer than supported "
            f"version {DUMP_FORMAT_VERSION}"
        )

    table_files = list_table_files(input_dir)

    for table in metadata.tables:
        if table not in table_files:
            errors.append(f"Table {table} listed in manifest but {table}.json is missing")

    for table in table_files:
        if table not in metadata.tables:
            warnings.append(f"Table file {table}.json is not listed in the manifest")

        try:
            dump = read_table_dump(table, input_dir)
        except (json.JSONDecodeError, ValidationError) as e:
            errors.append(f"Invalid table file {table_dump_path(table, input_dir).name}: {e}")
            continue

        if dump.table != table:
            errors.append(f"{table}.json declares table '{dump.table}'")

        declared = {c.name for c in dump.columns}
        for i, row in enumerate(dump.rows):
            unknown = sorted(set(row) - declared)
            if unknown:
                errors.append(
                    f"{table} row {i} has undeclared columns: {', '.join(unknown)}"
                )

    return DumpValidationResult(valid=not errors, errors=errors, warnings=warnings)
