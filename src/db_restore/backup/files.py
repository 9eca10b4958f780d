"""Reading and writing dump directories.

A dump directory contains ``<table>.json`` per table plus the
``_metadata.json`` manifest.  Only the manifest decides whether a dump is
complete.
"""

import json
from pathlib import Path

from db_restore.backup.models import DumpMetadata, TableDump
from db_restore.constants import METADATA_FILENAME

DUMP_SUFFIX = ".json"


def _write_json(path: Path, data: dict) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, default=str)


def _read_json(path: Path) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def table_dump_path(table: str, directory: str | Path) -> Path:
    """Path of the dump file for ``table``."""
    return Path(directory) / f"{table}{DUMP_SUFFIX}"


def write_table_dump(dump: TableDump, directory: str | Path) -> Path:
    """Write ``dump`` as pretty-printed JSON, creating ``directory`` if needed."""
    path = table_dump_path(dump.table, directory)
    _write_json(path, dump.model_dump(by_alias=True))
    return path


def read_table_dump(table: str, directory: str | Path) -> TableDump:
    """Read the dump file for ``table``.

    Raises:
        FileNotFoundError: If the table file is missing.
        json.JSONDecodeError: If the file is not valid JSON.
        pydantic.ValidationError: If the file does not match ``TableDump``.
    """
    return TableDump.model_validate(_read_json(table_dump_path(table, directory)))


def write_metadata(metadata: DumpMetadata, directory: str | Path) -> Path:
    """Write the manifest.  Call only after every table file is written."""
    path = Path(directory) / METADATA_FILENAME
    _write_json(path, metadata.model_dump())
    return path


def read_metadata(directory: str | Path) -> DumpMetadata:
    """Read the manifest of a dump directory.

    Raises:
        FileNotFoundError: If the manifest is missing.
    """
    return DumpMetadata.model_validate(_read_json(Path(directory) / METADATA_FILENAME))


def dump_exists(directory: str | Path) -> bool:
    """Whether ``directory`` holds a complete dump (its manifest exists).

    Table files without a manifest are the leftovers of an interrupted dump
    and do not count.
    """
    return (Path(directory) / METADATA_FILENAME).is_file()


def list_table_files(directory: str | Path) -> list[str]:
    """Table names of every dump file in ``directory``, sorted by name."""
    return sorted(
        path.name[: -len(DUMP_SUFFIX)]
        for path in Path(directory).iterdir()
        if path.is_file()
        and path.name.endswith(DUMP_SUFFIX)
        and path.name != METADATA_FILENAME
    )


def clear_dump(directory: str | Path) -> int:
    """Delete the JSON files of a previous dump, manifest included.

    Archives in the directory are kept.

    Returns:
        Number of files removed.
    """
    directory = Path(directory)
    removed = 0
    for path in directory.glob(f"*{DUMP_SUFFIX}"):
        path.unlink()
        removed += 1
    return removed
