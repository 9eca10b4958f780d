"""Dump file models and engine result models.

The dump directory holds one ``TableDump`` per table plus a ``DumpMetadata``
manifest.  On disk the field names follow the dump format (``primaryKeys``);
in Python they are snake_case.

Usage:
    from db_restore.backup.models import Column, TableDump, DumpMetadata

    dump = TableDump(
        table="users",
        primary_keys=["id"],
        columns=[Column(name="id", type="integer"), Column(name="name", type="text")],
        rows=[{"id": 1, "name": "Alice"}],
    )
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from db_restore.schema.models import Column


class TableDump(BaseModel):
    """Contents of one ``<table>.json`` dump file."""

    model_config = ConfigDict(populate_by_name=True)

    table: str
    primary_keys: list[str] = Field(default_factory=list, alias="primaryKeys")
    columns: list[Column] = Field(default_factory=list)
    rows: list[dict[str, Any]] = Field(default_factory=list)


class DumpMetadata(BaseModel):
    """The ``_metadata.json`` manifest.  Written last; marks a dump complete."""

    provider: str
    timestamp: str
    tables: list[str] = Field(default_factory=list)
    version: int


# ============================================================================
# Engine results
# ============================================================================


class DumpedTable(BaseModel):
    """Row count for one dumped table."""

    table: str
    row_count: int


class DumpResult(BaseModel):
    """Result of ``perform_dump()``."""

    tables: list[DumpedTable] = Field(default_factory=list)
    total_rows: int = 0


RestoreStrategy = Literal["upsert", "truncate"]


class RestoredTable(BaseModel):
    """Row count and write strategy for one restored table."""

    table: str
    row_count: int
    strategy: RestoreStrategy


class RestoreResult(BaseModel):
    """Result of ``perform_restore()``.

    ``warnings`` holds schema drift and strategy fallback notices in the
    order they were raised.
    """

    tables: list[RestoredTable] = Field(default_factory=list)
    total_rows: int = 0
    warnings: list[str] = Field(default_factory=list)


class DumpValidationResult(BaseModel):
    """Result of ``validate_dump()``.

    Example:
        >>> result = DumpValidationResult(valid=True)
        >>> result.errors
        []
    """

    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
