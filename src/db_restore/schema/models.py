"""Pydantic models for live and dumped table schemas.

This module contains schema-domain models:
- Column: a table column as introspected or as recorded in a dump
- ColumnDrift: result of comparing dumped columns with live columns
"""

from pydantic import BaseModel, Field


class Column(BaseModel):
    """A table column.

    ``type`` is the backend's native type name.  It is reported in drift
    messages and used by providers to bind values, never to decode them.

    Example:
        >>> col = Column(name="id", type="integer")
        >>> col.name
        'id'
    """

    name: str
    type: str = ""


class ColumnDrift(BaseModel):
    """Column-level differences between a dump and the live table.

    Attributes:
        matching: Live columns that also appear in the dump, in dump order.
        dropped: Dumped column names missing from the live table.
        added: Live column names the dump has no data for.
    """

    matching: list[Column] = Field(default_factory=list)
    dropped: list[str] = Field(default_factory=list)
    added: list[str] = Field(default_factory=list)

    @property
    def has_drift(self) -> bool:
        """Whether any column was dropped or added."""
        return bool(self.dropped or self.added)
