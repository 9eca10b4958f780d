"""Database provider protocol definition.

Defines the ``DatabaseProvider`` Protocol that every backend must implement.
The dump and restore engines depend on this capability set only -- never on
a concrete backend or on raw SQL.  All methods are ``async def``.

Usage:
    from db_restore.providers.base import DatabaseProvider

    async def row_counts(provider: DatabaseProvider) -> dict[str, int]:
        return {
            table: len(await provider.read_all_rows(table))
            for table in await provider.list_tables()
        }
"""

from typing import Any, Protocol

from db_restore.schema.models import Column


class DatabaseProvider(Protocol):
    """Capability set a database backend exposes to the engines.

    Every method may raise ``ProviderConnectionError`` or ``QueryError``
    (``WriteError`` for the write operations).  Errors are propagated, never
    retried.
    """

    async def list_tables(self) -> list[str]:
        """List user tables.  System and catalog tables are excluded."""
        ...

    async def list_columns(self, table: str) -> list[Column]:
        """List columns of ``table`` in declared (ordinal) order."""
        ...

    async def list_primary_key_columns(self, table: str) -> list[str]:
        """List primary key column names.  Empty if the table has none."""
        ...

    async def read_all_rows(self, table: str) -> list[dict[str, Any]]:
        """Read every row of ``table`` as a dict keyed by column name."""
        ...

    async def truncate(self, table: str) -> None:
        """Remove all rows from ``table``.  Irreversible."""
        ...

    async def upsert(
        self,
        table: str,
        columns: list[Column],
        primary_key_columns: list[str],
        rows: list[dict[str, Any]],
    ) -> None:
        """Insert ``rows``, updating on primary key conflict.

        Args:
            table: Table name.
            columns: Columns to write, in statement order.
            primary_key_columns: Conflict target.  Rows with an existing key
                have every non-key column updated.  When empty, rows are
                plain-inserted (the caller truncated first).
            rows: Row dicts keyed by column name.  Missing keys write NULL.
        """
        ...

    async def reset_sequences(self, table: str) -> None:
        """Realign identity/serial generators of ``table`` to ``max + 1``.

        Backends without explicit sequences implement this as a no-op.
        """
        ...

    async def disable_foreign_key_enforcement(self) -> None:
        """Stop enforcing foreign keys for the rest of this session."""
        ...

    async def enable_foreign_key_enforcement(self) -> None:
        """Resume enforcing foreign keys for this session."""
        ...

    async def close(self) -> None:
        """Close the connection and release resources."""
        ...
