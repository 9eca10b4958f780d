"""Column comparison between a dump and the live schema.

Pure logic -- no I/O, no database connections.

Usage:
    from db_restore.schema.comparator import compare_columns

    drift = compare_columns(dump.columns, await provider.list_columns("users"))
    for name in drift.dropped:
        print(f"{name} no longer exists")
"""

from db_restore.schema.models import Column, ColumnDrift


def compare_columns(dump_columns: list[Column], live_columns: list[Column]) -> ColumnDrift:
    """Compare dumped columns against the live table's columns.

    Columns are matched by name.  ``matching`` keeps the dump's column order
    but holds the live ``Column`` so callers see the current type.

    Args:
        dump_columns: Columns recorded in the dump file.
        live_columns: Columns of the live table, in ordinal order.

    Returns:
        ``ColumnDrift`` with matching columns and dropped/added names.

    Examples:
        >>> drift = compare_columns(
        ...     [Column(name="id"), Column(name="email")],
        ...     [Column(name="id"), Column(name="avatar")],
        ... )
        >>> [c.name for c in drift.matching], drift.dropped, drift.added
        (['id'], ['email'], ['avatar'])
    """
    live_by_name = {c.name: c for c in live_columns}
    dumped_names = {c.name for c in dump_columns}

    matching = [live_by_name[c.name] for c in dump_columns if c.name in live_by_name]
    dropped = [c.name for c in dump_columns if c.name not in live_by_name]
    added = [c.name for c in live_columns if c.name not in dumped_names]

    return ColumnDrift(matching=matching, dropped=dropped, added=added)
