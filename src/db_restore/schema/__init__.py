"""Schema models and dump-vs-live column comparison.

Usage:
    from db_restore.schema import Column, compare_columns
"""

from db_restore.schema.comparator import compare_columns
from db_restore.schema.models import Column, ColumnDrift

__all__ = ["Column", "ColumnDrift", "compare_columns"]
