"""Fixed-size batching of row lists."""

from typing import Sequence, TypeVar

from db_restore.constants import BATCH_SIZE

T = TypeVar("T")


def chunk(items: Sequence[T], size: int = BATCH_SIZE) -> list[list[T]]:
    """Split ``items`` into consecutive groups of at most ``size`` elements.

    Order is preserved and the final group may be shorter.

    Raises:
        ValueError: If ``size`` is less than 1.

    Example:
        >>> chunk([1, 2, 3, 4, 5], size=2)
        [[1, 2], [3, 4], [5]]
    """
    if size < 1:
        raise ValueError(f"Batch size must be at least 1, got {size}")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]
