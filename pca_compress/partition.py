"""
Row partitioning across workers.

Splits an s-row dataset into contiguous blocks, one per worker. The first
``s % size`` blocks receive one extra row so that block sizes never differ by
more than one.
"""

from typing import List, NamedTuple


class Partition(NamedTuple):
    """Contiguous row range [offset, offset + n_rows) owned by one worker."""
    rank: int
    offset: int
    n_rows: int

    @property
    def stop(self) -> int:
        return self.offset + self.n_rows


def distribute_rows(rank: int, n_total: int, size: int) -> tuple:
    """
    Distribute rows across workers.

    Args:
        rank: Worker index (0, 1, ..., size-1)
        n_total: Total number of rows to distribute
        size: Number of workers

    Returns:
        Tuple of (start_idx, end_idx, n_local)
    """
    n_per_rank, remainder = divmod(n_total, size)

    # First `remainder` ranks take one extra row each
    n_local = n_per_rank + 1 if rank < remainder else n_per_rank
    start = rank * n_per_rank + min(rank, remainder)
    end = start + n_local

    return start, end, n_local


def partition_rows(n_total: int, size: int) -> List[Partition]:
    """Return the partition of every rank, in rank order."""
    partitions = []
    for rank in range(size):
        start, _, n_local = distribute_rows(rank, n_total, size)
        partitions.append(Partition(rank, start, n_local))
    return partitions
