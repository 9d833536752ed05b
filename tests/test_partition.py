import pytest

from pca_compress.partition import Partition, distribute_rows, partition_rows


def test_remainder_goes_to_first_ranks():
    parts = partition_rows(10, 3)
    assert [p.n_rows for p in parts] == [4, 3, 3]
    assert [p.offset for p in parts] == [0, 4, 7]


def test_two_by_two_split():
    assert partition_rows(4, 2) == [Partition(0, 0, 2), Partition(1, 2, 2)]


def test_distribute_rows_matches_partition():
    for rank, part in enumerate(partition_rows(17, 5)):
        start, end, n_local = distribute_rows(rank, 17, 5)
        assert (start, end, n_local) == (part.offset, part.stop, part.n_rows)


@pytest.mark.parametrize("n_total", [0, 1, 2, 7, 64, 101])
@pytest.mark.parametrize("size", [1, 2, 3, 8, 13])
def test_partitions_cover_rows_exactly_once(n_total, size):
    parts = partition_rows(n_total, size)

    assert len(parts) == size
    assert sum(p.n_rows for p in parts) == n_total

    # Contiguous, in rank order, covering [0, n_total)
    expected_offset = 0
    for rank, p in enumerate(parts):
        assert p.rank == rank
        assert p.offset == expected_offset
        expected_offset = p.stop
    assert expected_offset == n_total

    sizes = [p.n_rows for p in parts]
    assert max(sizes) - min(sizes) <= 1


def test_more_workers_than_rows():
    parts = partition_rows(3, 5)
    assert [p.n_rows for p in parts] == [1, 1, 1, 0, 0]
    assert parts[-1].offset == 3
