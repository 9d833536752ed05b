import threading
import time

import numpy as np
import pytest

from pca_compress.sync import Barrier, BarrierAbortedError, SharedAccumulators


class TestBarrier:
    def test_single_party_never_blocks(self):
        barrier = Barrier(1)
        assert all(barrier.arrive_and_wait() for _ in range(5))
        assert barrier.generation == 5

    def test_rejects_zero_parties(self):
        with pytest.raises(ValueError):
            Barrier(0)

    def test_phases_are_separated_across_generations(self):
        n_threads, n_phases = 4, 50
        barrier = Barrier(n_threads)
        lock = threading.Lock()
        arrivals = [0] * n_phases
        violations = []
        serial_count = []

        def run():
            for phase in range(n_phases):
                with lock:
                    arrivals[phase] += 1
                if barrier.arrive_and_wait():
                    serial_count.append(phase)
                # Nobody leaves a phase before everyone has entered it
                if arrivals[phase] != n_threads:
                    violations.append(phase)

        threads = [threading.Thread(target=run) for _ in range(n_threads)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=10)

        assert not any(t.is_alive() for t in threads)
        assert violations == []
        assert sorted(serial_count) == list(range(n_phases))
        assert barrier.generation == n_phases

    def test_abort_releases_waiters(self):
        barrier = Barrier(2)
        raised = []

        def wait():
            try:
                barrier.arrive_and_wait()
            except BarrierAbortedError:
                raised.append(True)

        t = threading.Thread(target=wait)
        t.start()
        time.sleep(0.05)
        barrier.abort()
        t.join(timeout=5)

        assert not t.is_alive()
        assert raised == [True]
        assert barrier.aborted

    def test_arrival_after_abort_raises(self):
        barrier = Barrier(3)
        barrier.abort()
        with pytest.raises(BarrierAbortedError):
            barrier.arrive_and_wait()


class TestSharedAccumulators:
    def test_mean_weights_partitions_by_row_count(self):
        X = np.arange(15, dtype=float).reshape(5, 3)
        acc = SharedAccumulators(3, 2)
        acc.add_partial_sums(X[:3].sum(axis=0), 3)
        acc.add_partial_sums(X[3:].sum(axis=0), 2)
        np.testing.assert_allclose(acc.mean(), X.mean(axis=0))

    def test_mean_before_accumulation_raises(self):
        with pytest.raises(RuntimeError):
            SharedAccumulators(3, 1).mean()

    def test_concurrent_accumulation_is_exact(self):
        acc = SharedAccumulators(4, 1)
        ones = np.ones(4)
        scatter = np.eye(4)

        def run():
            for _ in range(500):
                acc.add_partial_sums(ones, 1)
                acc.add_scatter(scatter)

        threads = [threading.Thread(target=run) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert acc.n_rows == 4000
        np.testing.assert_array_equal(acc.mean_sums, np.full(4, 4000.0))
        np.testing.assert_array_equal(acc.scatter, 4000.0 * np.eye(4))

    def test_extrema_widen_only(self):
        acc = SharedAccumulators(2, 1)
        acc.widen_extrema(3.0, 7.0)
        acc.widen_extrema(4.0, 6.0)
        acc.widen_extrema(-1.0, 5.0)
        assert acc.global_min == -1.0
        assert acc.global_max == 7.0

    def test_elapsed_keeps_maximum(self):
        acc = SharedAccumulators(2, 1)
        for elapsed in (0.2, 0.5, 0.1):
            acc.record_elapsed(elapsed)
        assert acc.max_elapsed == 0.5

    def test_basis_written_once(self):
        acc = SharedAccumulators(3, 2)
        basis = np.eye(3)[:, :2]
        acc.set_basis(np.array([3.0, 2.0, 1.0]), basis)
        np.testing.assert_array_equal(acc.basis, basis)
        with pytest.raises(RuntimeError):
            acc.set_basis(np.array([3.0, 2.0, 1.0]), basis)

    def test_scatter_unusable_after_release(self):
        acc = SharedAccumulators(2, 1)
        acc.release_scatter()
        assert acc.scatter is None
        with pytest.raises(RuntimeError):
            acc.add_scatter(np.eye(2))
