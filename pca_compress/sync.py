"""
Synchronization primitives shared by the PCA worker threads.

    Barrier            - reusable, generation-counted rendezvous for N threads
    SharedAccumulators - reduction targets (mean, scatter, extrema, timing)
                         guarded by one process-wide lock

Shared accumulators are only written inside their lock and only read after
the barrier that closes the phase writing them.
"""

import threading
from typing import Optional

import numpy as np


class BarrierAbortedError(RuntimeError):
    """Raised in threads waiting on (or arriving at) an aborted barrier."""


class Barrier:
    """
    Reusable barrier for a fixed number of parties.

    A generation counter distinguishes consecutive phases: a waiter is
    released only when the generation it arrived in has completed, so
    spurious wakeups and fast re-entry into the next phase are harmless.
    There is no timeout; a party that never arrives stalls the group unless
    the barrier is aborted.
    """

    def __init__(self, parties: int):
        if parties < 1:
            raise ValueError(f"Barrier needs at least one party, got {parties}")
        self.parties = parties
        self._count = 0
        self._generation = 0
        self._aborted = False
        self._cond = threading.Condition(threading.Lock())

    @property
    def generation(self) -> int:
        with self._cond:
            return self._generation

    @property
    def aborted(self) -> bool:
        with self._cond:
            return self._aborted

    def arrive_and_wait(self) -> bool:
        """
        Block until all parties have arrived.

        Returns True in exactly one party per generation (the one whose
        arrival released the group) and False in the others.
        """
        with self._cond:
            if self._aborted:
                raise BarrierAbortedError("barrier was aborted")

            generation = self._generation
            self._count += 1
            if self._count == self.parties:
                self._count = 0
                self._generation += 1
                self._cond.notify_all()
                return True

            while generation == self._generation and not self._aborted:
                self._cond.wait()

            if generation == self._generation:
                raise BarrierAbortedError("barrier was aborted")
            return False

    def abort(self):
        """Break the barrier: current and future waiters raise BarrierAbortedError."""
        with self._cond:
            self._aborted = True
            self._cond.notify_all()


class SharedAccumulators:
    """
    Reduction state shared by all workers of one PCA run.

    The mean vector is accumulated as column sums plus a row count and
    divided once by the total row count, so unequal partition sizes carry
    their proper weight.
    """

    def __init__(self, n_features: int, n_components: int):
        self.n_features = n_features
        self.n_components = n_components
        self.lock = threading.Lock()

        self.mean_sums = np.zeros(n_features, dtype=np.float64)
        self.n_rows = 0
        self.scatter: Optional[np.ndarray] = np.zeros((n_features, n_features), dtype=np.float64)
        self.basis = np.zeros((n_features, n_components), dtype=np.float64)
        self.eigenvalues: Optional[np.ndarray] = None
        self.global_min = np.inf
        self.global_max = -np.inf
        self.max_elapsed = 0.0

    # -- mean -----------------------------------------------------------------

    def add_partial_sums(self, column_sums: np.ndarray, n_rows: int):
        with self.lock:
            self.mean_sums += column_sums
            self.n_rows += n_rows

    def mean(self) -> np.ndarray:
        """Dataset-wide feature mean. Valid only after the mean barrier."""
        if self.n_rows == 0:
            raise RuntimeError("mean requested before any rows were accumulated")
        return self.mean_sums / self.n_rows

    # -- scatter / eigenbasis -------------------------------------------------

    def add_scatter(self, local_scatter: np.ndarray):
        with self.lock:
            if self.scatter is None:
                raise RuntimeError("scatter matrix already released")
            self.scatter += local_scatter

    def release_scatter(self):
        self.scatter = None

    def set_basis(self, eigenvalues: np.ndarray, basis: np.ndarray):
        """Store the top eigenvectors (d x t). May only happen once per run."""
        if self.eigenvalues is not None:
            raise RuntimeError("eigenbasis already written")
        self.basis[:, :] = basis
        self.eigenvalues = eigenvalues

    # -- extrema / timing -----------------------------------------------------

    def widen_extrema(self, local_min: float, local_max: float):
        with self.lock:
            if local_min < self.global_min:
                self.global_min = local_min
            if local_max > self.global_max:
                self.global_max = local_max

    def record_elapsed(self, elapsed: float):
        with self.lock:
            if elapsed > self.max_elapsed:
                self.max_elapsed = elapsed
