"""
Per-thread PCA pipeline.

Every worker runs the same sequence of phases on its own block of rows,
meeting the other workers at a barrier after each phase that feeds a shared
accumulator:

    1-2. local column sums -> shared mean sums           | Barrier A
    3.   center block with the global mean
    4.   local SVD, rank-t truncation, rebuild in place
    5.   local scatter P^T P -> shared scatter matrix     | Barrier B
    6.   rank 0: eigendecomposition, top-t eigenvectors  | Barrier C
    7.   project onto Et and back, add the mean
    8.   normalize (clamp, or global rescale             | Barrier D)
    9.   elapsed time -> shared maximum                  | Barrier E
"""

import logging
import time
from dataclasses import dataclass

import numpy as np

from .linalg import matrix_multiply, scale_vector, svd, symmetric_eigendecompose
from .partition import Partition
from .sync import Barrier, SharedAccumulators


# Normalization styles
CLAMP = 0
GLOBAL_RESCALE = 1
NORMALIZATION_STYLES = (CLAMP, GLOBAL_RESCALE)

INTENSITY_MIN = 0.0
INTENSITY_MAX = 255.99


@dataclass
class WorkerContext:
    """Everything one worker needs: its rows plus references to shared state."""
    partition: Partition
    block: np.ndarray              # view of the dataset rows owned by this worker
    n_components: int
    style: int
    barrier: Barrier
    shared: SharedAccumulators
    logger: logging.Logger

    @property
    def rank(self) -> int:
        return self.partition.rank


# =============================================================================
# PHASE HELPERS
# =============================================================================

def truncate_local_rank(block: np.ndarray, n_components: int):
    """Replace ``block`` in place with its rank-``n_components`` SVD approximation."""
    U, s, Vt = svd(block)
    k = s.shape[0]

    # Zero singular values from index t onward
    scale_vector(s[n_components:], 0.0)

    matrix_multiply(U[:, :k] * s, Vt[:k], out=block)
    del U, s, Vt


def compute_eigenbasis(shared: SharedAccumulators, n_components: int, logger):
    """
    Eigendecompose the shared scatter matrix and store its top eigenvectors.

    The solver returns eigenvalues in ascending order; columns are reversed
    so the basis is ordered by decreasing eigenvalue. The scatter matrix is
    consumed and released.
    """
    eigs, eigv = symmetric_eigendecompose(shared.scatter, overwrite=True)
    eigs = eigs[::-1].copy()
    eigv = eigv[:, ::-1]

    shared.set_basis(eigs, eigv[:, :n_components])
    shared.release_scatter()

    logger.debug(f"  [DIAG] Top eigenvalues: {eigs[:min(5, n_components)]}")


def rescale(block: np.ndarray, global_min: float, global_max: float):
    """Map [global_min, global_max] linearly onto the intensity range, in place."""
    span = global_max - global_min
    if span > 0:
        block -= global_min
        block /= span
        block *= INTENSITY_MAX - INTENSITY_MIN
        block += INTENSITY_MIN
    else:
        block[:] = INTENSITY_MIN


# =============================================================================
# WORKER
# =============================================================================

def pca_worker(ctx: WorkerContext):
    """Run the full PCA pipeline for one partition."""
    barrier = ctx.barrier
    shared = ctx.shared
    block = ctx.block
    logger = ctx.logger
    t = ctx.n_components
    n_local = block.shape[0]

    barrier.arrive_and_wait()
    start_time = time.perf_counter()

    # Local mean, folded into the shared column sums
    column_sums = block.sum(axis=0)
    if n_local > 0:
        local_mean = column_sums / n_local
        logger.debug(f"  [rank {ctx.rank}] rows {ctx.partition.offset}:{ctx.partition.stop}, "
                     f"local mean range [{local_mean.min():.3f}, {local_mean.max():.3f}]")
    shared.add_partial_sums(column_sums, n_local)
    del column_sums

    barrier.arrive_and_wait()  # A: mean sums complete

    mean = shared.mean()
    block -= mean

    if n_local > 0:
        truncate_local_rank(block, t)

    local_scatter = matrix_multiply(block, block, transpose_a=True)
    shared.add_scatter(local_scatter)
    del local_scatter

    barrier.arrive_and_wait()  # B: scatter matrix complete

    if ctx.rank == 0:
        compute_eigenbasis(shared, t, logger)

    barrier.arrive_and_wait()  # C: eigenbasis written

    Et = shared.basis
    projected = matrix_multiply(block, Et)
    matrix_multiply(projected, Et, transpose_b=True, out=block)
    del projected
    block += mean

    if ctx.style == CLAMP:
        np.clip(block, INTENSITY_MIN, INTENSITY_MAX, out=block)
    else:
        if n_local > 0:
            shared.widen_extrema(float(block.min()), float(block.max()))

        barrier.arrive_and_wait()  # D: global extrema final

        rescale(block, shared.global_min, shared.global_max)

    elapsed = time.perf_counter() - start_time
    shared.record_elapsed(elapsed)
    logger.debug(f"  [rank {ctx.rank}] elapsed = {elapsed:.6f} seconds")

    barrier.arrive_and_wait()  # E: timings complete

    if ctx.rank == 0:
        logger.info(f"Total elapsed time (maximum thread execution time): "
                    f"{shared.max_elapsed:.6f} seconds")
