"""
MPI rendition of the parallel PCA pipeline.

Same phases as the threaded workers, but every shared accumulator is
replaced by a collective operation over the communicator:
- Allreduce of column sums for the mean
- Reduce of local scatter matrices onto rank 0
- Eigendecomposition on rank 0 and Bcast of the basis
- Allreduce MIN/MAX for the global extrema
- Allreduce MAX for the elapsed time
- Gather of the reconstructed blocks onto rank 0

Import this module directly (it initializes MPI):
    from pca_compress.mpi_pca import run_pca_mpi

Usage:
    mpirun -np 4 pca-compress --backend mpi --input image.jpg --components 20
"""

import numpy as np
from mpi4py import MPI

from .core import PCAResult, validate_inputs
from .linalg import matrix_multiply, symmetric_eigendecompose
from .partition import distribute_rows
from .utils import DummyLogger
from .worker import CLAMP, GLOBAL_RESCALE, INTENSITY_MAX, INTENSITY_MIN, rescale, truncate_local_rank


# =============================================================================
# COLLECTIVE HELPERS
# =============================================================================

def allreduce_sum(comm, local_array):
    """
    Allreduce with sum operation.

    Args:
        comm: MPI communicator
        local_array: Local numpy array

    Returns:
        Sum across all ranks
    """
    global_array = np.zeros_like(local_array)
    comm.Allreduce(local_array, global_array, op=MPI.SUM)
    return global_array


def reduce_sum_to_root(comm, local_array, root: int = 0):
    """Sum arrays onto ``root``; other ranks get None."""
    rank = comm.Get_rank()
    global_array = np.zeros_like(local_array) if rank == root else None
    comm.Reduce(local_array, global_array, op=MPI.SUM, root=root)
    return global_array


def gather_to_root(comm, local_data, root: int = 0):
    """
    Gather arrays from all ranks to root.

    Args:
        comm: MPI communicator
        local_data: Local numpy array
        root: Root rank to gather to

    Returns:
        Concatenated array on root, None on other ranks
    """
    rank = comm.Get_rank()
    gathered = comm.gather(local_data, root=root)

    if rank == root:
        return np.concatenate(gathered)
    return None


# =============================================================================
# PIPELINE
# =============================================================================

def _eigenbasis_on_root(comm, scatter, n_features, n_components, logger):
    """Eigendecompose on rank 0 and broadcast (eigenvalues, basis) to all ranks."""
    rank = comm.Get_rank()

    if rank == 0:
        eigs, eigv = symmetric_eigendecompose(scatter, overwrite=True)
        eigs = eigs[::-1].copy()
        basis = np.ascontiguousarray(eigv[:, ::-1][:, :n_components])
        logger.debug(f"  [DIAG] Top eigenvalues: {eigs[:min(5, n_components)]}")
    else:
        eigs = np.empty(n_features, dtype=np.float64)
        basis = np.empty((n_features, n_components), dtype=np.float64)

    comm.Bcast(eigs, root=0)
    comm.Bcast(basis, root=0)
    return eigs, basis


def _run_rank(data, n_components, style, comm, logger):
    rank = comm.Get_rank()
    size = comm.Get_size()
    n_samples, n_features = data.shape

    start, end, n_local = distribute_rows(rank, n_samples, size)
    block = data[start:end].copy()

    comm.Barrier()
    t0 = MPI.Wtime()

    # Mean from global column sums
    mean = allreduce_sum(comm, block.sum(axis=0)) / n_samples
    block -= mean

    if n_local > 0:
        truncate_local_rank(block, n_components)

    scatter = reduce_sum_to_root(comm, matrix_multiply(block, block, transpose_a=True))
    eigs, basis = _eigenbasis_on_root(comm, scatter, n_features, n_components, logger)
    del scatter

    projected = matrix_multiply(block, basis)
    matrix_multiply(projected, basis, transpose_b=True, out=block)
    del projected
    block += mean

    global_min = global_max = None
    if style == CLAMP:
        np.clip(block, INTENSITY_MIN, INTENSITY_MAX, out=block)
    else:
        local_min = float(block.min()) if n_local > 0 else np.inf
        local_max = float(block.max()) if n_local > 0 else -np.inf
        global_min = comm.allreduce(local_min, op=MPI.MIN)
        global_max = comm.allreduce(local_max, op=MPI.MAX)
        rescale(block, global_min, global_max)

    elapsed = MPI.Wtime() - t0
    max_elapsed = comm.allreduce(elapsed, op=MPI.MAX)

    full = gather_to_root(comm, block)
    if rank != 0:
        return None

    logger.info(f"Total elapsed time (maximum rank execution time): {max_elapsed:.6f} seconds")

    result = PCAResult(
        data=full,
        mean=mean,
        basis=basis,
        eigenvalues=eigs,
        n_workers=size,
        n_components=n_components,
        style=style,
        max_elapsed=max_elapsed,
    )
    if style == GLOBAL_RESCALE:
        result.global_min = float(global_min)
        result.global_max = float(global_max)
    return result


def run_pca_mpi(data, n_components, style=0, comm=None, logger=None):
    """
    Rank-reduced PCA reconstruction with one MPI rank per row block.

    Every rank must pass the same full ``data``; each keeps only its own
    block. Returns a PCAResult on rank 0 and None elsewhere.

    Any failure on a rank aborts the communicator when more than one rank
    is running; a single rank re-raises it.
    """
    if comm is None:
        comm = MPI.COMM_WORLD
    if logger is None:
        logger = DummyLogger()

    data = np.asarray(data, dtype=np.float64)
    validate_inputs(data, comm.Get_size(), n_components, style)

    try:
        return _run_rank(data, n_components, style, comm, logger)
    except Exception as e:
        if comm.Get_size() == 1:
            raise
        # Peers are blocked in collectives; only Abort releases them
        logger.error(f"Rank {comm.Get_rank()} failed: {type(e).__name__}: {e}")
        comm.Abort(1)
