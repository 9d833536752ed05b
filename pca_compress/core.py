"""
Parallel PCA orchestration.

run_parallel_pca() validates the request, allocates the shared accumulators,
starts one thread per row partition, joins them and packages the result.
It performs no per-row computation itself.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .errors import ConfigurationError, WorkerSpawnError
from .partition import partition_rows
from .sync import Barrier, BarrierAbortedError, SharedAccumulators
from .worker import GLOBAL_RESCALE, NORMALIZATION_STYLES, WorkerContext, pca_worker


@dataclass
class PCAResult:
    """Output of one PCA run."""
    data: np.ndarray               # rank-t reconstruction (s, d), normalized
    mean: np.ndarray               # feature mean of the input (d,)
    basis: np.ndarray              # top-t eigenvectors as columns (d, t)
    eigenvalues: np.ndarray        # all scatter eigenvalues, descending (d,)
    n_workers: int
    n_components: int
    style: int
    max_elapsed: float             # slowest worker wall time [s]
    global_min: Optional[float] = None   # pre-rescale extrema (style 1 only)
    global_max: Optional[float] = None

    @property
    def retained_energy(self) -> float:
        """Fraction of scatter captured by the retained components."""
        eigs = np.maximum(self.eigenvalues, 0)
        total = np.sum(eigs)
        if total == 0:
            return 1.0
        return float(np.sum(eigs[:self.n_components]) / total)


def validate_inputs(data: np.ndarray, n_workers: int, n_components: int, style: int):
    """Reject invalid requests before any worker is started."""
    if data.ndim != 2:
        raise ConfigurationError(f"Dataset must be 2-D (samples x features), got shape {data.shape}")
    n_samples, n_features = data.shape
    if n_samples == 0 or n_features == 0:
        raise ConfigurationError(f"Dataset is empty: shape {data.shape}")
    if n_workers < 1:
        raise ConfigurationError(f"Number of workers must be at least 1, got {n_workers}")
    if n_components < 1:
        raise ConfigurationError(f"Number of principal components must be at least 1, got {n_components}")
    if n_components > n_features:
        raise ConfigurationError(
            f"The number of principal components ({n_components}) cannot be greater "
            f"than the number of columns of the dataset ({n_features})"
        )
    if style not in NORMALIZATION_STYLES:
        raise ConfigurationError(f"Unknown normalization style {style}; expected one of {NORMALIZATION_STYLES}")


def _run_worker(ctx: WorkerContext, errors: list, barrier: Barrier):
    """Thread target: run the pipeline, record the first failure and break the barrier."""
    try:
        pca_worker(ctx)
    except BarrierAbortedError:
        # Another worker failed first; its error is the one reported
        pass
    except Exception as e:
        ctx.logger.error(f"Worker {ctx.rank} failed: {e!r}")
        errors.append(e)
        barrier.abort()


def run_parallel_pca(
    data: np.ndarray,
    n_workers: int,
    n_components: int,
    style: int = 0,
    logger: Optional[logging.Logger] = None,
    copy: bool = True,
) -> PCAResult:
    """
    Rank-reduced PCA reconstruction of ``data`` using a pool of threads.

    Parameters
    ----------
    data : np.ndarray
        Dataset of shape (n_samples, n_features), samples as rows.
    n_workers : int
        Number of worker threads; each owns a contiguous block of rows.
    n_components : int
        Number of principal components kept (1 <= t <= n_features).
    style : int
        Normalization style: 0 clamps into [0, 255.99], 1 rescales the
        global range onto [0, 255.99].
    logger : logging.Logger, optional
        Logger; defaults to the ``pca_compress`` logger.
    copy : bool
        Work on a copy of ``data``. With False a C-contiguous float64 input
        is overwritten in place.

    Returns
    -------
    PCAResult
    """
    if logger is None:
        logger = logging.getLogger("pca_compress")

    data = np.asarray(data)
    validate_inputs(data, n_workers, n_components, style)

    if copy:
        data = np.array(data, dtype=np.float64, order='C', copy=True)
    else:
        data = np.ascontiguousarray(data, dtype=np.float64)

    n_samples, n_features = data.shape
    logger.info(f"Running PCA: {n_samples} x {n_features} dataset, "
                f"t={n_components}, {n_workers} workers, style={style}")

    shared = SharedAccumulators(n_features, n_components)
    barrier = Barrier(n_workers)
    errors = []

    threads = []
    for part in partition_rows(n_samples, n_workers):
        ctx = WorkerContext(
            partition=part,
            block=data[part.offset:part.stop],
            n_components=n_components,
            style=style,
            barrier=barrier,
            shared=shared,
            logger=logger,
        )
        thread = threading.Thread(
            target=_run_worker,
            args=(ctx, errors, barrier),
            name=f"pca-worker-{part.rank}",
        )
        try:
            thread.start()
        except RuntimeError as e:
            logger.error(f"Unable to create thread {part.rank}: {e}")
            barrier.abort()
            for started in threads:
                started.join()
            raise WorkerSpawnError(f"Unable to create thread {part.rank}") from e
        threads.append(thread)

    for thread in threads:
        thread.join()

    if errors:
        raise errors[0]

    result = PCAResult(
        data=data,
        mean=shared.mean(),
        basis=shared.basis,
        eigenvalues=shared.eigenvalues,
        n_workers=n_workers,
        n_components=n_components,
        style=style,
        max_elapsed=shared.max_elapsed,
    )
    if style == GLOBAL_RESCALE:
        result.global_min = float(shared.global_min)
        result.global_max = float(shared.global_max)

    logger.info(f"  Retained energy with t={n_components}: {result.retained_energy * 100:.4f}%")
    return result
