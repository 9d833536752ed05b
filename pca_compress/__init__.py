"""
Parallel PCA for lossy image compression.

An image is treated as an (s x d) matrix: pixel rows are samples, pixel
columns are features. A fixed pool of workers, each owning a contiguous
block of rows, cooperates through barriers and lock-guarded accumulators to
compute the global mean and scatter matrix, the top-t eigenvectors, and the
rank-t reconstruction of every block:

    x_hat = (x - mu) Et Et^T + mu

followed by a clamp or a global rescale into the 8-bit intensity range.

Modules:
    partition   - Row distribution across workers
    sync        - Barrier and shared reduction accumulators
    linalg      - SVD / eigendecomposition / matmul wrappers
    worker      - Per-thread PCA pipeline
    core        - Orchestration (run_parallel_pca, PCAResult)
    data        - Image <-> matrix I/O
    evaluation  - Reconstruction metrics
    plotting    - Diagnostic figures
    utils       - Configuration, logging
    compress    - Command-line entry point
    mpi_pca     - MPI backend (import separately to avoid MPI init)
"""

from .core import (
    PCAResult,
    run_parallel_pca,
    validate_inputs,
)

from .errors import (
    PCACompressError,
    ConfigurationError,
    WorkerSpawnError,
    DecompositionError,
)

from .partition import (
    Partition,
    distribute_rows,
    partition_rows,
)

from .sync import (
    Barrier,
    BarrierAbortedError,
    SharedAccumulators,
)

from .utils import (
    PCAConfig,
    load_config,
    save_config,
    setup_logging,
)

# NOTE: mpi_pca not imported here to avoid MPI initialization on import.
# Import directly when needed: from pca_compress.mpi_pca import run_pca_mpi

__version__ = "1.0.0"
