"""
Exception types for the PCA compression pipeline.

All errors raised on purpose by the package derive from PCACompressError so
the command-line entry point can report them with a single handler.
"""

import numpy as np


class PCACompressError(Exception):
    """Base class for pipeline errors."""


class ConfigurationError(PCACompressError, ValueError):
    """Invalid arguments or configuration, detected before any worker starts."""


class WorkerSpawnError(PCACompressError, RuntimeError):
    """A worker thread could not be started."""


class DecompositionError(PCACompressError, np.linalg.LinAlgError):
    """SVD or eigendecomposition failed (e.g. did not converge)."""
