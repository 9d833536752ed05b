"""
Dense linear algebra used by the PCA pipeline.

Thin wrappers over numpy / scipy with fixed input/output contracts:
- svd                       (U full, singular values, V^T full)
- symmetric_eigendecompose  (eigenvalues ascending, eigenvectors as columns)
- matrix_multiply           (optional transposes, optional output buffer)
- scale_vector              (in-place scalar multiply)

LAPACK failures are re-raised as DecompositionError.
"""

from typing import Optional

import numpy as np
from scipy.linalg import eigh

from .errors import DecompositionError


def svd(a: np.ndarray) -> tuple:
    """
    Full singular value decomposition a = U @ diag(s) @ Vt.

    Args:
        a: Matrix of shape (rows, cols)

    Returns:
        Tuple of (U (rows, rows), s (min(rows, cols),), Vt (cols, cols))
    """
    try:
        return np.linalg.svd(a, full_matrices=True)
    except np.linalg.LinAlgError as e:
        raise DecompositionError(f"SVD of {a.shape} matrix failed: {e}") from e


def symmetric_eigendecompose(m: np.ndarray, overwrite: bool = False) -> tuple:
    """
    Eigendecomposition of a symmetric matrix.

    Args:
        m: Symmetric matrix (d, d)
        overwrite: Allow LAPACK to destroy ``m``

    Returns:
        Tuple of (eigenvalues ascending (d,), eigenvectors as columns (d, d))
    """
    try:
        return eigh(m, overwrite_a=overwrite)
    except (np.linalg.LinAlgError, ValueError) as e:
        raise DecompositionError(f"Eigendecomposition of {m.shape} matrix failed: {e}") from e


def matrix_multiply(
    a: np.ndarray,
    b: np.ndarray,
    transpose_a: bool = False,
    transpose_b: bool = False,
    out: Optional[np.ndarray] = None,
) -> np.ndarray:
    """Compute op(a) @ op(b), writing into ``out`` when given."""
    lhs = a.T if transpose_a else a
    rhs = b.T if transpose_b else b
    if lhs.shape[1] != rhs.shape[0]:
        raise ValueError(
            f"Inner dimensions do not match: {lhs.shape} @ {rhs.shape}"
        )
    if out is None:
        return lhs @ rhs
    return np.matmul(lhs, rhs, out=out)


def scale_vector(vector: np.ndarray, scalar: float) -> np.ndarray:
    """Scale ``vector`` in place and return it."""
    vector *= scalar
    return vector
