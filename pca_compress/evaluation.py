"""
Reconstruction quality metrics.
"""

import numpy as np


def reconstruction_error(original: np.ndarray, reconstructed: np.ndarray) -> tuple:
    """Compute ||original - reconstructed||_F, absolute and relative."""
    abs_err = np.linalg.norm(reconstructed - original, 'fro')
    norm = np.linalg.norm(original, 'fro')
    rel_err = abs_err / norm if norm > 0 else 0.0
    return float(abs_err), float(rel_err)


def psnr(original: np.ndarray, reconstructed: np.ndarray, peak: float = 255.0) -> float:
    """Peak signal-to-noise ratio in dB (inf for identical inputs)."""
    mse = np.mean((reconstructed - original) ** 2)
    if mse == 0:
        return float("inf")
    return float(10 * np.log10(peak ** 2 / mse))


def retained_energy(eigs: np.ndarray) -> np.ndarray:
    """Cumulative fraction of energy for r = 1, ..., len(eigs)."""
    eigs_positive = np.maximum(eigs, 0)
    total = np.sum(eigs_positive)
    if total == 0:
        return np.ones_like(eigs_positive)
    return np.cumsum(eigs_positive) / total


def compression_ratio(n_samples: int, n_features: int, n_components: int) -> float:
    """
    Storage ratio of the raw matrix to its PCA representation.

    The representation holds the scores (s x t), the basis (d x t) and the
    mean (d).
    """
    stored = n_samples * n_components + n_features * n_components + n_features
    return n_samples * n_features / stored
