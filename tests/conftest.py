import logging

import numpy as np
import pytest
from PIL import Image

from pca_compress.partition import partition_rows


@pytest.fixture
def logger():
    return logging.getLogger("pca_compress.tests")


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def small_dataset():
    """The 4 x 3 worked example: two partitions of two rows each."""
    return np.array([
        [1.0, 2.0, 3.0],
        [4.0, 5.0, 6.0],
        [7.0, 8.0, 9.0],
        [10.0, 11.0, 12.0],
    ])


@pytest.fixture
def low_rank_dataset(rng):
    """37 x 12 matrix of exact rank 3 around intensity 128, well inside [0, 255]."""
    scores = rng.standard_normal((37, 3))
    loadings = rng.standard_normal((3, 12)) * 10.0
    return 128.0 + scores @ loadings


@pytest.fixture
def noisy_dataset(rng):
    """Full-rank 41 x 10 matrix: a rank-3 signal plus small noise."""
    scores = rng.standard_normal((41, 3))
    loadings = rng.standard_normal((3, 10)) * 8.0
    return 128.0 + scores @ loadings + rng.standard_normal((41, 10))


@pytest.fixture
def image_file(tmp_path, rng):
    """A 40 x 30 grayscale PNG."""
    rows = np.linspace(0, 200, 40)[:, None]
    cols = np.linspace(0, 50, 30)[None, :]
    pixels = rows + cols + rng.integers(0, 5, size=(40, 30))
    path = tmp_path / "input.png"
    Image.fromarray(pixels.astype(np.uint8)).save(path)
    return path


def reference_reconstruction(X, n_workers, n_components):
    """Serial version of the pipeline math, before normalization."""
    mean = X.mean(axis=0)
    Xc = X - mean
    blocks = []
    for part in partition_rows(X.shape[0], n_workers):
        B = Xc[part.offset:part.stop]
        if B.shape[0] == 0:
            continue
        U, s, Vt = np.linalg.svd(B, full_matrices=False)
        s[n_components:] = 0.0
        blocks.append((U * s) @ Vt)
    P = np.vstack(blocks)
    _, eigv = np.linalg.eigh(P.T @ P)
    Et = eigv[:, ::-1][:, :n_components]
    return P @ Et @ Et.T + mean


@pytest.fixture
def reference():
    return reference_reconstruction
