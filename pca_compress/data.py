"""
Image I/O.

Images are handled as single-channel intensity matrices: rows of pixels are
samples, columns are features.
"""

import os

import numpy as np
from PIL import Image, UnidentifiedImageError

from .errors import PCACompressError


def read_image_to_matrix(path: str) -> np.ndarray:
    """
    Load an image as an 8-bit grayscale matrix.

    Args:
        path: Path to any image format Pillow can decode

    Returns:
        float64 array of shape (height, width) with values in [0, 255]
    """
    try:
        with Image.open(path) as img:
            gray = img.convert("L")
            return np.asarray(gray, dtype=np.float64)
    except (OSError, UnidentifiedImageError) as e:
        raise PCACompressError(f"Cannot read image {path}: {e}") from e


def matrix_to_image(matrix: np.ndarray) -> Image.Image:
    """Clip a matrix into [0, 255] and truncate it to an 8-bit grayscale image."""
    pixels = np.clip(matrix, 0, 255).astype(np.uint8)
    return Image.fromarray(pixels)


def write_matrix_to_image(path: str, matrix: np.ndarray) -> str:
    """Write a (height, width) matrix to ``path``; the format follows the extension."""
    out_dir = os.path.dirname(path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)

    try:
        matrix_to_image(matrix).save(path)
    except (OSError, ValueError) as e:
        raise PCACompressError(f"Cannot write image {path}: {e}") from e
    return path
