import numpy as np
import pytest
from PIL import Image

from pca_compress.data import matrix_to_image, read_image_to_matrix, write_matrix_to_image
from pca_compress.errors import PCACompressError


def test_read_grayscale_png(image_file):
    matrix = read_image_to_matrix(str(image_file))
    assert matrix.shape == (40, 30)
    assert matrix.dtype == np.float64
    assert 0 <= matrix.min() and matrix.max() <= 255


def test_rgb_is_converted_to_grayscale(tmp_path):
    rgb = np.zeros((8, 5, 3), dtype=np.uint8)
    rgb[..., 0] = 255
    path = tmp_path / "red.png"
    Image.fromarray(rgb).save(path)

    matrix = read_image_to_matrix(str(path))
    assert matrix.shape == (8, 5)
    # ITU-R 601-2 luma of pure red
    assert np.all(matrix == 76)


def test_png_roundtrip_exact(tmp_path, rng):
    pixels = rng.integers(0, 256, size=(7, 9)).astype(float)
    path = write_matrix_to_image(str(tmp_path / "out" / "img.png"), pixels)
    np.testing.assert_array_equal(read_image_to_matrix(path), pixels)


def test_values_clipped_and_truncated():
    img = matrix_to_image(np.array([[-3.0, 12.7], [255.99, 400.0]]))
    np.testing.assert_array_equal(np.asarray(img), [[0, 12], [255, 255]])
    assert img.mode == "L"


def test_missing_file(tmp_path):
    with pytest.raises(PCACompressError):
        read_image_to_matrix(str(tmp_path / "nope.png"))


def test_not_an_image(tmp_path):
    path = tmp_path / "fake.jpg"
    path.write_text("not an image")
    with pytest.raises(PCACompressError):
        read_image_to_matrix(str(path))
