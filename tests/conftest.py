# tests/conftest.py

import numpy as np
import pytest

from mask_editor.core.config import EditorConfig
from mask_editor.utils.codec import encode_png, to_data_url


def make_rgba(width, height, color=(200, 100, 50, 255)):
    image = np.zeros((height, width, 4), dtype=np.uint8)
    image[:] = color
    return image


def gradient_rgba(width, height):
    """RGB varies per pixel so channel preservation is observable"""
    ys, xs = np.mgrid[0:height, 0:width]
    image = np.empty((height, width, 4), dtype=np.uint8)
    image[..., 0] = (xs * 7) % 256
    image[..., 1] = (ys * 13) % 256
    image[..., 2] = ((xs + ys) * 3) % 256
    image[..., 3] = 255
    return image


def png_data_url(pixels):
    return to_data_url(encode_png(pixels), 'png')


@pytest.fixture
def config(tmp_path):
    return EditorConfig(
        output_dir=tmp_path / "output",
        cache_dir=tmp_path / "cache"
    )


@pytest.fixture
def image_100x50_url():
    return png_data_url(gradient_rgba(100, 50))
