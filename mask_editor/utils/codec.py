"""
Base64 / data URL handling and image encode-decode helpers
"""

import base64
import binascii
import io
import re
from typing import Tuple

import numpy as np
from PIL import Image, UnidentifiedImageError

from ..core.errors import DecodeFailure, InvalidMaskEncoding


DATA_URL_PATTERN = re.compile(r'^data:image/(\w+);base64,(.+)$')
DATA_URL_PREFIX = re.compile(r'^data:image/\w+;base64,')


def parse_data_url(data_url: str) -> Tuple[str, bytes]:
    """
    Split a `data:image/<ext>;base64,<payload>` URL into (ext, bytes)
    """
    if not isinstance(data_url, str):
        raise InvalidMaskEncoding("Data URL must be a string")

    match = DATA_URL_PATTERN.match(data_url)
    if not match:
        raise InvalidMaskEncoding("Invalid mask data URL format")

    ext, payload = match.groups()
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidMaskEncoding(f"Invalid base64 payload: {e}") from e

    return ext, data


def strip_prefix(b64: str) -> str:
    """Drop an optional data URL prefix"""
    return DATA_URL_PREFIX.sub('', b64, count=1)


def b64_to_bytes(b64: str) -> bytes:
    """
    Decode base64 with or without a data URL prefix
    """
    try:
        return base64.b64decode(strip_prefix(b64.strip()))
    except (binascii.Error, ValueError) as e:
        raise DecodeFailure(f"Invalid base64 data: {e}") from e


def to_data_url(data: bytes, ext: str = 'png') -> str:
    return f"data:image/{ext};base64,{base64.b64encode(data).decode('ascii')}"


def _open(data: bytes) -> Image.Image:
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise DecodeFailure(f"Failed to decode image: {e}") from e
    return _to_8bit(image)


def _to_8bit(image: Image.Image) -> Image.Image:
    """
    Rescale 16-bit and 32-bit integer gray modes, which `convert` would clamp
    """
    if image.mode.startswith("I;16") or image.mode == "I":
        gray = np.asarray(image).astype(np.int64) >> 8
        return Image.fromarray(np.clip(gray, 0, 255).astype(np.uint8))
    return image


def decode_rgba(data: bytes) -> np.ndarray:
    """
    Decode image bytes to an (H, W, 4) uint8 array
    """
    return np.array(_open(data).convert('RGBA'), dtype=np.uint8)


def decode_gray(data: bytes) -> np.ndarray:
    """
    Decode image bytes to (H, W) uint8 luminance
    """
    return np.array(_open(data).convert('L'), dtype=np.uint8)


def encode_png(pixels: np.ndarray) -> bytes:
    """
    Encode a gray, RGB or RGBA uint8 array as PNG
    """
    buffer = io.BytesIO()
    Image.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8)).save(buffer, format='PNG')
    return buffer.getvalue()
