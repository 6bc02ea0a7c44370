"""
Image, mask and composite models
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np

from ..core.errors import DecodeFailure, InvalidEncoding
from ..utils.codec import decode_rgba, encode_png, to_data_url


def _freeze(array: np.ndarray) -> np.ndarray:
    array = np.array(array, copy=True, order='C')
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class ImageAsset:
    """Decoded source image at native resolution"""
    pixels: np.ndarray
    file_name: Optional[str] = None
    width: int = field(init=False)
    height: int = field(init=False)

    def __post_init__(self):
        pixels = np.asarray(self.pixels)
        if pixels.ndim != 3 or pixels.shape[2] != 4 or pixels.dtype != np.uint8:
            raise InvalidEncoding(f"Expected RGBA uint8 pixels, got {pixels.shape} {pixels.dtype}")
        if pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise DecodeFailure(f"Image has no pixels: {pixels.shape[1]}x{pixels.shape[0]}")

        object.__setattr__(self, 'pixels', _freeze(pixels))
        object.__setattr__(self, 'width', int(pixels.shape[1]))
        object.__setattr__(self, 'height', int(pixels.shape[0]))

    @classmethod
    def from_bytes(cls, data: bytes, file_name: Optional[str] = None) -> 'ImageAsset':
        """Decode any format Pillow understands"""
        return cls(decode_rgba(data), file_name=file_name)

    @property
    def size(self) -> Tuple[int, int]:
        return (self.width, self.height)


@dataclass(frozen=True, eq=False)
class NativeMask:
    """
    Binary selection at native image resolution (0 or 255 per pixel)
    """
    data: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, 'data', _freeze(np.asarray(self.data, dtype=np.uint8)))

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def selected_count(self) -> int:
        return int(np.count_nonzero(self.data))

    def to_rgba(self) -> np.ndarray:
        """White where selected, black elsewhere, opaque throughout"""
        rgba = np.empty((self.height, self.width, 4), dtype=np.uint8)
        rgba[..., :3] = self.data[..., None]
        rgba[..., 3] = 255
        return rgba

    def to_png(self) -> bytes:
        return encode_png(self.to_rgba())

    def to_data_url(self) -> str:
        return to_data_url(self.to_png(), 'png')


@dataclass(frozen=True, eq=False)
class CompositeResult:
    """Source pixels with alpha replaced by mask intensity"""
    pixels: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, 'pixels', _freeze(self.pixels))

    @property
    def alpha(self) -> np.ndarray:
        return self.pixels[..., 3]

    def to_png(self) -> bytes:
        return encode_png(self.pixels)

    def to_data_url(self) -> str:
        return to_data_url(self.to_png(), 'png')
