"""
Mask-to-alpha compositing
"""

import logging
from typing import Union

import numpy as np
import cv2

from ..core.errors import DecodeFailure, DimensionMismatch, InvalidEncoding
from ..models.image import CompositeResult, ImageAsset
from ..utils.codec import b64_to_bytes, decode_gray


logger = logging.getLogger(__name__)


class AlphaCompositor:
    """
    Writes a mask's grayscale intensity into an image's alpha channel.

    The mask may have any resolution; it is stretched to the image first.
    Soft (gray) masks give partial transparency.
    """

    def __init__(self, interpolation: int = cv2.INTER_LINEAR):
        self.interpolation = interpolation

    def composite(
        self,
        image: Union[ImageAsset, bytes],
        mask: Union[np.ndarray, bytes]
    ) -> CompositeResult:
        """
        Combine image and mask into an RGBA result
        """
        try:
            if not isinstance(image, ImageAsset):
                image = ImageAsset.from_bytes(image)
            if isinstance(mask, (bytes, bytearray)):
                mask = decode_gray(mask)
        except DecodeFailure as e:
            raise DimensionMismatch(f"Failed to decode image or mask: {e}") from e

        mask = self._to_intensity(np.asarray(mask))
        if mask.size == 0:
            raise DimensionMismatch("Mask has no pixels")

        width, height = image.width, image.height

        # Stretch mask to the image grid
        if mask.shape != (height, width):
            mask = cv2.resize(mask, (width, height), interpolation=self.interpolation)

        pixels = np.array(image.pixels, dtype=np.uint8, copy=True)
        if pixels.size != width * height * 4:
            raise InvalidEncoding(
                f"Buffer has {pixels.size} bytes, expected {width * height * 4}"
            )

        pixels[..., 3] = mask

        logger.debug(f"Composited {width}x{height} image, mean alpha {float(mask.mean()):.1f}")
        return CompositeResult(pixels)

    def apply(self, image_b64: str, mask_b64: str) -> str:
        """
        Composite base64 inputs (data URL prefix optional) into a PNG data URL
        """
        try:
            image_bytes = b64_to_bytes(image_b64)
            mask_bytes = b64_to_bytes(mask_b64)
        except DecodeFailure as e:
            raise DimensionMismatch(str(e)) from e

        return self.composite(image_bytes, mask_bytes).to_data_url()

    @staticmethod
    def _to_intensity(mask: np.ndarray) -> np.ndarray:
        """Reduce gray, RGB or RGBA arrays to uint8 luminance"""
        if mask.ndim == 3:
            if mask.shape[2] == 4:
                mask = cv2.cvtColor(np.ascontiguousarray(mask, dtype=np.uint8), cv2.COLOR_RGBA2GRAY)
            elif mask.shape[2] == 3:
                mask = cv2.cvtColor(np.ascontiguousarray(mask, dtype=np.uint8), cv2.COLOR_RGB2GRAY)
            else:
                mask = mask[..., 0]
        return np.ascontiguousarray(mask, dtype=np.uint8)
