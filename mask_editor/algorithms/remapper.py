"""
Re-projection of painted surfaces across viewport resizes
"""

import logging
from dataclasses import dataclass
from typing import Tuple, Union

import numpy as np
import cv2

from ..core.errors import DecodeFailure
from ..models.display import DisplayRect


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemapRequest:
    """
    A scheduled remap; only the latest sequence number may complete
    """
    sequence: int
    snapshot: bytes
    old_rect: DisplayRect
    new_rect: DisplayRect
    viewport: Tuple[int, int]


class MaskRemapper:
    """
    Blits the old drawn-image box of a painted surface into the new box.

    Scaling is a single affine resample, so soft stroke edges may drift a
    little over repeated resizes.
    """

    def __init__(self, interpolation: int = cv2.INTER_LINEAR):
        self.interpolation = interpolation

    @staticmethod
    def should_remap(has_paint: bool, old_rect: DisplayRect) -> bool:
        return has_paint and not old_rect.is_empty

    def snapshot(self, painted: np.ndarray) -> bytes:
        """
        Encode the painted surface losslessly
        """
        ok, encoded = cv2.imencode('.png', painted)
        if not ok:
            raise DecodeFailure("Failed to encode mask snapshot")
        return encoded.tobytes()

    def decode(self, snapshot: bytes) -> np.ndarray:
        decoded = cv2.imdecode(np.frombuffer(snapshot, dtype=np.uint8), cv2.IMREAD_GRAYSCALE)
        if decoded is None:
            raise DecodeFailure("Failed to decode mask snapshot")
        return decoded

    def remap(
        self,
        source: Union[bytes, np.ndarray],
        old_rect: DisplayRect,
        new_rect: DisplayRect,
        viewport: Tuple[int, int]
    ) -> np.ndarray:
        """
        Produce a surface of size `viewport` (w, h) with the old rect's
        contents scaled into the new rect
        """
        painted = self.decode(source) if isinstance(source, (bytes, bytearray)) else source
        viewport_w, viewport_h = viewport
        output = np.zeros((viewport_h, viewport_w), dtype=np.uint8)

        if old_rect.is_empty or new_rect.is_empty:
            return output

        # Crop the old box, clipped to the source surface
        ox, oy, ow, oh = old_rect.box
        crop = painted[oy:oy + oh, ox:ox + ow]
        if crop.size == 0:
            return output
        if crop.shape != (oh, ow):
            padded = np.zeros((oh, ow), dtype=np.uint8)
            padded[:crop.shape[0], :crop.shape[1]] = crop
            crop = padded

        nx, ny, nw, nh = new_rect.box
        if (nw, nh) == (ow, oh):
            scaled = crop
        else:
            scaled = cv2.resize(crop, (nw, nh), interpolation=self.interpolation)

        # Paste, clipped to the new surface
        x1 = min(nx + nw, viewport_w)
        y1 = min(ny + nh, viewport_h)
        if x1 <= nx or y1 <= ny:
            return output
        output[ny:y1, nx:x1] = scaled[:y1 - ny, :x1 - nx]

        logger.debug(f"Remapped mask box {old_rect.box} -> {new_rect.box}")
        return output

    def complete(self, request: RemapRequest) -> np.ndarray:
        return self.remap(request.snapshot, request.old_rect, request.new_rect, request.viewport)
