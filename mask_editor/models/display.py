"""
Display-space fitting of an image inside a viewport
"""

from dataclasses import dataclass
from typing import Tuple

import numpy as np


def round_half_up(value):
    """Round halves towards +inf, for scalars and arrays"""
    return np.floor(np.asarray(value, dtype=np.float64) + 0.5).astype(np.int64)


@dataclass(frozen=True)
class DisplayRect:
    """
    Fitted, centered rectangle the native image occupies in the viewport
    """
    offset_x: int = 0
    offset_y: int = 0
    draw_w: int = 0
    draw_h: int = 0
    scale: float = 1.0

    @property
    def is_empty(self) -> bool:
        """Nothing is drawn for an empty rect"""
        return self.draw_w <= 0 or self.draw_h <= 0

    @property
    def box(self) -> Tuple[int, int, int, int]:
        """(x, y, w, h) of the drawn area"""
        return (self.offset_x, self.offset_y, self.draw_w, self.draw_h)

    def map_x(self, xs) -> np.ndarray:
        """Native x coordinates to integer display columns"""
        return round_half_up(np.asarray(xs, dtype=np.float64) * self.scale + self.offset_x)

    def map_y(self, ys) -> np.ndarray:
        """Native y coordinates to integer display rows"""
        return round_half_up(np.asarray(ys, dtype=np.float64) * self.scale + self.offset_y)

    def to_display(self, points: np.ndarray) -> np.ndarray:
        """
        Map native (x, y) points to integer display pixels
        """
        points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        return np.stack([self.map_x(points[:, 0]), self.map_y(points[:, 1])], axis=1)

    def to_native(self, points: np.ndarray) -> np.ndarray:
        """
        Map display (x, y) points back to fractional native coordinates
        """
        points = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        native = np.empty(points.shape, dtype=np.float64)
        native[:, 0] = (points[:, 0] - self.offset_x) / self.scale
        native[:, 1] = (points[:, 1] - self.offset_y) / self.scale
        return native


EMPTY_RECT = DisplayRect()


def compute_display_rect(
    image_w: int,
    image_h: int,
    viewport_w: int,
    viewport_h: int
) -> DisplayRect:
    """
    Fit an image into a viewport without upscaling and center it.

    Any zero dimension yields the empty rect instead of dividing by zero.
    """
    if min(image_w, image_h, viewport_w, viewport_h) <= 0:
        return EMPTY_RECT

    scale = min(viewport_w / image_w, viewport_h / image_h, 1.0)
    draw_w = int(round_half_up(image_w * scale))
    draw_h = int(round_half_up(image_h * scale))
    offset_x = int(round_half_up((viewport_w - draw_w) / 2))
    offset_y = int(round_half_up((viewport_h - draw_h) / 2))

    return DisplayRect(
        offset_x=offset_x,
        offset_y=offset_y,
        draw_w=draw_w,
        draw_h=draw_h,
        scale=scale
    )
