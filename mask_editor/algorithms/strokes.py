"""
Freehand stroke accumulation in display space
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
import cv2


Point = Tuple[float, float]

# Fractional bits for sub-pixel drawing with cv2
SHIFT = 4
_ONE = 1 << SHIFT


def _fixed(point: Point) -> Tuple[int, int]:
    return (int(round(point[0] * _ONE)), int(round(point[1] * _ONE)))


@dataclass
class Stroke:
    """A connected run of points painted with one brush radius"""
    radius: float
    points: List[Point] = field(default_factory=list)

    @property
    def is_dot(self) -> bool:
        return len(self.points) == 1


class StrokeAccumulator:
    """
    Paints strokes and dots onto a display-space coverage buffer
    """

    def __init__(
        self,
        width: int,
        height: int,
        opacity: float = 0.4
    ):
        if not 0.0 < opacity <= 1.0:
            raise ValueError(f"Stroke opacity must be in (0, 1]: {opacity}")

        self.opacity = opacity
        self.paint_value = max(1, int(round(255 * opacity)))
        self.strokes: List[Stroke] = []
        self.has_paint = False
        self._current: Optional[Stroke] = None
        self.buffer = np.zeros((max(0, height), max(0, width)), dtype=np.uint8)

    @property
    def width(self) -> int:
        return self.buffer.shape[1]

    @property
    def height(self) -> int:
        return self.buffer.shape[0]

    @property
    def is_stroking(self) -> bool:
        return self._current is not None

    def begin_stroke(self, point: Point, radius: float) -> Stroke:
        """
        Start a stroke and stamp a dot so a click without movement still paints
        """
        if radius <= 0:
            raise ValueError(f"Brush radius must be positive: {radius}")

        self._current = Stroke(radius=float(radius), points=[tuple(point)])
        self.strokes.append(self._current)
        self._stamp(point, radius)
        return self._current

    def extend_stroke(self, point: Point) -> bool:
        """
        Paint a segment from the last point; no-op without an open stroke
        """
        stroke = self._current
        if stroke is None:
            return False

        last = stroke.points[-1]
        stroke.points.append(tuple(point))

        thickness = max(1, int(round(2 * stroke.radius)))
        cv2.line(
            self.buffer, _fixed(last), _fixed(point),
            self.paint_value, thickness, cv2.LINE_AA, SHIFT
        )
        # Round join with the next segment
        self._stamp(point, stroke.radius)
        return True

    def end_stroke(self) -> Optional[Stroke]:
        stroke, self._current = self._current, None
        return stroke

    def clear(self):
        """Discard all recorded paint"""
        self.buffer[:] = 0
        self.strokes = []
        self._current = None
        self.has_paint = False

    def resize(self, width: int, height: int):
        """
        Reallocate a cleared surface for a new viewport.

        `has_paint` survives so a pending remap can restore the content.
        """
        self.buffer = np.zeros((max(0, height), max(0, width)), dtype=np.uint8)
        self.strokes = []
        self._current = None

    def composite(self, other: np.ndarray):
        """Paint another coverage buffer of the same size over this one"""
        if other.shape != self.buffer.shape:
            raise ValueError(f"Buffer shape {other.shape} does not match surface {self.buffer.shape}")
        np.maximum(self.buffer, other, out=self.buffer)

    def is_painted(self, x: int, y: int) -> bool:
        """Does display pixel (x, y) carry paint"""
        if not (0 <= x < self.width and 0 <= y < self.height):
            return False
        return bool(self.buffer[y, x] > 0)

    def snapshot(self) -> np.ndarray:
        return self.buffer.copy()

    def _stamp(self, point: Point, radius: float):
        cv2.circle(
            self.buffer, _fixed(point), max(1, int(round(radius * _ONE))),
            self.paint_value, -1, cv2.LINE_AA, SHIFT
        )
        self.has_paint = True
