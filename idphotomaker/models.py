"""
Pixel-space geometry shared by the crop, layout and pipeline modules
"""

import math
from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class Rectangle:
    """A region in pixel space. Coordinates are floats; x/y is the top-left."""
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def aspect_ratio(self) -> float:
        return self.width / self.height if self.height else 0.0

    def within(self, width: float, height: float, tolerance: float = 1e-6) -> bool:
        return (
            self.x >= -tolerance and self.y >= -tolerance
            and self.right <= width + tolerance
            and self.bottom <= height + tolerance
        )

    def to_box(self, width: int, height: int) -> Tuple[int, int, int, int]:
        """Integer (left, top, right, bottom) clamped to a width x height image.

        Always at least one pixel wide and tall.
        """
        left = min(max(0, int(math.floor(self.x + 0.5))), max(0, width - 1))
        top = min(max(0, int(math.floor(self.y + 0.5))), max(0, height - 1))
        right = min(width, max(left + 1, int(math.floor(self.right + 0.5))))
        bottom = min(height, max(top + 1, int(math.floor(self.bottom + 0.5))))
        return (left, top, right, bottom)

    def to_dict(self) -> dict:
        return {'x': self.x, 'y': self.y, 'width': self.width, 'height': self.height}

    @classmethod
    def from_center(cls, cx: float, cy: float, width: float, height: float) -> 'Rectangle':
        return cls(cx - width / 2, cy - height / 2, width, height)


@dataclass(frozen=True)
class FaceBox(Rectangle):
    """A detected face bounding box."""
    confidence: float = 1.0
