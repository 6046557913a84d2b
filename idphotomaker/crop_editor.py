"""
Crop rectangle state as a pure reducer: (rectangle, event) -> rectangle
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .config import DPI_THRESHOLD, MIN_CROP_SIZE, SizeSpec
from .crop import fit_around_center
from .models import Rectangle
from .resolution import calculate_dpi


class ResizeHandle(Enum):
    NW = 'nw'
    NE = 'ne'
    SW = 'sw'
    SE = 'se'


@dataclass(frozen=True)
class Drag:
    dx: float
    dy: float


@dataclass(frozen=True)
class ResizeCorner:
    handle: ResizeHandle
    dx: float


@dataclass(frozen=True)
class SizeSpecChanged:
    aspect_ratio: float


@dataclass(frozen=True)
class ExternalReset:
    rectangle: Rectangle


CropEvent = Union[Drag, ResizeCorner, SizeSpecChanged, ExternalReset]


def _drag(rect: Rectangle, event: Drag, image_width: float, image_height: float) -> Rectangle:
    x = max(0.0, min(rect.x + event.dx, image_width - rect.width))
    y = max(0.0, min(rect.y + event.dy, image_height - rect.height))
    return Rectangle(x, y, rect.width, rect.height)


def _resize(
    rect: Rectangle,
    event: ResizeCorner,
    image_width: float,
    image_height: float,
    aspect_ratio: float,
    min_size: float,
) -> Rectangle:
    handle = event.handle
    grows_left = handle in (ResizeHandle.NW, ResizeHandle.SW)
    grows_up = handle in (ResizeHandle.NW, ResizeHandle.NE)

    # Dragging a left handle to the right shrinks the rectangle
    width = rect.width - event.dx if grows_left else rect.width + event.dx
    width = max(width, min_size)
    height = width / aspect_ratio

    # The corner opposite the handle stays put
    x = rect.right - width if grows_left else rect.x
    y = rect.bottom - height if grows_up else rect.y

    # Clip to the image, keeping the ratio
    if x < 0:
        width += x
        height = width / aspect_ratio
        x = 0.0
        if grows_up:
            y = rect.bottom - height
    if y < 0:
        height += y
        width = height * aspect_ratio
        y = 0.0
        if grows_left:
            x = rect.right - width
    if x + width > image_width:
        width = image_width - x
        height = width / aspect_ratio
        if grows_up:
            y = rect.bottom - height
    if y + height > image_height:
        height = image_height - y
        width = height * aspect_ratio
        if grows_left:
            x = rect.right - width

    return Rectangle(x, y, width, height)


def _change_ratio(rect: Rectangle, aspect_ratio: float, image_width: float, image_height: float) -> Rectangle:
    if abs(rect.aspect_ratio - aspect_ratio) <= 1e-3:
        return rect

    cx, cy = rect.center
    if aspect_ratio > rect.aspect_ratio:
        # New size is wider: keep height
        height = rect.height
        width = height * aspect_ratio
    else:
        width = rect.width
        height = width / aspect_ratio
    return fit_around_center(cx, cy, width, height, aspect_ratio, image_width, image_height)


def reduce_crop(
    rect: Rectangle,
    event: CropEvent,
    image_width: float,
    image_height: float,
    aspect_ratio: float,
    min_size: float = MIN_CROP_SIZE,
) -> Rectangle:
    """Apply one editing event to a crop rectangle and return the new one.

    `aspect_ratio` is the ratio currently in force; a SizeSpecChanged event
    carries its own.
    """
    if isinstance(event, Drag):
        return _drag(rect, event, image_width, image_height)
    if isinstance(event, ResizeCorner):
        return _resize(rect, event, image_width, image_height, aspect_ratio, min_size)
    if isinstance(event, SizeSpecChanged):
        return _change_ratio(rect, event.aspect_ratio, image_width, image_height)
    if isinstance(event, ExternalReset):
        return event.rectangle
    raise TypeError(f"Unknown crop event: {event!r}")


def dpi_warning(rect: Rectangle, size: SizeSpec, threshold: int = DPI_THRESHOLD) -> Optional[str]:
    """Advisory message when the crop would print below threshold DPI."""
    result = calculate_dpi(rect.width, rect.height, size.width_mm, size.height_mm)
    if result.min_dpi >= threshold:
        return None
    return (
        f"Crop resolution is {round(result.min_dpi)} DPI, below the recommended "
        f"{threshold} DPI for {size.description}. Print quality may suffer."
    )
