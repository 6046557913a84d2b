"""
Face-anchored crop rectangle calculation
"""

import logging
from typing import Optional, Tuple

from .config import DEFAULT_FRAMING, FALLBACK_CROP_WIDTH, FramingPadding
from .models import FaceBox, Rectangle

logger = logging.getLogger(__name__)

# Degenerate inputs (zero-sized face or image) collapse to this extent
_MIN_EXTENT = 1e-6


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


def _match_ratio(width: float, height: float, aspect_ratio: float) -> Tuple[float, float]:
    """Grow the shorter side of width x height until width/height == aspect_ratio."""
    if height > 0 and width / height > aspect_ratio:
        return width, width / aspect_ratio
    return height * aspect_ratio, height


def fit_around_center(
    cx: float,
    cy: float,
    width: float,
    height: float,
    aspect_ratio: float,
    image_width: float,
    image_height: float,
) -> Rectangle:
    """Rectangle of the given size centered on (cx, cy), shrunk to fit the image.

    When it crosses an edge, both dimensions are scaled by one factor so the
    center and aspect ratio are kept.
    """
    if width <= 0 or height <= 0:
        width = _MIN_EXTENT * aspect_ratio
        height = _MIN_EXTENT

    rect = Rectangle.from_center(cx, cy, width, height)
    if rect.within(image_width, image_height, tolerance=0):
        return rect

    max_width = min(cx, image_width - cx) * 2
    max_height = min(cy, image_height - cy) * 2

    if max_width / aspect_ratio <= max_height:
        # Width is the limiting factor
        width = max_width
        height = max_width / aspect_ratio
    else:
        height = max_height
        width = max_height * aspect_ratio

    if width <= 0 or height <= 0:
        # Center sits on an edge: keep a minimal rectangle just inside it
        width = _MIN_EXTENT * aspect_ratio
        height = _MIN_EXTENT

    x = _clamp(cx - width / 2, 0, max(0.0, image_width - width))
    y = _clamp(cy - height / 2, 0, max(0.0, image_height - height))
    return Rectangle(x, y, width, height)


def calculate_centered_crop_area(aspect_ratio: float, image_width: float, image_height: float) -> Rectangle:
    """Fallback crop when no face is known: 40% of the image width, centered."""
    width = image_width * FALLBACK_CROP_WIDTH
    height = width / aspect_ratio
    return fit_around_center(
        image_width / 2, image_height / 2, width, height,
        aspect_ratio, image_width, image_height,
    )


def calculate_initial_crop_area(
    face: Optional[FaceBox],
    aspect_ratio: float,
    image_width: float,
    image_height: float,
    padding: FramingPadding = DEFAULT_FRAMING,
) -> Rectangle:
    """Crop rectangle framing head and shoulders around a detected face.

    The face box is expanded by `padding` (hair above, shoulders below and on
    the sides), widened or heightened to `aspect_ratio`, and centered on the
    face center. If that crosses an image edge it is shrunk around the same
    center, so the result always lies inside the image.

    Args:
        face: Detected face, or None for a centered fallback.
        aspect_ratio: Target width / height.
        image_width: Source image width in pixels.
        image_height: Source image height in pixels.
        padding: Expansion factors, in multiples of the face size.

    Returns:
        Rectangle within [0, image_width] x [0, image_height].
    """
    if face is None:
        return calculate_centered_crop_area(aspect_ratio, image_width, image_height)

    face_cx, face_cy = face.center
    cx = _clamp(face_cx, 0, image_width)
    cy = _clamp(face_cy, 0, image_height)

    target_width = face.width * (1 + 2 * padding.side)
    target_height = face.height * (1 + padding.above + padding.below)

    width, height = _match_ratio(target_width, target_height, aspect_ratio)
    crop = fit_around_center(cx, cy, width, height, aspect_ratio, image_width, image_height)

    logger.debug(
        f"Crop for face ({face.x:.0f}, {face.y:.0f}, {face.width:.0f}x{face.height:.0f}): "
        f"({crop.x:.1f}, {crop.y:.1f}, {crop.width:.1f}x{crop.height:.1f})"
    )
    return crop
