"""
Resample a region to the exact pixel size of a physical print
"""

import logging

from PIL import Image

from .models import Rectangle
from .resolution import target_pixel_dimensions

logger = logging.getLogger(__name__)


def generate_exact_crop(
    img: Image.Image,
    rect: Rectangle,
    width_mm: float,
    height_mm: float,
    dpi: float,
) -> Image.Image:
    """Resample rect of img to round(mm -> px) at dpi on both axes.

    The output size depends only on the physical size and DPI, never on the
    size of rect. rect is expected to already have the target aspect ratio.

    Returns:
        New image in the same mode as img (alpha is preserved).
    """
    target = target_pixel_dimensions(width_mm, height_mm, dpi)
    box = (rect.x, rect.y, rect.right, rect.bottom)
    output = img.resize(target, Image.LANCZOS, box=box)
    logger.info(
        f"Exact crop: {rect.width:.0f}x{rect.height:.0f}px -> {target[0]}x{target[1]}px "
        f"({width_mm:g}x{height_mm:g}mm @ {dpi:g} DPI)"
    )
    return output
