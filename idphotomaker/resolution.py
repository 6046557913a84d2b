"""
Print resolution math: mm <-> pixels and effective DPI of a crop
"""

from dataclasses import dataclass
from typing import Tuple

from .config import MM_PER_INCH, DPI_THRESHOLD


@dataclass(frozen=True)
class DPIResult:
    horizontal_dpi: float
    vertical_dpi: float
    min_dpi: float


def mm_to_pixels(mm: float, dpi: float) -> float:
    """pixels = mm * dpi / 25.4 (unrounded)"""
    return mm * dpi / MM_PER_INCH


def target_pixel_dimensions(width_mm: float, height_mm: float, dpi: float) -> Tuple[int, int]:
    """Exact pixel size of a physical print at dpi, rounded to whole pixels."""
    return (round(mm_to_pixels(width_mm, dpi)), round(mm_to_pixels(height_mm, dpi)))


def calculate_dpi(width_px: float, height_px: float, width_mm: float, height_mm: float) -> DPIResult:
    """Effective DPI when width_px x height_px pixels print at width_mm x height_mm.

    The smaller axis is the limiting factor.
    """
    horizontal = width_px / (width_mm / MM_PER_INCH)
    vertical = height_px / (height_mm / MM_PER_INCH)
    return DPIResult(horizontal_dpi=horizontal, vertical_dpi=vertical, min_dpi=min(horizontal, vertical))


def meets_threshold(result: DPIResult, threshold: float = DPI_THRESHOLD) -> bool:
    return result.min_dpi >= threshold
