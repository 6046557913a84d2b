"""
Print sheet layout planning: how many copies fit, and where
"""

import math
from dataclasses import dataclass
from typing import Dict, Iterator, Optional, Tuple, Union

from .config import DPI, MIN_GUTTER_MM, PAPERS, SIZES, PaperSpec, SizeSpec
from .resolution import mm_to_pixels


@dataclass(frozen=True)
class Margins:
    """Non-printable edges of the paper, in millimeters."""
    top: float = 0.0
    bottom: float = 0.0
    left: float = 0.0
    right: float = 0.0


NO_MARGINS = Margins()


@dataclass(frozen=True)
class LayoutPlan:
    """Grid arrangement of photo copies on a sheet. All lengths in pixels."""
    paper_key: str
    paper_width_px: int
    paper_height_px: int
    columns: int
    rows: int
    photo_width_px: float
    photo_height_px: float
    gutter_x: float
    gutter_y: float
    origin_x: float
    origin_y: float
    total_count: int
    margin_top_px: float = 0.0
    margin_bottom_px: float = 0.0
    margin_left_px: float = 0.0
    margin_right_px: float = 0.0
    fits: bool = True

    @property
    def used_width(self) -> float:
        if not self.columns:
            return 0.0
        return self.columns * self.photo_width_px + (self.columns - 1) * self.gutter_x

    @property
    def used_height(self) -> float:
        if not self.rows:
            return 0.0
        return self.rows * self.photo_height_px + (self.rows - 1) * self.gutter_y

    def positions(self) -> Iterator[Tuple[float, float]]:
        """Top-left corner of every copy, row by row."""
        for row in range(self.rows):
            for col in range(self.columns):
                yield (
                    self.origin_x + col * (self.photo_width_px + self.gutter_x),
                    self.origin_y + row * (self.photo_height_px + self.gutter_y),
                )

    def to_dict(self) -> dict:
        return {
            'paper': self.paper_key,
            'paper_width_px': self.paper_width_px,
            'paper_height_px': self.paper_height_px,
            'columns': self.columns,
            'rows': self.rows,
            'total_count': self.total_count,
            'photo_width_px': self.photo_width_px,
            'photo_height_px': self.photo_height_px,
            'gutter_x': self.gutter_x,
            'gutter_y': self.gutter_y,
            'origin_x': self.origin_x,
            'origin_y': self.origin_y,
            'fits': self.fits,
        }


def _axis(printable: float, photo: float, gutter: float) -> Tuple[int, float, float]:
    """Count, gutter and centering offset along one axis."""
    count = max(1, math.floor(printable / (photo + gutter)))
    if count > 1:
        spacing = (printable - count * photo) / (count + 1)
        return count, spacing, spacing
    return count, 0.0, (printable - photo) / 2


def calculate_layout(
    paper: Union[PaperSpec, str],
    size: Union[SizeSpec, str],
    dpi: float = DPI,
    margins: Optional[Margins] = None,
) -> LayoutPlan:
    """Plan a grid of copies of a size on a paper sheet.

    Copies are spaced by at least MIN_GUTTER_MM; leftover space is spread
    evenly so the grid sits centered in the printable area (the paper minus
    the margins). A single copy is always planned, even if it overflows the
    printable area (`fits` is then False). When the margins leave no
    printable area at all, the plan holds zero copies.

    Args:
        paper: PaperSpec or paper key.
        size: SizeSpec or size key.
        dpi: Resolution used to convert photo size, margins and gutter.
        margins: Printer margins, default none.

    Raises:
        KeyError: If a key is not registered.
    """
    paper = PAPERS.resolve(paper)
    size = SIZES.resolve(size)
    margins = margins or NO_MARGINS

    top = mm_to_pixels(margins.top, dpi)
    bottom = mm_to_pixels(margins.bottom, dpi)
    left = mm_to_pixels(margins.left, dpi)
    right = mm_to_pixels(margins.right, dpi)

    printable_width = paper.width_px - left - right
    printable_height = paper.height_px - top - bottom

    photo_width = mm_to_pixels(size.width_mm, dpi)
    photo_height = mm_to_pixels(size.height_mm, dpi)

    common = dict(
        paper_key=paper.key,
        paper_width_px=paper.width_px,
        paper_height_px=paper.height_px,
        photo_width_px=photo_width,
        photo_height_px=photo_height,
        margin_top_px=top,
        margin_bottom_px=bottom,
        margin_left_px=left,
        margin_right_px=right,
    )

    if printable_width <= 0 or printable_height <= 0:
        return LayoutPlan(
            columns=0, rows=0, total_count=0,
            gutter_x=0.0, gutter_y=0.0,
            origin_x=left, origin_y=top,
            fits=False, **common,
        )

    gutter = mm_to_pixels(MIN_GUTTER_MM, dpi)
    columns, gutter_x, offset_x = _axis(printable_width, photo_width, gutter)
    rows, gutter_y, offset_y = _axis(printable_height, photo_height, gutter)

    return LayoutPlan(
        columns=columns,
        rows=rows,
        total_count=columns * rows,
        gutter_x=gutter_x,
        gutter_y=gutter_y,
        origin_x=left + offset_x,
        origin_y=top + offset_y,
        fits=photo_width <= printable_width and photo_height <= printable_height,
        **common,
    )


# =============================================================================
# MARGIN VALIDATION
# =============================================================================

def validate_margin(margin_mm: float, paper_dimension_mm: float, name: str) -> Optional[str]:
    """Error message for one margin, or None if it is acceptable."""
    if margin_mm < 0:
        return f"{name} margin cannot be negative"
    max_margin = paper_dimension_mm / 2
    if margin_mm > max_margin:
        return f"{name} margin cannot exceed {max_margin:g}mm (50% of paper dimension)"
    return None


def validate_margins(margins: Margins, paper: Union[PaperSpec, str]) -> Dict[str, str]:
    """Per-side error messages; empty when all four margins are valid."""
    paper = PAPERS.resolve(paper)
    checks = (
        ('top', margins.top, paper.height_mm),
        ('bottom', margins.bottom, paper.height_mm),
        ('left', margins.left, paper.width_mm),
        ('right', margins.right, paper.width_mm),
    )
    errors = {}
    for name, value, dimension in checks:
        error = validate_margin(value, dimension, name)
        if error:
            errors[name] = error
    return errors


def printable_area_mm(paper: Union[PaperSpec, str], margins: Margins) -> Tuple[float, float]:
    paper = PAPERS.resolve(paper)
    return (
        paper.width_mm - margins.left - margins.right,
        paper.height_mm - margins.top - margins.bottom,
    )


def can_fit_photo(
    paper: Union[PaperSpec, str],
    size: Union[SizeSpec, str],
    margins: Optional[Margins] = None,
) -> Optional[str]:
    """None if one copy fits the printable area, otherwise a user-facing message."""
    size = SIZES.resolve(size)
    width, height = printable_area_mm(paper, margins or NO_MARGINS)
    if size.width_mm <= width and size.height_mm <= height:
        return None
    return (
        f"The printable area is too small for the selected photo size "
        f"({size.description}). Please reduce margins or select a smaller photo size."
    )
