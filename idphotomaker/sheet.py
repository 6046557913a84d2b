"""
Print sheet creation module
"""

import logging
from PIL import Image, ImageDraw

from .layout import LayoutPlan
from .raster import SRGB_ICC_BYTES

logger = logging.getLogger(__name__)


class SheetGenerator:
    """Renders a LayoutPlan into a printable sheet raster."""

    def __init__(self, mark_length: int = 25, mark_offset: int = 8):
        self.mark_length = mark_length
        self.mark_offset = mark_offset

    def create_sheet(self, photo: Image.Image, plan: LayoutPlan, cutting_marks: bool = False) -> Image.Image:
        """Paste one copy of photo at every position of the plan.

        Args:
            photo: The finished (opaque) ID photo.
            plan: Layout computed by calculate_layout.
            cutting_marks: Draw L-shaped corner marks around each copy.

        Returns:
            White RGB sheet at the plan's paper size.
        """
        sheet = Image.new('RGB', (plan.paper_width_px, plan.paper_height_px), 'white')

        if plan.total_count == 0:
            logger.warning(f"Layout on {plan.paper_key} has no printable area, sheet left blank")
            sheet.info['icc_profile'] = SRGB_ICC_BYTES
            return sheet

        copy_size = (max(1, round(plan.photo_width_px)), max(1, round(plan.photo_height_px)))
        photo_resized = photo.convert('RGB')
        if photo_resized.size != copy_size:
            photo_resized = photo_resized.resize(copy_size, Image.LANCZOS)

        positions = [(round(x), round(y)) for x, y in plan.positions()]
        for x, y in positions:
            sheet.paste(photo_resized, (x, y))

        if cutting_marks:
            draw = ImageDraw.Draw(sheet)
            for x, y in positions:
                self._draw_cutting_marks(
                    draw, x, y, copy_size[0], copy_size[1],
                    mark_length=self.mark_length, mark_offset=self.mark_offset,
                )

        logger.info(
            f"Sheet {plan.paper_key}: {plan.columns}x{plan.rows} = {plan.total_count} copies "
            f"of {copy_size[0]}x{copy_size[1]}px"
        )
        sheet.info['icc_profile'] = SRGB_ICC_BYTES
        return sheet

    @staticmethod
    def _draw_cutting_marks(
        draw: ImageDraw.ImageDraw,
        x: int, y: int, width: int, height: int,
        mark_length: int = 25, mark_offset: int = 8,
        color: str = 'black', line_width: int = 2,
    ) -> None:
        """L-shaped guides just outside each corner of a copy, for trimming."""
        near, far = mark_offset, mark_offset + mark_length
        for cx, sx in ((x, -1), (x + width, 1)):
            for cy, sy in ((y, -1), (y + height, 1)):
                # Horizontal arm along the copy's edge, then the vertical arm
                draw.line([(cx + sx * near, cy), (cx + sx * far, cy)], fill=color, width=line_width)
                draw.line([(cx, cy + sy * near), (cx, cy + sy * far)], fill=color, width=line_width)
