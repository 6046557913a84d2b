"""
Upload validation: format, size and decodability
"""

import io
import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from PIL import Image, UnidentifiedImageError

from .config import MAX_FILE_SIZE, VALID_FORMATS
from .raster import ImageSource, read_source

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidationReport:
    """Outcome of checking an uploaded file."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    file_size: int = 0
    needs_scaling: bool = False
    width: int = 0
    height: int = 0
    format: Optional[str] = None


class FileValidator:
    """Checks that an upload is a JPEG, PNG or WebP image Pillow can decode.

    Files above max_file_size are accepted with a warning and flagged for
    scaling.
    """

    def __init__(self, max_file_size: int = MAX_FILE_SIZE, valid_formats=VALID_FORMATS):
        self.max_file_size = max_file_size
        self.valid_formats = tuple(valid_formats)

    async def validate(self, source: ImageSource) -> ValidationReport:
        return await asyncio.to_thread(self.validate_sync, source)

    def validate_sync(self, source: ImageSource) -> ValidationReport:
        data = read_source(source)
        file_size = len(data)

        try:
            with Image.open(io.BytesIO(data)) as img:
                fmt = img.format
                width, height = img.size
                if fmt in self.valid_formats:
                    img.load()
        except (UnidentifiedImageError, OSError) as e:
            logger.warning(f"Upload rejected, not an image: {e}")
            return ValidationReport(
                is_valid=False,
                errors=['Invalid file type. Only JPEG, PNG, and WebP are supported.'],
                file_size=file_size,
            )

        if fmt not in self.valid_formats:
            return ValidationReport(
                is_valid=False,
                errors=['Invalid file type. Only JPEG, PNG, and WebP are supported.'],
                file_size=file_size,
                format=fmt,
            )

        if not width or not height:
            return ValidationReport(
                is_valid=False,
                errors=['Failed to load image file.'],
                file_size=file_size,
                format=fmt,
            )

        warnings = []
        needs_scaling = file_size > self.max_file_size
        if needs_scaling:
            limit_mb = self.max_file_size / (1024 * 1024)
            warnings.append(f'File size exceeds {limit_mb:g}MB. Image will be automatically scaled down.')

        return ValidationReport(
            is_valid=True,
            warnings=warnings,
            file_size=file_size,
            needs_scaling=needs_scaling,
            width=width,
            height=height,
            format=fmt,
        )
