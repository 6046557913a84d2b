"""
Raster helpers: loading, cropping, scaling, encoding
"""

import io
import math
import logging
from pathlib import Path
from typing import Tuple, Union, BinaryIO

from PIL import Image, ImageColor, ImageOps
from PIL.ImageCms import profileToProfile, createProfile, ImageCmsProfile, PyCMSError

from .config import DPI
from .models import Rectangle

logger = logging.getLogger(__name__)

# Build the sRGB ICC profile once (bytes), for embedding in saved images
_srgb_profile = ImageCmsProfile(createProfile('sRGB'))
SRGB_ICC_BYTES = _srgb_profile.tobytes()

ImageSource = Union[str, Path, bytes, bytearray, BinaryIO]
Color = Union[str, Tuple[int, int, int]]


def read_source(source: ImageSource) -> bytes:
    """Return the raw bytes of a path, a bytes object or a binary file object."""
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    if isinstance(source, (str, Path)):
        return Path(source).read_bytes()
    data = source.read()
    if isinstance(data, str):
        raise TypeError("File object must be opened in binary mode")
    return data


def load_image(data: bytes) -> Image.Image:
    """Decode image bytes, apply EXIF orientation and normalize to sRGB RGB."""
    img = Image.open(io.BytesIO(data))
    img = ImageOps.exif_transpose(img)

    # Convert to sRGB if the image has a different ICC profile
    src_profile = img.info.get('icc_profile')
    if src_profile:
        try:
            return profileToProfile(
                img, ImageCmsProfile(io.BytesIO(src_profile)), _srgb_profile, outputMode='RGB'
            )
        except (PyCMSError, OSError, ValueError) as e:
            logger.warning(f"ICC conversion failed, using plain RGB: {e}")
    return img.convert('RGB')


def crop_region(img: Image.Image, rect: Rectangle) -> Image.Image:
    """Sample the pixels under rect, rounded to whole pixels inside the image."""
    return img.crop(rect.to_box(img.width, img.height))


def scale_to_file_size(img: Image.Image, file_size: int, target_size: int) -> Image.Image:
    """Shrink img so an encoding of file_size bytes would land under target_size.

    The side scale is the square root of the byte ratio, tightened by 10%.
    """
    if file_size <= target_size:
        return img
    factor = math.sqrt(target_size / file_size) * 0.9
    new_size = (max(1, int(img.width * factor)), max(1, int(img.height * factor)))
    logger.info(f"Scaling {img.width}x{img.height} -> {new_size[0]}x{new_size[1]} (factor {factor:.3f})")
    return img.resize(new_size, Image.LANCZOS)


def parse_color(color: Color) -> Tuple[int, int, int]:
    """Parse '#RRGGBB', a CSS color name or an RGB tuple into an RGB tuple."""
    if isinstance(color, str):
        return ImageColor.getrgb(color)[:3]
    r, g, b = color[:3]
    return (int(r), int(g), int(b))


def encode_png(img: Image.Image, dpi: int = DPI) -> bytes:
    """Encode as PNG with DPI metadata (pHYs) and the sRGB ICC profile."""
    buf = io.BytesIO()
    img.save(buf, format='PNG', dpi=(dpi, dpi), icc_profile=SRGB_ICC_BYTES)
    return buf.getvalue()
