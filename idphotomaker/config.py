"""
Configuration settings for ID Photo Maker
"""

import os
from dataclasses import dataclass
from typing import Optional, Tuple, Dict, List


# =============================================================================
# GENERAL CONFIG
# =============================================================================

OUTPUT_BASE = "outputs/idphotomaker"

DPI = 300
MM_PER_INCH = 25.4
MM_TO_INCH = 1 / MM_PER_INCH

# Minimum print resolution accepted by the pipeline
DPI_THRESHOLD = 300

# Minimum empty space between two copies on a sheet
MIN_GUTTER_MM = 5

# Smallest crop width the interactive editor allows
MIN_CROP_SIZE = 100

# Upload validation
MAX_FILE_SIZE = 10 * 1024 * 1024
VALID_FORMATS = ('JPEG', 'PNG', 'WEBP')

# MediaPipe settings
MIN_DETECTION_CONFIDENCE = 0.5
FACE_DETECTOR_MODEL = os.environ.get('IDPHOTO_FACE_MODEL', 'models/blaze_face_short_range.tflite')
FACE_DETECTOR_URL = (
    "https://storage.googleapis.com/mediapipe-models/face_detector/"
    "blaze_face_short_range/float16/1/blaze_face_short_range.tflite"
)
DETECTION_MAX_SIDE = 1920

# rembg settings
MATTING_MODEL = os.environ.get('IDPHOTO_MATTING_MODEL', 'u2net_human_seg')
FORCE_CPU = os.environ.get('IDPHOTO_FORCE_CPU', '').lower() in ('1', 'true', 'yes')


# =============================================================================
# FACE FRAMING
# =============================================================================

@dataclass(frozen=True)
class FramingPadding:
    """Face box expansion, in multiples of the face size.

    side:  added on each of the left and right (shoulders)
    above: added above the face (hair)
    below: added below the face (neck, shoulders)
    """
    side: float = 0.8
    above: float = 1.5
    below: float = 1.0


DEFAULT_FRAMING = FramingPadding()

# Width of the centered fallback crop, as a fraction of image width
FALLBACK_CROP_WIDTH = 0.4


# =============================================================================
# SIZE & PAPER SPECS
# =============================================================================

def _calc_print_size(width_mm: float, height_mm: float, dpi: int = DPI) -> Tuple[int, int]:
    """Calculate print size in pixels from mm dimensions"""
    return (round(width_mm * MM_TO_INCH * dpi), round(height_mm * MM_TO_INCH * dpi))


@dataclass(frozen=True)
class SizeSpec:
    """Immutable physical size of an ID photo."""
    key: str
    label: str
    width_mm: float
    height_mm: float

    @property
    def aspect_ratio(self) -> float:
        return self.width_mm / self.height_mm

    @property
    def description(self) -> str:
        return f"{self.width_mm:g}x{self.height_mm:g}mm"

    @property
    def print_size(self) -> Tuple[int, int]:
        return _calc_print_size(self.width_mm, self.height_mm)


@dataclass(frozen=True)
class PaperSpec:
    """Immutable paper sheet, with pixel size fixed at the 300 DPI reference."""
    key: str
    label: str
    width_mm: float
    height_mm: float
    width_px: int
    height_px: int

    @property
    def size_px(self) -> Tuple[int, int]:
        return (self.width_px, self.height_px)


class SpecRegistry:
    """Keyed registry of immutable specs."""

    def __init__(self):
        self._specs: Dict[str, object] = {}

    def register(self, spec) -> None:
        self._specs[spec.key] = spec

    def get(self, key: str):
        return self._specs.get(key)

    def resolve(self, spec_or_key):
        """Return the spec for a key, or the spec itself if one was passed.

        Raises:
            KeyError: If a key is not registered.
        """
        if isinstance(spec_or_key, str):
            spec = self._specs.get(spec_or_key)
            if spec is None:
                raise KeyError(f"Unknown key: {spec_or_key}. Available: {self.keys()}")
            return spec
        return spec_or_key

    def list_all(self) -> List:
        return list(self._specs.values())

    def keys(self) -> List[str]:
        return list(self._specs.keys())

    def __contains__(self, key: str) -> bool:
        return key in self._specs

    def __iter__(self):
        return iter(self._specs.items())

    def __len__(self) -> int:
        return len(self._specs)


SIZES = SpecRegistry()
SIZES.register(SizeSpec(key='one-inch', label='1 Inch', width_mm=25, height_mm=35))
SIZES.register(SizeSpec(key='two-inch', label='2 Inch', width_mm=35, height_mm=49))
SIZES.register(SizeSpec(key='three-inch', label='3 Inch', width_mm=35, height_mm=52))

PAPERS = SpecRegistry()
PAPERS.register(PaperSpec(
    key='6-inch', label='6-inch Photo Paper',
    width_mm=101.6, height_mm=152.4,
    width_px=1200, height_px=1800,
))
PAPERS.register(PaperSpec(
    key='a4', label='A4 Paper',
    width_mm=210, height_mm=297,
    width_px=2480, height_px=3508,
))

DEFAULT_SIZE = 'one-inch'
DEFAULT_PAPER = '6-inch'


# =============================================================================
# BACKGROUND COLORS
# =============================================================================

BACKGROUND_COLORS: Dict[str, str] = {
    'red': '#FF0000',
    'blue': '#0000FF',
    'white': '#FFFFFF',
    'crimson': '#EA3223',
    'maroon': '#B82D24',
    'dark_red': '#8E1C14',
    'sky_blue': '#538ED7',
    'royal_blue': '#193FE6',
    'light_blue': '#64C8F2',
}

DEFAULT_BACKGROUND = BACKGROUND_COLORS['white']


# =============================================================================
# HELPERS (for web.py list APIs)
# =============================================================================

def get_size(key: str) -> Optional[SizeSpec]:
    return SIZES.get(key)


def get_paper(key: str) -> Optional[PaperSpec]:
    return PAPERS.get(key)


def get_size_list() -> List[dict]:
    return [
        {'key': s.key, 'label': s.label, 'description': s.description,
         'width_mm': s.width_mm, 'height_mm': s.height_mm,
         'aspect_ratio': round(s.aspect_ratio, 4)}
        for s in SIZES.list_all()
    ]


def get_paper_list() -> List[dict]:
    return [
        {'key': p.key, 'label': p.label,
         'width_mm': p.width_mm, 'height_mm': p.height_mm,
         'width_px': p.width_px, 'height_px': p.height_px}
        for p in PAPERS.list_all()
    ]
