"""
ID Photo Maker - ID photo processing engine

Face-anchored cropping, DPI validation, exact-size resampling, background
replacement and print sheet layout.

Supported sizes:
- 1 Inch (25x35mm)
- 2 Inch (35x49mm)
- 3 Inch (35x52mm)

Supported papers:
- 6-inch photo paper (1200x1800px)
- A4 (2480x3508px)

Usage:
    import asyncio
    from idphotomaker import ProcessingPipeline
    pipeline = ProcessingPipeline()
    pipeline.load_models()
    result = asyncio.run(pipeline.run("input/photo.jpg", "one-inch", "#FFFFFF", "6-inch"))
    if result.succeeded:
        result.sheet_preview.save("output/sheet.png", dpi=(300, 300))
    pipeline.close()
"""

# Core classes
from .config import (
    SizeSpec, PaperSpec, SpecRegistry, SIZES, PAPERS, DPI, DPI_THRESHOLD, FramingPadding,
    BACKGROUND_COLORS, get_size, get_paper, get_size_list, get_paper_list,
)
from .errors import IDPhotoError, ValidationError, FaceDetectionError, ResolutionError, MattingError, ProcessingError
from .models import Rectangle, FaceBox
from .resolution import DPIResult, calculate_dpi, meets_threshold, target_pixel_dimensions
from .crop import calculate_initial_crop_area, calculate_centered_crop_area
from .crop_editor import ResizeHandle, Drag, ResizeCorner, SizeSpecChanged, ExternalReset, reduce_crop, dpi_warning
from .exact_crop import generate_exact_crop
from .layout import LayoutPlan, Margins, calculate_layout, can_fit_photo, validate_margins
from .sheet import SheetGenerator
from .validation import FileValidator, ValidationReport
from .face_detection import FaceDetector
from .background import BackgroundRemover, MattingResult, apply_background_color
from .background import BackgroundRemovalError, MattingMemoryError, SessionError
from .utils import GPUInfo, performance_class, print_summary
from .processor import ProcessingPipeline, ProcessingResult, PipelineStage
