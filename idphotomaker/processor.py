"""
ProcessingPipeline: orchestrates validation, face lookup, crop, background
removal, exact resampling, color fill and preview generation.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from PIL import Image

from .background import BackgroundRemover, MattingResult, apply_background_color
from .config import (
    DPI, DPI_THRESHOLD, MAX_FILE_SIZE, DEFAULT_FRAMING, DEFAULT_SIZE, DEFAULT_PAPER,
    DEFAULT_BACKGROUND, SIZES, PAPERS, FramingPadding, PaperSpec, SizeSpec,
)
from .crop import calculate_initial_crop_area
from .errors import (
    IDPhotoError, ValidationError, FaceDetectionError, ResolutionError, MattingError, ProcessingError,
)
from .exact_crop import generate_exact_crop
from .face_detection import FaceDetector
from .layout import LayoutPlan, Margins, calculate_layout, can_fit_photo, validate_margins
from .models import Rectangle
from .raster import Color, ImageSource, SRGB_ICC_BYTES, crop_region, load_image, parse_color, read_source, scale_to_file_size
from .resolution import DPIResult, calculate_dpi
from .sheet import SheetGenerator
from .validation import FileValidator

logger = logging.getLogger(__name__)


class PipelineStage(Enum):
    VALIDATE = 'validate'
    LOCATE_FACE = 'locate-face'
    VALIDATE_RESOLUTION = 'validate-resolution'
    CROP = 'crop'
    REMOVE_BACKGROUND = 'remove-background'
    EXACT_CROP = 'exact-crop'
    APPLY_COLOR = 'apply-color'
    BUILD_PREVIEWS = 'build-previews'
    DONE = 'done'
    FAILED = 'failed'


@dataclass
class ProcessingResult:
    """Outcome of one pipeline run.

    On failure `stage` is FAILED, `failed_stage` names where it stopped and
    `error` holds the typed error. Rasters produced before the failure are
    kept; later ones stay None.
    """
    stage: PipelineStage
    size_spec: SizeSpec
    paper_spec: PaperSpec
    dpi: int
    warnings: List[str] = field(default_factory=list)
    error: Optional[IDPhotoError] = None
    failed_stage: Optional[PipelineStage] = None
    original: Optional[Image.Image] = None
    crop_area: Optional[Rectangle] = None
    dpi_result: Optional[DPIResult] = None
    cropped: Optional[Image.Image] = None
    matting: Optional[MattingResult] = None
    exact: Optional[Image.Image] = None
    colored: Optional[Image.Image] = None
    photo_preview: Optional[Image.Image] = None
    layout: Optional[LayoutPlan] = None
    sheet_preview: Optional[Image.Image] = None

    @property
    def succeeded(self) -> bool:
        return self.stage is PipelineStage.DONE

    @property
    def matted(self) -> Optional[Image.Image]:
        return self.matting.image if self.matting else None


class ProcessingPipeline:
    """Turns an uploaded portrait into a finished ID photo and a print sheet.

    Collaborators are injected and duck-typed:
        face_detector:  is_ready, async detect(image) -> list[FaceBox]
        matting_model:  is_ready, async remove(image) -> MattingResult
        file_validator: async validate(data) -> ValidationReport

    The pipeline keeps no per-run state, so several run() calls may be in
    flight at once.

    Usage:
        pipeline = ProcessingPipeline()
        pipeline.load_models()
        result = asyncio.run(pipeline.run("input/photo.jpg", "one-inch", "#FFFFFF", "6-inch"))
        if result.succeeded:
            result.sheet_preview.save("sheet.png", dpi=(300, 300))
    """

    def __init__(
        self,
        face_detector=None,
        matting_model=None,
        file_validator=None,
        framing: FramingPadding = DEFAULT_FRAMING,
        sheet_generator: Optional[SheetGenerator] = None,
        cutting_marks: bool = False,
        max_file_size: int = MAX_FILE_SIZE,
    ):
        self.face_detector = face_detector if face_detector is not None else FaceDetector()
        self.matting_model = matting_model if matting_model is not None else BackgroundRemover()
        self.file_validator = file_validator if file_validator is not None else FileValidator(max_file_size)
        self.framing = framing
        self.sheet_gen = sheet_generator or SheetGenerator()
        self.cutting_marks = cutting_marks
        self.max_file_size = max_file_size

    def load_models(self) -> None:
        """Load both ML collaborators (blocking, load once)."""
        logger.info("Loading models...")
        self.face_detector.load()
        self.matting_model.load()
        logger.info("Models ready")

    async def run(
        self,
        file: ImageSource,
        size_spec: Union[SizeSpec, str] = DEFAULT_SIZE,
        background_color: Color = DEFAULT_BACKGROUND,
        paper_spec: Union[PaperSpec, str] = DEFAULT_PAPER,
        margins: Optional[Margins] = None,
        dpi_threshold: int = DPI_THRESHOLD,
    ) -> ProcessingResult:
        """Run every stage in order, stopping at the first failure.

        Args:
            file: Path, bytes or binary file object of the upload.
            size_spec: SizeSpec or size key.
            background_color: '#RRGGBB', color name or RGB tuple.
            paper_spec: PaperSpec or paper key.
            margins: Printer margins for the sheet preview.
            dpi_threshold: Minimum print DPI; also the DPI of the exact crop.

        Returns:
            ProcessingResult; failures are reported on it, not raised.

        Raises:
            ValueError: If a size/paper key or the color is not recognised.
        """
        try:
            size = SIZES.resolve(size_spec)
            paper = PAPERS.resolve(paper_spec)
        except KeyError as e:
            raise ValueError(str(e.args[0])) from e
        color = parse_color(background_color)

        result = ProcessingResult(stage=PipelineStage.VALIDATE, size_spec=size, paper_spec=paper, dpi=dpi_threshold)
        logger.info(f"Processing: size={size.key}, paper={paper.key}, dpi={dpi_threshold}")

        try:
            await self._validate(result, file)

            result.stage = PipelineStage.LOCATE_FACE
            await self._locate_face(result)

            result.stage = PipelineStage.VALIDATE_RESOLUTION
            self._validate_resolution(result)

            result.stage = PipelineStage.CROP
            result.cropped = crop_region(result.original, result.crop_area)

            result.stage = PipelineStage.REMOVE_BACKGROUND
            await self._remove_background(result)

            result.stage = PipelineStage.EXACT_CROP
            matted = result.matting.image
            result.exact = await asyncio.to_thread(
                generate_exact_crop, matted, Rectangle(0, 0, matted.width, matted.height),
                size.width_mm, size.height_mm, dpi_threshold,
            )

            result.stage = PipelineStage.APPLY_COLOR
            result.colored = apply_background_color(result.exact, color)

            result.stage = PipelineStage.BUILD_PREVIEWS
            await self._build_previews(result, margins)

            result.stage = PipelineStage.DONE
            logger.info(f"Processing finished: {result.layout.total_count} copies on {paper.key}")

        except IDPhotoError as e:
            self._fail(result, e)
            logger.warning(f"Processing stopped at {result.failed_stage.value}: {e.message}")
        except Exception as e:
            logger.exception(f"Unexpected error at {result.stage.value}")
            self._fail(result, ProcessingError(str(e) or 'Processing failed'))

        return result

    # -------------------------------------------------------------------------
    # Stages
    # -------------------------------------------------------------------------

    async def _validate(self, result: ProcessingResult, file: ImageSource) -> None:
        try:
            data = read_source(file)
        except OSError as e:
            raise ValidationError(f'Failed to read image file: {e}') from e
        report = await self.file_validator.validate(data)
        result.warnings.extend(report.warnings)
        if not report.is_valid:
            raise ValidationError(' '.join(report.errors) or 'Invalid image file.')

        original = await asyncio.to_thread(load_image, data)
        if report.needs_scaling:
            original = await asyncio.to_thread(scale_to_file_size, original, report.file_size, self.max_file_size)
        result.original = original

    async def _locate_face(self, result: ProcessingResult) -> None:
        if not self.face_detector.is_ready:
            raise FaceDetectionError(FaceDetectionError.MODEL_NOT_READY, 'Face detection model not loaded')

        original = result.original
        faces = await self.face_detector.detect(original)
        if not faces:
            raise FaceDetectionError(
                FaceDetectionError.NO_FACE,
                'No face detected in the image. Please upload an image with exactly one face.',
            )
        if len(faces) > 1:
            raise FaceDetectionError(
                FaceDetectionError.MULTIPLE_FACES,
                'Multiple faces detected in the image. Please upload an image with exactly one face.',
            )

        result.crop_area = calculate_initial_crop_area(
            faces[0], result.size_spec.aspect_ratio, original.width, original.height, self.framing,
        )

    def _validate_resolution(self, result: ProcessingResult) -> None:
        size = result.size_spec
        crop = result.crop_area
        result.dpi_result = calculate_dpi(crop.width, crop.height, size.width_mm, size.height_mm)
        if result.dpi_result.min_dpi < result.dpi:
            raise ResolutionError(round(result.dpi_result.min_dpi), result.dpi)

    async def _remove_background(self, result: ProcessingResult) -> None:
        if not self.matting_model.is_ready:
            raise MattingError('Background removal model not loaded')
        try:
            result.matting = await self.matting_model.remove(result.cropped)
        except MattingError:
            raise
        except Exception as e:
            raise MattingError(f'Failed to apply background removal: {e}') from e

    async def _build_previews(self, result: ProcessingResult, margins: Optional[Margins]) -> None:
        photo = result.colored.copy()
        photo.info['dpi'] = (result.dpi, result.dpi)
        photo.info['icc_profile'] = SRGB_ICC_BYTES
        result.photo_preview = photo

        # Sheets are planned against the paper's 300 DPI pixel size
        layout = calculate_layout(result.paper_spec, result.size_spec, DPI, margins)
        if margins is not None:
            result.warnings.extend(validate_margins(margins, result.paper_spec).values())
        if not layout.fits:
            message = can_fit_photo(result.paper_spec, result.size_spec, margins)
            if message:
                result.warnings.append(message)
        result.layout = layout
        result.sheet_preview = await asyncio.to_thread(
            self.sheet_gen.create_sheet, result.colored, layout, self.cutting_marks,
        )

    @staticmethod
    def _fail(result: ProcessingResult, error: IDPhotoError) -> None:
        result.error = error
        result.failed_stage = result.stage
        result.stage = PipelineStage.FAILED

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def reinitialize_matting(self) -> None:
        """Re-create the background removal session (recovery after errors)."""
        self.matting_model.reinitialize()

    def close(self) -> None:
        """Release all resources."""
        self.face_detector.close()
        self.matting_model.close()
        logger.info("ProcessingPipeline closed")
