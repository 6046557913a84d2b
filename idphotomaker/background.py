"""
Matting (rembg) and flat background color fill
"""

import gc
import time
import asyncio
import logging
import traceback
from dataclasses import dataclass
from typing import Tuple

from PIL import Image

from .config import MATTING_MODEL, FORCE_CPU
from .errors import MattingError
from .utils import performance_class

logger = logging.getLogger(__name__)


# =============================================================================
# EXCEPTIONS
# =============================================================================

class BackgroundRemovalError(MattingError):
    """Background removal failed while processing an image"""
    pass


class MattingMemoryError(BackgroundRemovalError):
    """Matting ran out of GPU or host memory, even after cleanup"""
    pass


class SessionError(BackgroundRemovalError):
    """The rembg session could not be created or is missing"""
    pass


# =============================================================================
# RESULT & FILL
# =============================================================================

@dataclass(frozen=True)
class MattingResult:
    """Alpha-masked raster produced by the matting model."""
    image: Image.Image
    processing_time_ms: float
    quality_tier: str


def apply_background_color(img_with_alpha: Image.Image, color: Tuple[int, int, int]) -> Image.Image:
    """Composite img_with_alpha over an opaque flat color.

    alpha 0 gives the background color, alpha 255 the source pixel, and
    values in between blend linearly.
    """
    rgba = img_with_alpha.convert('RGBA')
    bg = Image.new('RGB', rgba.size, color)
    bg.paste(rgba, (0, 0), rgba)
    return bg


# =============================================================================
# MATTING SESSION
# =============================================================================

_CUDA_PROVIDER = ('CUDAExecutionProvider', {
    'device_id': 0,
    'arena_extend_strategy': 'kNextPowerOfTwo',
    'cudnn_conv_algo_search': 'EXHAUSTIVE',
})
_CPU_PROVIDER = 'CPUExecutionProvider'

# Substrings of onnxruntime / CUDA messages that mean allocation failed
_MEMORY_ERROR_MARKERS = (
    'out of memory', 'oom', 'cuda error', 'cudnn', 'alloc',
    'memory limit', 'insufficient memory', 'no space left', 'memory exhausted',
)

# Sessions created before the remover gives up on CUDA for good
_MAX_GPU_INITS = 3


class BackgroundRemover:
    """Owns one rembg session and produces alpha mattes from it.

    The session is created once by load(); is_ready reports whether remove()
    can run. Out-of-memory failures are retried after freeing GPU memory.
    """

    def __init__(self, model_name: str = MATTING_MODEL, force_cpu: bool = FORCE_CPU, max_retries: int = 2):
        self._model_name = model_name
        self._force_cpu = force_cpu
        self._max_retries = max_retries
        self._session = None
        self._init_count = 0
        self._on_gpu = False

    @property
    def is_ready(self) -> bool:
        return self._session is not None

    @property
    def init_count(self) -> int:
        return self._init_count

    @property
    def quality_tier(self) -> str:
        return 'high' if self._on_gpu else performance_class()

    def _release_memory(self) -> None:
        gc.collect()
        try:
            import torch
        except ImportError:
            return
        if not torch.cuda.is_available():
            return
        try:
            torch.cuda.empty_cache()
            torch.cuda.synchronize()
        except RuntimeError as e:
            logger.warning(f"Could not release CUDA cache: {e}")
        else:
            logger.info("CUDA cache released")

    def _create_session(self) -> None:
        from rembg import new_session

        self._init_count += 1
        attempts = [(False, [_CPU_PROVIDER])]
        if not self._force_cpu:
            attempts.insert(0, (True, [_CUDA_PROVIDER, _CPU_PROVIDER]))

        last_error = None
        for on_gpu, providers in attempts:
            device = 'CUDA' if on_gpu else 'CPU'
            logger.info(f"Creating {self._model_name} matting session on {device}...")
            try:
                self._session = new_session(model_name=self._model_name, providers=providers)
            except Exception as e:
                logger.warning(f"{device} matting session failed: {e}")
                last_error = e
                continue
            self._on_gpu = on_gpu
            logger.info(f"Matting session ready on {device}")
            return

        logger.error(traceback.format_exc())
        raise SessionError(f"Cannot create matting session for {self._model_name}: {last_error}")

    def load(self) -> None:
        """Create the session if it does not exist yet."""
        if self._session is None:
            self._create_session()

    def reinitialize(self, force_cpu: bool = False) -> None:
        """Drop the session and create a fresh one.

        After _MAX_GPU_INITS sessions the remover stays on CPU.
        """
        logger.warning(f"Recreating matting session (created {self._init_count} so far)")
        self._session = None
        self._release_memory()
        if force_cpu or self._init_count >= _MAX_GPU_INITS:
            if not self._force_cpu:
                logger.warning("Repeated session failures, switching matting to CPU")
            self._force_cpu = True
        self._create_session()

    def remove_sync(self, img: Image.Image) -> MattingResult:
        """Matte img, retrying after memory cleanup on out-of-memory errors.

        Returns:
            MattingResult with an RGBA image of the same size.

        Raises:
            SessionError: If load() has not been called.
            MattingMemoryError: If memory issues persist after retries.
            BackgroundRemovalError: For other processing failures.
        """
        if self._session is None:
            raise SessionError("Matting session is not loaded")
        from rembg import remove

        logger.info(f"Matting {img.width}x{img.height} image")
        attempts = self._max_retries + 1
        start = time.perf_counter()

        for attempt in range(1, attempts + 1):
            try:
                output = remove(img, session=self._session)
                break
            except Exception as e:
                logger.error(f"Matting attempt {attempt}/{attempts} failed: {e}")
                logger.debug(traceback.format_exc())
                if not self._is_memory_error(e):
                    raise BackgroundRemovalError(f"Background removal failed: {e}") from e
                self._release_memory()
                if attempt == attempts:
                    raise MattingMemoryError(f"Out of memory after {attempts} attempts: {e}") from e

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(f"Matting done in {elapsed_ms:.0f}ms")
        return MattingResult(
            image=output.convert('RGBA'),
            processing_time_ms=elapsed_ms,
            quality_tier=self.quality_tier,
        )

    async def remove(self, img: Image.Image) -> MattingResult:
        return await asyncio.to_thread(self.remove_sync, img)

    @staticmethod
    def _is_memory_error(error: Exception) -> bool:
        message = str(error).lower()
        return any(marker in message for marker in _MEMORY_ERROR_MARKERS)

    def close(self) -> None:
        """Drop the session and free GPU memory."""
        self._session = None
        self._release_memory()
