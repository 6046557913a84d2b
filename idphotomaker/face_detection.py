"""
Face detection module using MediaPipe
"""

import os
import asyncio
import logging
import threading
import urllib.request
from typing import List

import cv2
import numpy as np
from PIL import Image

from .config import (
    MIN_DETECTION_CONFIDENCE, FACE_DETECTOR_MODEL, FACE_DETECTOR_URL, DETECTION_MAX_SIDE,
)
from .models import FaceBox

logger = logging.getLogger(__name__)


class FaceDetector:
    """Detects face bounding boxes using the MediaPipe Face Detector task.

    The model is loaded once with load(); is_ready reports whether detect()
    can run.
    """

    def __init__(
        self,
        min_confidence: float = MIN_DETECTION_CONFIDENCE,
        detector_model: str = FACE_DETECTOR_MODEL,
        max_side: int = DETECTION_MAX_SIDE,
    ):
        self._min_confidence = min_confidence
        self._detector_model = detector_model
        self._max_side = max_side
        self._detector = None
        # MediaPipe task instances are not safe to share across threads
        self._lock = threading.Lock()

    @property
    def is_ready(self) -> bool:
        return self._detector is not None

    def _ensure_detector_model(self) -> None:
        if not os.path.exists(self._detector_model):
            logger.info(f"Face detector model not found at {self._detector_model}, downloading...")
            os.makedirs(os.path.dirname(self._detector_model) or "models", exist_ok=True)
            urllib.request.urlretrieve(FACE_DETECTOR_URL, self._detector_model)
            logger.info(f"Model downloaded to {self._detector_model}")

    def load(self) -> None:
        """Create the MediaPipe detector. Safe to call more than once."""
        if self._detector is not None:
            return
        import mediapipe as mp

        self._ensure_detector_model()
        base_options = mp.tasks.BaseOptions(model_asset_path=self._detector_model)
        options = mp.tasks.vision.FaceDetectorOptions(
            base_options=base_options,
            min_detection_confidence=self._min_confidence,
        )
        self._detector = mp.tasks.vision.FaceDetector.create_from_options(options)
        logger.info(f"Face detector loaded ({self._detector_model})")

    def _prepare(self, img: Image.Image):
        """RGB array for MediaPipe, downscaled so the long side is at most max_side."""
        rgb = np.asarray(img.convert('RGB'))
        height, width = rgb.shape[:2]
        longest = max(height, width)
        if self._max_side <= 0 or longest <= self._max_side:
            return np.ascontiguousarray(rgb), 1.0
        scale = self._max_side / float(longest)
        new_size = (max(1, int(round(width * scale))), max(1, int(round(height * scale))))
        resized = cv2.resize(rgb, new_size, interpolation=cv2.INTER_AREA)
        return np.ascontiguousarray(resized), scale

    def detect_sync(self, img: Image.Image) -> List[FaceBox]:
        """Detect all faces in img, in source pixel coordinates.

        Raises:
            RuntimeError: If load() has not been called.
        """
        if self._detector is None:
            raise RuntimeError("Face detector is not loaded")
        import mediapipe as mp

        rgb, scale = self._prepare(img)
        mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=rgb)
        with self._lock:
            detection_result = self._detector.detect(mp_image)

        faces = []
        for detection in detection_result.detections:
            bbox = detection.bounding_box
            score = detection.categories[0].score if detection.categories else 0.0
            faces.append(FaceBox(
                x=bbox.origin_x / scale,
                y=bbox.origin_y / scale,
                width=bbox.width / scale,
                height=bbox.height / scale,
                confidence=score,
            ))

        logger.info(f"Detected {len(faces)} face(s) in {img.width}x{img.height} image")
        for face in faces:
            logger.debug(
                f"  Face at ({face.x:.0f}, {face.y:.0f}) {face.width:.0f}x{face.height:.0f}, "
                f"confidence {face.confidence:.2f}"
            )
        return faces

    async def detect(self, img: Image.Image) -> List[FaceBox]:
        return await asyncio.to_thread(self.detect_sync, img)

    def close(self) -> None:
        """Release the MediaPipe detector."""
        if self._detector is not None:
            self._detector.close()
            self._detector = None

