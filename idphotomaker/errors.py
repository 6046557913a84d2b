"""
Error taxonomy shared by the processing pipeline and its collaborators
"""

from typing import Optional


class IDPhotoError(Exception):
    """Base class for all recoverable processing failures."""
    kind = 'processing'

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {'type': self.kind, 'message': self.message}


class ValidationError(IDPhotoError):
    """The uploaded file was rejected (format, size, unreadable)."""
    kind = 'validation'


class FaceDetectionError(IDPhotoError):
    """The image does not contain exactly one usable face."""
    kind = 'face-detection'

    NO_FACE = 'no-face'
    MULTIPLE_FACES = 'multiple-faces'
    MODEL_NOT_READY = 'model-not-ready'

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['code'] = self.code
        return data


class ResolutionError(IDPhotoError):
    """The crop cannot reach the required print resolution."""
    kind = 'resolution'

    def __init__(self, measured_dpi: int, required_dpi: int, message: Optional[str] = None):
        if message is None:
            message = (
                f"DPI requirement ({required_dpi} DPI) cannot be met. "
                f"The calculated DPI is {measured_dpi} DPI. "
                f"Please upload a higher resolution image."
            )
        super().__init__(message)
        self.measured_dpi = measured_dpi
        self.required_dpi = required_dpi

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['measured_dpi'] = self.measured_dpi
        data['required_dpi'] = self.required_dpi
        return data


class MattingError(IDPhotoError):
    """Background removal is unavailable or failed."""
    kind = 'matting'


class ProcessingError(IDPhotoError):
    """Any other internal failure."""
    kind = 'processing'
