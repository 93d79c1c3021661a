from .image import (
    NormalizationProfile,
    NormalizedImage,
    TransformRequest,
    TransformResult,
    UploadedImage,
)
from .responses import DebugResponse, ErrorResponse, HealthResponse, TransformResponse

__all__ = [
    "NormalizationProfile",
    "NormalizedImage",
    "TransformRequest",
    "TransformResult",
    "UploadedImage",
    "DebugResponse",
    "ErrorResponse",
    "HealthResponse",
    "TransformResponse",
]
