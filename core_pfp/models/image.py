from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class NormalizationProfile(str, Enum):
    """Target encoding for outbound image data."""

    LOSSY = "lossy"  # progressive JPEG
    ALPHA = "alpha"  # PNG with alpha channel

    @property
    def content_type(self) -> str:
        return "image/jpeg" if self is NormalizationProfile.LOSSY else "image/png"

    @property
    def extension(self) -> str:
        return "jpg" if self is NormalizationProfile.LOSSY else "png"


class UploadedImage(BaseModel):
    """A single image file received in a multipart request. Never persisted."""

    data: bytes
    content_type: str
    size: int = Field(..., ge=0)
    filename: str | None = None


class NormalizedImage(BaseModel):
    data: bytes
    content_type: str
    filename: str
    profile: NormalizationProfile
    fallback: bool = False  # True when the original upload bytes were substituted


class TransformRequest(BaseModel):
    image: NormalizedImage
    prompt: str = Field(..., min_length=1)
    size: str = "1024x1024"


class TransformResult(BaseModel):
    """Provider output: inline base64 data or a URL to fetch it from."""

    b64_json: str | None = None
    url: str | None = None

    @property
    def has_image(self) -> bool:
        return bool(self.b64_json or self.url)
