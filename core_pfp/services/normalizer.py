"""Best-effort image normalization with Pillow.

Uploads are cover-fitted (aspect-preserving, centered crop) to a fixed square
and re-encoded for the provider:

    LOSSY  -> progressive JPEG (avatar generation)
    ALPHA  -> PNG with alpha channel (style edits; the edit API requires PNG)

Normalization is an optimization, not a correctness requirement. If Pillow
cannot decode or encode the upload, the original bytes are passed on and the
fallback is counted on ``image_normalization_fallback_total``.
"""
from __future__ import annotations

import io
import logging
from pathlib import PurePath

from fastapi.concurrency import run_in_threadpool
from PIL import Image, ImageOps
from prometheus_client import Counter

from core_pfp.config import get_settings
from core_pfp.models import NormalizationProfile, NormalizedImage, UploadedImage

logger = logging.getLogger(__name__)

NORMALIZATION_FALLBACK_COUNTER = Counter(
    "image_normalization_fallback",
    "Uploads forwarded with their original bytes because normalization failed.",
    labelnames=["profile"],
)


async def normalize_image(image: UploadedImage, profile: NormalizationProfile) -> NormalizedImage:
    """Normalize *image* for *profile*, falling back to the original bytes."""

    settings = get_settings()
    try:
        data = await run_in_threadpool(
            _fit_and_encode,
            image.data,
            profile,
            size=settings.image_size,
            jpeg_quality=settings.jpeg_quality,
            png_compress_level=settings.png_compress_level,
        )
    except Exception as exc:
        logger.warning("Image normalization (%s) failed, using original bytes: %s", profile.value, exc)
        NORMALIZATION_FALLBACK_COUNTER.labels(profile=profile.value).inc()
        return NormalizedImage(
            data=image.data,
            content_type=image.content_type,
            filename=image.filename or f"image.{_content_type_to_extension(image.content_type)}",
            profile=profile,
            fallback=True,
        )

    logger.info("Image optimized (%s): %d -> %d bytes", profile.value, image.size, len(data))
    return NormalizedImage(
        data=data,
        content_type=profile.content_type,
        filename=_normalized_filename(image.filename, profile),
        profile=profile,
    )


# ------------------------------------------------------------------
# Helper functions
# ------------------------------------------------------------------


def _fit_and_encode(
    file_bytes: bytes,
    profile: NormalizationProfile,
    *,
    size: int,
    jpeg_quality: int,
    png_compress_level: int,
) -> bytes:
    with Image.open(io.BytesIO(file_bytes)) as img:
        img = ImageOps.exif_transpose(img)
        mode = "RGB" if profile is NormalizationProfile.LOSSY else "RGBA"
        img = img.convert(mode)
        img = ImageOps.fit(img, (size, size), method=Image.Resampling.LANCZOS, centering=(0.5, 0.5))

        buffer = io.BytesIO()
        if profile is NormalizationProfile.LOSSY:
            img.save(buffer, format="JPEG", quality=jpeg_quality, progressive=True, optimize=True)
        else:
            img.save(buffer, format="PNG", compress_level=png_compress_level)
        return buffer.getvalue()


def _normalized_filename(original: str | None, profile: NormalizationProfile) -> str:
    stem = PurePath(original).stem if original else ""
    return f"{stem or 'image'}.{profile.extension}"


def _content_type_to_extension(content_type: str) -> str:
    mapping = {
        "image/jpeg": "jpg",
        "image/png": "png",
        "image/webp": "webp",
    }
    return mapping.get(content_type.lower(), "jpg")
