"""Multipart upload validation.

Runs before any image processing or provider traffic. Oversized bodies are
refused from the ``Content-Length`` header before the form is parsed. Exactly
one file part is accepted, in the ``image`` field, with an allowed content type
and a size under the configured ceiling.
"""
from __future__ import annotations

import logging

from starlette.datastructures import FormData, UploadFile
from starlette.exceptions import HTTPException
from starlette.formparsers import MultiPartException
from starlette.requests import Request

from core_pfp.config import get_settings
from core_pfp.models import UploadedImage
from core_pfp.services import errors
from core_pfp.services.errors import UploadRejectedError

logger = logging.getLogger(__name__)

IMAGE_FIELD = "image"
ALLOWED_CONTENT_TYPES = frozenset({"image/jpeg", "image/png", "image/webp"})
MULTIPART_OVERHEAD_BYTES = 64 * 1024  # boundaries, part headers and text fields


def _too_large() -> UploadRejectedError:
    max_mb = get_settings().max_upload_bytes // (1024 * 1024)
    return UploadRejectedError(errors.FILE_TOO_LARGE, f"File too large. Maximum size is {max_mb}MB.")


async def read_form(request: Request) -> FormData:
    """Parse the multipart body, refusing oversized or malformed uploads.

    The caller owns the returned form and must ``close()`` it.
    """

    settings = get_settings()
    content_length = request.headers.get("content-length")
    if content_length is not None and content_length.isdigit():
        if int(content_length) > settings.max_upload_bytes + MULTIPART_OVERHEAD_BYTES:
            logger.warning("Refusing %s byte body before parsing", content_length)
            raise _too_large()

    try:
        return await request.form()
    except (HTTPException, MultiPartException) as exc:
        detail = getattr(exc, "detail", None) or getattr(exc, "message", None) or str(exc)
        raise UploadRejectedError(errors.UPLOAD_ERROR, f"Upload error: {detail}") from exc


async def accept_upload(form: FormData) -> UploadedImage:
    """Validate the single image file in *form* and read it into memory.

    Raises
    ------
    UploadRejectedError
        ``MISSING_FILE``, ``TOO_MANY_FILES``, ``INVALID_FILE_TYPE`` or
        ``FILE_TOO_LARGE``; always HTTP 400.
    """

    settings = get_settings()
    files = [(key, value) for key, value in form.multi_items() if isinstance(value, UploadFile)]
    if len(files) > 1:
        raise UploadRejectedError(errors.TOO_MANY_FILES, "Only one image may be uploaded per request")

    upload = form.get(IMAGE_FIELD)
    if not isinstance(upload, UploadFile):
        raise UploadRejectedError(errors.MISSING_FILE, "No image uploaded")

    content_type = (upload.content_type or "").split(";")[0].strip().lower()
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise UploadRejectedError(
            errors.INVALID_FILE_TYPE,
            "Invalid file type. Only JPEG, PNG, and WebP are allowed.",
        )

    if upload.size is not None and upload.size > settings.max_upload_bytes:
        raise _too_large()

    data = await upload.read(settings.max_upload_bytes + 1)
    if len(data) > settings.max_upload_bytes:
        raise _too_large()

    logger.info("Accepted upload %r: %d bytes, %s", upload.filename, len(data), content_type)
    return UploadedImage(
        data=data,
        content_type=content_type,
        size=len(data),
        filename=upload.filename,
    )


def read_text_field(form: FormData, name: str) -> str | None:
    """Return a text field as sent, or None when absent or blank."""

    value = form.get(name)
    if value is None or isinstance(value, UploadFile) or not value.strip():
        return None
    return value
