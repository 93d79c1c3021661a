"""Image transform endpoints: avatar generation and style application."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from prometheus_client import Counter

from core_pfp.models import ErrorResponse, NormalizationProfile, TransformResponse
from core_pfp.services import errors
from core_pfp.services.errors import ApiError, UploadRejectedError, classify_error
from core_pfp.services.pipeline import TransformPipeline, get_pipeline
from core_pfp.services.upload_gate import accept_upload, read_form, read_text_field
from core_pfp.utils.timing import RequestTimer

router = APIRouter(prefix="/api", tags=["transform"])
logger = logging.getLogger(__name__)

TRANSFORM_REQUESTS_COUNTER = Counter(
    "image_transform_requests",
    "Transform requests by endpoint and outcome (ok or error code).",
    labelnames=["endpoint", "outcome"],
)

AVATAR_PROMPT = """Transform this image with a futuristic cyberpunk aesthetic featuring:
- Intense electric-blue aura and neon outline around the subject
- Subtle cosmic blue energy particles and mist in the background
- Glowing infinity symbols (∞) floating subtly around the edges
- Dramatic lighting with vivid blue highlights and deep shadows
- High contrast digital art style with sharp details
- Ethereal, otherworldly atmosphere
- Keep the original subject recognizable but make it look powered by cosmic blue energy
- Style should feel like a premium digital art piece with professional quality"""

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    408: {"model": ErrorResponse},
    429: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
    503: {"model": ErrorResponse},
}


@router.post("/generate-avatar", response_model=TransformResponse, responses=_ERROR_RESPONSES)
async def generate_avatar(request: Request, pipeline: TransformPipeline = Depends(get_pipeline)):
    """Restyle an uploaded portrait with the fixed avatar prompt."""
    return await _transform(
        request,
        pipeline,
        endpoint="generate-avatar",
        summary="Image transformation failed",
        profile=NormalizationProfile.LOSSY,
        fixed_prompt=AVATAR_PROMPT,
    )


@router.post("/apply-style", response_model=TransformResponse, responses=_ERROR_RESPONSES)
async def apply_style(request: Request, pipeline: TransformPipeline = Depends(get_pipeline)):
    """Apply a caller-supplied style prompt to an uploaded image."""
    return await _transform(
        request,
        pipeline,
        endpoint="apply-style",
        summary="Style transformation failed",
        profile=NormalizationProfile.ALPHA,
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _transform(
    request: Request,
    pipeline: TransformPipeline,
    *,
    endpoint: str,
    summary: str,
    profile: NormalizationProfile,
    fixed_prompt: str | None = None,
) -> JSONResponse:
    timer = RequestTimer(f"/api/{endpoint}")
    form = None
    try:
        form = await read_form(request)
        style = form.get("style")
        style = style if isinstance(style, str) and style else None
        upload = await accept_upload(form)
        prompt = fixed_prompt or read_text_field(form, "prompt")
        if prompt is None:
            raise UploadRejectedError(errors.MISSING_PROMPT, "No style prompt provided")
        timer.mark("validated")

        image_b64 = await pipeline.run(upload, prompt, profile, timer)
    except Exception as exc:  # terminal handler: every failure becomes a JSON error body
        return _error_response(endpoint, summary, classify_error(exc), timer)
    finally:
        if form is not None:
            await form.close()

    elapsed = timer.elapsed_ms()
    logger.info("/api/%s done in %dms (stages: %s)", endpoint, elapsed, timer.marks)
    TRANSFORM_REQUESTS_COUNTER.labels(endpoint=endpoint, outcome="ok").inc()
    body = TransformResponse(
        image=image_b64,
        model=pipeline.model,
        style=style,
        processing_time=elapsed,
    )
    return JSONResponse(body.model_dump(by_alias=True, exclude_none=True))


def _error_response(endpoint: str, summary: str, error: ApiError, timer: RequestTimer) -> JSONResponse:
    elapsed = timer.elapsed_ms()
    TRANSFORM_REQUESTS_COUNTER.labels(endpoint=endpoint, outcome=error.code).inc()

    if isinstance(error, UploadRejectedError):
        logger.warning("/api/%s rejected upload: %s (%s)", endpoint, error.message, error.code)
        body = ErrorResponse(error=error.message, code=error.code, processing_time=elapsed)
    else:
        log = logger.exception if error.code == errors.UNKNOWN_ERROR else logger.error
        log("/api/%s error after %dms: %r", endpoint, elapsed, error)
        body = ErrorResponse(error=summary, details=error.message, code=error.code, processing_time=elapsed)

    return JSONResponse(body.model_dump(by_alias=True, exclude_none=True), status_code=error.status)
