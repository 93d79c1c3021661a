"""Upload -> normalize -> transform -> resolve.

One :class:`TransformPipeline` is shared by all requests; it holds no
per-request state. Each step runs strictly after the previous one, and the
provider is called at most once per request, inside a limiter slot.
"""
from __future__ import annotations

import logging
from functools import lru_cache

from core_pfp.config import get_settings
from core_pfp.models import NormalizationProfile, TransformRequest, UploadedImage
from core_pfp.services.limiter import TransformLimiter, transform_limiter
from core_pfp.services.normalizer import normalize_image
from core_pfp.services.resolver import ImageResolver, image_resolver
from core_pfp.services.transform import TransformProvider, get_provider
from core_pfp.utils.timing import RequestTimer

logger = logging.getLogger(__name__)


class TransformPipeline:
    def __init__(
        self,
        provider: TransformProvider,
        resolver: ImageResolver,
        limiter: TransformLimiter,
        *,
        size: str = "1024x1024",
    ) -> None:
        self.provider = provider
        self.resolver = resolver
        self.limiter = limiter
        self.size = size

    @property
    def model(self) -> str:
        return self.provider.model

    async def run(
        self,
        image: UploadedImage,
        prompt: str,
        profile: NormalizationProfile,
        timer: RequestTimer,
    ) -> str:
        """Return the transformed image as base64.

        Errors from the provider or the resolver propagate unchanged; the
        caller classifies them.
        """

        normalized = await normalize_image(image, profile)
        timer.mark("normalized")

        request = TransformRequest(image=normalized, prompt=prompt, size=self.size)
        async with self.limiter.slot():
            result = await self.provider.edit(request)
        timer.mark("transformed")

        image_b64 = await self.resolver.resolve(result)
        timer.mark("resolved")
        return image_b64

    async def close(self) -> None:
        await self.provider.close()
        await self.resolver.close()


@lru_cache()
def get_pipeline() -> TransformPipeline:
    """FastAPI dependency returning the process-wide pipeline."""

    return TransformPipeline(
        get_provider(),
        image_resolver,
        transform_limiter,
        size=get_settings().output_size,
    )
