from __future__ import annotations

import logging
import time

from openai import AsyncOpenAI

from core_pfp.config import Settings, get_settings
from core_pfp.models import TransformRequest, TransformResult

from .base import TransformProvider

logger = logging.getLogger(__name__)


class OpenAIImageProvider(TransformProvider):
    name = "openai"

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        self.model = self._settings.openai_image_model
        self._client: AsyncOpenAI | None = None

    @property
    def client(self) -> AsyncOpenAI:
        # Built on first use so the app can boot (and serve health checks)
        # without OPENAI_API_KEY.
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self._settings.openai_api_key,
                timeout=self._settings.transform_timeout,
                max_retries=0,
            )
        return self._client

    async def edit(self, request: TransformRequest) -> TransformResult:
        image = request.image
        logger.info(
            "Sending edit request to OpenAI: model=%s size=%s input=%d bytes (%s)",
            self.model,
            request.size,
            len(image.data),
            image.content_type,
        )
        started = time.perf_counter()
        response = await self.client.images.edit(
            model=self.model,
            image=(image.filename, image.data, image.content_type),
            prompt=request.prompt,
            size=request.size,
            n=1,
        )
        logger.info("OpenAI response time: %dms", int((time.perf_counter() - started) * 1000))

        data = response.data or []
        if not data:
            logger.error("OpenAI returned unexpected payload: %s", response)
            return TransformResult()
        item = data[0]
        return TransformResult(b64_json=item.b64_json, url=item.url)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
