"""Turn a provider result into a single base64 payload.

Inline data is passed through untouched. URL results are downloaded with a
bounded timeout and base64-encoded.
"""
from __future__ import annotations

import base64
import logging

import httpx

from core_pfp.config import get_settings
from core_pfp.models import TransformResult
from core_pfp.services.errors import ImageFetchError, NoImageReturnedError

logger = logging.getLogger(__name__)


class ImageResolver:  # pylint: disable=too-few-public-methods
    """Resolves :class:`TransformResult` values to base64 image strings."""

    def __init__(self, *, timeout: float = 15.0, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport, follow_redirects=True)

    async def resolve(self, result: TransformResult) -> str:
        if not result.has_image:
            raise NoImageReturnedError()
        if result.b64_json:
            return result.b64_json

        logger.info("Fetching image from URL: %s", result.url)
        resp = await self._client.get(result.url)
        if not resp.is_success:
            raise ImageFetchError(resp.status_code)
        if not resp.content:
            raise NoImageReturnedError("Provider image URL returned an empty body")
        return base64.b64encode(resp.content).decode("ascii")

    async def close(self) -> None:
        await self._client.aclose()


# ------------------------------------------------------------------
# Singleton instance
# ------------------------------------------------------------------

image_resolver = ImageResolver(timeout=get_settings().fetch_timeout)
