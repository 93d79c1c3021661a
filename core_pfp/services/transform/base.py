from __future__ import annotations

from abc import ABC, abstractmethod

from core_pfp.models import TransformRequest, TransformResult


class TransformProvider(ABC):
    """Abstract interface for an external image-edit provider."""

    name: str = "abstract"
    model: str = "unknown"

    @abstractmethod
    async def edit(self, request: TransformRequest) -> TransformResult:
        """Run one image edit. Implementations must not retry.

        Returns
        -------
        TransformResult
            inline base64 data and/or a URL; neither is checked here
        """

    async def close(self) -> None:  # noqa: B027
        """Release any network resources held by the provider."""
