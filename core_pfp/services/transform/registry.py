from __future__ import annotations

from functools import lru_cache

from core_pfp.config import get_settings

from .base import TransformProvider
from .openai_provider import OpenAIImageProvider

_PROVIDERS: dict[str, type[TransformProvider]] = {
    "openai": OpenAIImageProvider,
}


@lru_cache()
def get_provider() -> TransformProvider:
    settings = get_settings()
    provider_key = settings.transform_provider.lower()
    if provider_key not in _PROVIDERS:
        raise ValueError(f"Unsupported transform provider: {provider_key}")
    return _PROVIDERS[provider_key]()
