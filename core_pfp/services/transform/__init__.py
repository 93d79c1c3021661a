from __future__ import annotations

from .base import TransformProvider
from .openai_provider import OpenAIImageProvider
from .registry import get_provider

__all__ = [
    "OpenAIImageProvider",
    "TransformProvider",
    "get_provider",
]
