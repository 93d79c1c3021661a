from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from prometheus_client import Counter

from core_pfp.config import get_settings
from core_pfp.services.errors import ServerBusyError

logger = logging.getLogger(__name__)

SLOT_TIMEOUT_COUNTER = Counter(
    "image_transform_slot_timeouts",
    "Requests rejected because no provider slot became free in time.",
)


class TransformLimiter:
    """Fixed pool of slots bounding concurrent calls to the transform provider."""

    def __init__(self, slots: int, *, wait_timeout: float | None = None) -> None:
        if slots < 1:
            raise ValueError("TransformLimiter needs at least one slot")
        self.slots = slots
        self.wait_timeout = wait_timeout
        self._sem = asyncio.Semaphore(slots)
        self._in_use = 0

    @property
    def in_use(self) -> int:
        return self._in_use

    @asynccontextmanager
    async def slot(self) -> AsyncIterator[None]:
        try:
            await asyncio.wait_for(self._sem.acquire(), timeout=self.wait_timeout)
        except asyncio.TimeoutError:
            SLOT_TIMEOUT_COUNTER.inc()
            logger.warning("No transform slot free after %.1fs (%d in use)", self.wait_timeout, self._in_use)
            raise ServerBusyError() from None

        self._in_use += 1
        try:
            yield
        finally:
            self._in_use -= 1
            self._sem.release()


_settings = get_settings()
transform_limiter = TransformLimiter(
    _settings.max_concurrent_transforms,
    wait_timeout=_settings.transform_slot_timeout,
)
