"""Per-request stage timing.

Each request gets its own :class:`RequestTimer`; nothing is shared between
requests. ``processingTime`` in every transform response comes from here.
"""
from __future__ import annotations

import logging
import time

logger = logging.getLogger(__name__)


class RequestTimer:
    """Monotonic stopwatch with named stage marks."""

    def __init__(self, label: str) -> None:
        self.label = label
        self._start = time.perf_counter()
        self.marks: dict[str, int] = {}

    def elapsed_ms(self) -> int:
        return max(0, int((time.perf_counter() - self._start) * 1000))

    def mark(self, stage: str) -> int:
        """Record the elapsed time at the end of *stage* and return it (ms)."""

        elapsed = self.elapsed_ms()
        previous = max(self.marks.values(), default=0)
        # perf_counter is monotonic, but clamp anyway so marks never go backwards
        elapsed = max(elapsed, previous)
        self.marks[stage] = elapsed
        logger.debug("%s: %s done after %dms", self.label, stage, elapsed)
        return elapsed
