"""
Per-phase timing statistics.

The simulator wraps each pipeline phase in ``timed(label)``; the
statistics only observe, they never affect results.
"""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterator, List, Tuple

logger = logging.getLogger(__name__)


@dataclass
class PhaseTiming:
    """Measurement of one timed block; elapsed is set when the block exits."""

    label: str
    elapsed_ms: float = 0.0


class TimeStatistics:
    """
    Accumulated wall time and call count per phase label.

    Usage:
        stats = TimeStatistics()
        with stats.timed("quad"):
            build_quad()
        print(stats)
    """

    def __init__(self) -> None:
        self._times: Dict[str, Tuple[float, int]] = {}
        self._lock = threading.Lock()

    @contextmanager
    def timed(self, label: str) -> Iterator[PhaseTiming]:
        """Measure the enclosed block and record it under ``label``."""
        timing = PhaseTiming(label)
        start = time.perf_counter()
        try:
            yield timing
        finally:
            timing.elapsed_ms = (time.perf_counter() - start) * 1000.0
            self.record(label, timing.elapsed_ms)

    def record(self, label: str, elapsed_ms: float) -> None:
        """Add one measurement in milliseconds."""
        with self._lock:
            total, count = self._times.get(label, (0.0, 0))
            self._times[label] = (total + elapsed_ms, count + 1)
            average = (total + elapsed_ms) / (count + 1)
        logger.debug("%s: %.3f ms (avg %.3f ms)", label, elapsed_ms, average)

    def labels(self) -> List[str]:
        """Labels in the order they were first recorded."""
        with self._lock:
            return list(self._times)

    def total(self, label: str) -> float:
        """Total milliseconds recorded under ``label`` (0 if never)."""
        with self._lock:
            return self._times.get(label, (0.0, 0))[0]

    def count(self, label: str) -> int:
        """Number of measurements under ``label``."""
        with self._lock:
            return self._times.get(label, (0.0, 0))[1]

    def average(self, label: str) -> float:
        """Mean milliseconds per measurement (0 if never recorded)."""
        with self._lock:
            total, count = self._times.get(label, (0.0, 0))
        return total / count if count else 0.0

    def clear(self) -> None:
        with self._lock:
            self._times.clear()

    def summary(self) -> str:
        """One ``label: avg ms`` line per label."""
        return "\n".join(f"{label}: {self.average(label):.2f} ms" for label in self.labels())

    def __str__(self) -> str:
        return self.summary()


__all__ = ["PhaseTiming", "TimeStatistics"]
