"""Lightweight timing of named operations."""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class OperationMetric:
    operation: str
    duration: float
    item_count: Optional[int] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class OperationStats:
    count: int
    total: float
    average: float
    minimum: float
    maximum: float


class PerformanceMonitor:
    """Collects wall-clock durations (seconds) keyed by operation name."""

    def __init__(self) -> None:
        self._metrics: List[OperationMetric] = []
        self._timers: Dict[str, float] = {}

    def start_timer(self, operation: str) -> None:
        self._timers[operation] = time.perf_counter()

    def end_timer(self, operation: str, **metadata: Any) -> OperationMetric:
        """Stop the timer for ``operation`` and record it.

        Raises:
            KeyError: If no timer was started for ``operation``.
        """
        try:
            started = self._timers.pop(operation)
        except KeyError:
            raise KeyError(f"No timer found for operation: {operation}") from None

        item_count = metadata.pop("item_count", None)
        metric = OperationMetric(
            operation=operation,
            duration=time.perf_counter() - started,
            item_count=item_count,
            metadata=metadata,
        )
        self._metrics.append(metric)
        return metric

    @contextmanager
    def measure(self, operation: str, **metadata: Any) -> Iterator[Dict[str, Any]]:
        """Time the enclosed block.

        The yielded dict can be filled in by the block (e.g. ``item_count``)
        and is recorded with the metric. Failures are recorded with
        ``error=True`` and re-raised.
        """
        extra: Dict[str, Any] = dict(metadata)
        self.start_timer(operation)
        try:
            yield extra
        except Exception:
            extra["error"] = True
            self.end_timer(operation, **extra)
            raise
        self.end_timer(operation, **extra)

    def get_metrics(self, operation: str | None = None) -> List[OperationMetric]:
        if operation is None:
            return list(self._metrics)
        return [metric for metric in self._metrics if metric.operation == operation]

    def get_stats(self, operation: str) -> OperationStats | None:
        durations = [metric.duration for metric in self.get_metrics(operation)]
        if not durations:
            return None
        total = sum(durations)
        return OperationStats(
            count=len(durations),
            total=total,
            average=total / len(durations),
            minimum=min(durations),
            maximum=max(durations),
        )

    def clear(self) -> None:
        self._metrics.clear()
        self._timers.clear()

    def log_summary(self) -> None:
        operations = dict.fromkeys(metric.operation for metric in self._metrics)
        for operation in operations:
            stats = self.get_stats(operation)
            if stats is None:
                continue
            LOGGER.info(
                "%s: runs=%d avg=%.2fms min=%.2fms max=%.2fms total=%.2fms",
                operation,
                stats.count,
                stats.average * 1000,
                stats.minimum * 1000,
                stats.maximum * 1000,
                stats.total * 1000,
            )
