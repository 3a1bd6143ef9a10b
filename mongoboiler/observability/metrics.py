"""
Operation metrics for MONGOBOILER.

Every collection helper reports how long its driver call took and whether
it failed. The collector folds those reports into one aggregate per
operation and tag set (database, collection).
"""

import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..constants import DEFAULT_MAX_METRICS


@dataclass
class OperationMetrics:
    """Running aggregate for one operation and tag set."""

    operation_name: str
    tags: dict[str, Any] = field(default_factory=dict)
    count: int = 0
    error_count: int = 0
    total_duration_ms: float = 0.0
    max_duration_ms: float = 0.0
    last_execution: datetime | None = None

    def record(self, duration_ms: float, success: bool) -> None:
        self.count += 1
        if not success:
            self.error_count += 1
        self.total_duration_ms += duration_ms
        self.max_duration_ms = max(self.max_duration_ms, duration_ms)
        self.last_execution = datetime.now()

    def to_dict(self) -> dict[str, Any]:
        avg = self.total_duration_ms / self.count if self.count else 0.0
        return {
            "operation": self.operation_name,
            **self.tags,
            "count": self.count,
            "error_count": self.error_count,
            "avg_duration_ms": round(avg, 2),
            "max_duration_ms": round(self.max_duration_ms, 2),
            "last_execution": self.last_execution.isoformat() if self.last_execution else None,
        }


class MetricsCollector:
    """
    Thread-safe store of OperationMetrics.

    At most ``max_metrics`` aggregates are kept; recording into a full
    collector drops the aggregate that was updated longest ago.
    """

    def __init__(self, max_metrics: int = DEFAULT_MAX_METRICS):
        self._entries: OrderedDict[tuple, OperationMetrics] = OrderedDict()
        self._lock = threading.Lock()
        self._max_metrics = max_metrics

    def record_operation(
        self, operation_name: str, duration_ms: float, success: bool = True, **tags: Any
    ) -> None:
        key = (operation_name, tuple(sorted(tags.items())))
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                if len(self._entries) >= self._max_metrics:
                    self._entries.popitem(last=False)
                entry = self._entries[key] = OperationMetrics(operation_name, dict(tags))
            else:
                self._entries.move_to_end(key)
            entry.record(duration_ms, success)

    def get_metrics(self, **tags: Any) -> list[dict[str, Any]]:
        """
        Aggregates whose tags include every given tag, oldest update first.

        Example:
            collector.get_metrics(collection="orders")
        """
        with self._lock:
            return [
                entry.to_dict()
                for entry in self._entries.values()
                if all(entry.tags.get(k) == v for k, v in tags.items())
            ]

    def get_operation_count(self, operation_name: str) -> int:
        """Total calls of ``operation_name`` across all tag sets."""
        with self._lock:
            return sum(
                entry.count
                for entry in self._entries.values()
                if entry.operation_name == operation_name
            )

    def reset(self) -> None:
        with self._lock:
            self._entries.clear()


_metrics_collector: MetricsCollector | None = None
_collector_lock = threading.Lock()


def get_metrics_collector() -> MetricsCollector:
    """Get or create the process-wide collector."""
    global _metrics_collector
    if _metrics_collector is None:
        with _collector_lock:
            if _metrics_collector is None:
                _metrics_collector = MetricsCollector()
    return _metrics_collector


def record_operation(
    operation_name: str, duration_ms: float, success: bool = True, **tags: Any
) -> None:
    """Record an operation in the process-wide collector."""
    get_metrics_collector().record_operation(operation_name, duration_ms, success, **tags)
