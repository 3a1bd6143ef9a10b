"""
Observability components.

Per-task logging context and per-operation metrics used by the
collection helpers.
"""

from .logging import (
    clear_correlation_id,
    clear_log_context,
    get_correlation_id,
    get_logging_context,
    log_operation,
    set_correlation_id,
    set_log_context,
)
from .metrics import (
    MetricsCollector,
    OperationMetrics,
    get_metrics_collector,
    record_operation,
)

__all__ = [
    # Metrics
    "MetricsCollector",
    "OperationMetrics",
    "get_metrics_collector",
    "record_operation",
    # Logging
    "get_correlation_id",
    "set_correlation_id",
    "clear_correlation_id",
    "set_log_context",
    "clear_log_context",
    "get_logging_context",
    "log_operation",
]
