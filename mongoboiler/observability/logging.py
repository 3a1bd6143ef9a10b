"""
Logging helpers for MONGOBOILER.

Callers attach request data (a correlation ID, a user, a route) to the
current task with ``set_log_context``; every record emitted by
``log_operation`` carries it as ``extra`` fields.
"""

import contextvars
import logging
import uuid
from typing import Any

_log_context: contextvars.ContextVar[dict[str, Any] | None] = contextvars.ContextVar(
    "mongoboiler_log_context", default=None
)


def get_logging_context() -> dict[str, Any]:
    """Copy of the context attached to the current task."""
    return dict(_log_context.get() or {})


def set_log_context(**kwargs: Any) -> None:
    """
    Merge key/value pairs into the logging context of the current task.

    Example:
        set_log_context(request_path="/orders", user_id="u_1")
    """
    context = get_logging_context()
    context.update(kwargs)
    _log_context.set(context)


def clear_log_context() -> None:
    """Drop the whole logging context, correlation ID included."""
    _log_context.set(None)


def set_correlation_id(correlation_id: str | None = None) -> str:
    """
    Attach a correlation ID to the current task, generating one if needed.

    Returns:
        The correlation ID now in effect
    """
    correlation_id = correlation_id or str(uuid.uuid4())
    set_log_context(correlation_id=correlation_id)
    return correlation_id


def get_correlation_id() -> str | None:
    return get_logging_context().get("correlation_id")


def clear_correlation_id() -> None:
    context = get_logging_context()
    context.pop("correlation_id", None)
    _log_context.set(context or None)


def log_operation(
    logger: logging.Logger,
    operation: str,
    level: int = logging.DEBUG,
    success: bool = True,
    duration_ms: float | None = None,
    **fields: Any,
) -> None:
    """
    Log one collection operation.

    The record's ``extra`` holds the task's logging context, then
    ``operation``/``success``/``duration_ms``, then ``fields``.
    """
    if not logger.isEnabledFor(level):
        return

    extra = get_logging_context()
    extra.update(operation=operation, success=success, **fields)

    message = f"Operation {'succeeded' if success else 'failed'}: {operation}"
    if "collection" in fields:
        message += f" on {fields['collection']}"
    if duration_ms is not None:
        extra["duration_ms"] = round(duration_ms, 2)
        message += f" ({duration_ms:.2f}ms)"

    logger.log(level, message, extra=extra)
