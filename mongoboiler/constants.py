"""
Constants for MONGOBOILER.

This module contains the shared defaults used across the codebase to avoid
magic numbers.
"""

from typing import Final

# ============================================================================
# CONTEXT / TIMEOUT CONSTANTS
# ============================================================================

DEFAULT_TIMEOUT_MS: Final[int] = 0
"""Default per-handle operation deadline in milliseconds (0 disables it)."""

MAX_TIMEOUT_MS: Final[int] = 24 * 60 * 60 * 1000
"""Upper bound accepted for a configured default timeout (one day)."""

# ============================================================================
# OBSERVABILITY CONSTANTS
# ============================================================================

DEFAULT_LOG_LEVEL: Final[str] = "DEBUG"
"""Log level used for successful CRUD operations."""

VALID_LOG_LEVELS: Final[tuple[str, ...]] = (
    "DEBUG",
    "INFO",
    "WARNING",
    "ERROR",
    "CRITICAL",
)
"""Log level names accepted by the configuration."""

DEFAULT_MAX_METRICS: Final[int] = 10000
"""Maximum number of distinct metric keys kept before LRU eviction."""

METRIC_PREFIX: Final[str] = "collection"
"""Prefix for metric names recorded by collection operations."""

# ============================================================================
# ENVIRONMENT VARIABLES
# ============================================================================

ENV_DEFAULT_TIMEOUT_MS: Final[str] = "MONGOBOILER_DEFAULT_TIMEOUT_MS"
ENV_LOG_LEVEL: Final[str] = "MONGOBOILER_LOG_LEVEL"
ENV_METRICS_ENABLED: Final[str] = "MONGOBOILER_METRICS_ENABLED"
