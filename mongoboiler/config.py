"""
Configuration management for MONGOBOILER.

Configuration is optional: handles can be built with direct parameters and
fall back to environment variables, then to the defaults in ``constants``.
"""

import os

from .constants import (
    DEFAULT_LOG_LEVEL,
    DEFAULT_TIMEOUT_MS,
    ENV_DEFAULT_TIMEOUT_MS,
    ENV_LOG_LEVEL,
    ENV_METRICS_ENABLED,
    MAX_TIMEOUT_MS,
    VALID_LOG_LEVELS,
)
from .exceptions import ConfigurationError


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class BoilerConfig:
    """
    Handle configuration.

    Example:
        # Using environment variables
        config = BoilerConfig()
        db = Database(client, "shop", config=config)

        # Or using direct parameters
        config = BoilerConfig(default_timeout_ms=2000, metrics_enabled=False)
    """

    def __init__(
        self,
        default_timeout_ms: int | None = None,
        log_level: str | None = None,
        metrics_enabled: bool | None = None,
    ):
        """
        Initialize configuration.

        Args:
            default_timeout_ms: Deadline applied to each call of a handle built without
                an explicit context (defaults to MONGOBOILER_DEFAULT_TIMEOUT_MS or 0 = no deadline)
            log_level: Level used to log successful operations
                (defaults to MONGOBOILER_LOG_LEVEL or DEBUG)
            metrics_enabled: Whether operations are recorded in the metrics collector
                (defaults to MONGOBOILER_METRICS_ENABLED or true)
        """
        if default_timeout_ms is None:
            raw_timeout = os.getenv(ENV_DEFAULT_TIMEOUT_MS, str(DEFAULT_TIMEOUT_MS))
            try:
                default_timeout_ms = int(raw_timeout)
            except ValueError as e:
                raise ConfigurationError(
                    "default_timeout_ms must be an integer",
                    config_key=ENV_DEFAULT_TIMEOUT_MS,
                    config_value=raw_timeout,
                ) from e
        self.default_timeout_ms = default_timeout_ms
        self.log_level = (log_level or os.getenv(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL)).upper()
        self.metrics_enabled = (
            metrics_enabled
            if metrics_enabled is not None
            else _env_bool(ENV_METRICS_ENABLED, True)
        )

    @property
    def default_timeout(self) -> float | None:
        """Default deadline in seconds, or None when disabled."""
        if not self.default_timeout_ms:
            return None
        return self.default_timeout_ms / 1000.0

    def validate(self) -> None:
        """
        Validate configuration values.

        Raises:
            ConfigurationError: If a value is out of range
        """
        if self.default_timeout_ms < 0:
            raise ConfigurationError(
                f"default_timeout_ms must be >= 0, got {self.default_timeout_ms}",
                config_key="default_timeout_ms",
                config_value=self.default_timeout_ms,
            )

        if self.default_timeout_ms > MAX_TIMEOUT_MS:
            raise ConfigurationError(
                f"default_timeout_ms must be <= {MAX_TIMEOUT_MS}, got {self.default_timeout_ms}",
                config_key="default_timeout_ms",
                config_value=self.default_timeout_ms,
            )

        if self.log_level not in VALID_LOG_LEVELS:
            raise ConfigurationError(
                f"log_level must be one of {', '.join(VALID_LOG_LEVELS)}, got {self.log_level}",
                config_key="log_level",
                config_value=self.log_level,
            )
