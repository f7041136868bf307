"""Configuration error definitions."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised when configuration values cannot be used to build a session."""


class MissingConfigurationError(ConfigurationError):
    """Raised when required configuration values are absent or blank."""


class InvalidConfigurationValueError(ConfigurationError):
    """Raised when a configuration value is present but malformed."""

    def __init__(self, name: str, value: str, reason: str) -> None:
        super().__init__(f"{name} {reason}, got {value!r}")
        self.name = name
        self.value = value
