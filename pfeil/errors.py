"""pfeil error hierarchy and exceptions."""

from __future__ import annotations


class PfeilError(Exception):
    """Base exception for all pfeil errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class ConfigError(PfeilError):
    """Raised when the tracer configuration is invalid or incomplete."""
    pass


class ValidationError(PfeilError):
    """Raised when an input value (operation name, token, timestamp, tag) is malformed."""
    pass


class InitializationError(PfeilError):
    """Raised when the tracer or the span cannot be created."""
    pass


class CommandError(PfeilError):
    """Raised when the wrapped command cannot be launched or waited on."""
    pass
