from __future__ import annotations


class JSONResultError(Exception):
    """Base class for all jsonresult exceptions."""


class ConfigError(JSONResultError):
    """Raised for invalid result configurations."""


class PatternError(ConfigError):
    """Raised when an include or exclude pattern cannot be compiled."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f'invalid pattern {pattern!r}: {reason}')
        self.pattern = pattern
        self.reason = reason


class IntrospectionError(JSONResultError):
    """Raised when reading a property fails."""

    def __init__(self, path: str, exc: BaseException) -> None:
        super().__init__(f'{path}: {exc}')
        self.path = path


class EncodeError(JSONResultError):
    """Adds context for errors raised when encoding the response body."""


class ResponseError(JSONResultError):
    """Raised for any error writing to the response."""


class RegistryError(JSONResultError):
    """Raised when looking up a name that was never registered."""
