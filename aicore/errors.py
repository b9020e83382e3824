"""Exception types raised by aicore components."""

from __future__ import annotations


class AICoreError(RuntimeError):
    """Base class for errors surfaced to aicore callers."""


class InvalidPath(AICoreError, FileNotFoundError):
    """Raised when a workspace path is missing or is not a directory."""


class ConfigError(AICoreError):
    """Raised when the configuration file cannot be read or is inconsistent."""


__all__ = ["AICoreError", "ConfigError", "InvalidPath"]
