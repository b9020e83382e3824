"""Workspace scanning, confidence-scored routing and agent orchestration."""

from .errors import AICoreError, ConfigError, InvalidPath
from .pipeline import Pipeline, run_pipeline

__version__ = "0.1.0"

__all__ = ["AICoreError", "ConfigError", "InvalidPath", "Pipeline", "run_pipeline"]
