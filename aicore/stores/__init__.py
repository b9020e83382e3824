"""Persistent stores used by the pipeline."""

from .run_history import RunHistory, project_hash

__all__ = ["RunHistory", "project_hash"]
