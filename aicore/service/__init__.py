"""Service mode for aicore."""

from .app import create_app, run_service

__all__ = ["create_app", "run_service"]
