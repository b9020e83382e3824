from __future__ import annotations

import logging
from pathlib import Path

import pytest

from aicore.config import AICoreConfig, MemoryConfig, TelemetryConfig
from tests._fixtures.workspace_builder import WorkspaceBuilder


@pytest.fixture
def workspace(tmp_path: Path) -> WorkspaceBuilder:
    """Provide a reusable workspace builder rooted at the pytest tmp_path."""
    return WorkspaceBuilder(tmp_path)


@pytest.fixture
def isolated_config(tmp_path: Path) -> AICoreConfig:
    """Default configuration whose run history lives under tmp_path."""
    return AICoreConfig(
        root=tmp_path,
        memory=MemoryConfig(directory=tmp_path / "memory"),
        telemetry=TelemetryConfig(enabled=False),
    )


@pytest.fixture
def aicore_caplog(caplog: pytest.LogCaptureFixture, monkeypatch: pytest.MonkeyPatch):
    """caplog that also sees records from the non-propagating aicore logger."""
    monkeypatch.setattr(logging.getLogger("aicore"), "propagate", True)
    return caplog
