"""Workspace detector implementations and discovery utilities."""

from __future__ import annotations

from typing import Callable, List, Sequence

from ..plugins import load_plugins
from .base import Detector
from .dotnet import DotNetDetector
from .go import GoDetector
from .javascript import JavaScriptDetector
from .php import PHPDetector
from .python import PythonDetector
from .rust import RustDetector

_ENTRY_POINT_GROUP = "aicore.detectors"

# Registration order is significant: it breaks ties when merging scan results.
_BUILTIN_FACTORIES: dict[str, Callable[[], Detector]] = {
    "javascript": JavaScriptDetector,
    "python": PythonDetector,
    "dotnet": DotNetDetector,
    "go": GoDetector,
    "rust": RustDetector,
    "php": PHPDetector,
}


def discover_detectors(enabled: Sequence[str] | None = None) -> List[Detector]:
    """Return instantiated detectors in registration order, honoring optional enabled names."""
    return load_plugins(
        _ENTRY_POINT_GROUP, _BUILTIN_FACTORIES, Detector, id_attr="name", enabled=enabled
    )

__all__ = [
    "Detector",
    "DotNetDetector",
    "GoDetector",
    "JavaScriptDetector",
    "PHPDetector",
    "PythonDetector",
    "RustDetector",
    "discover_detectors",
]
