"""Base classes for workspace detector plugins."""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from ..models import DetectorResult


class Detector(ABC):
    """Contract for detectors that classify a workspace from its root listing."""

    name: str = ""

    @abstractmethod
    def detect(self, root: Path) -> Optional[DetectorResult]:
        """Return a partial classification, or None when the workspace does not match."""
