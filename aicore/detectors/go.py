"""Go workspace detector."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from .base import Detector
from .utils import list_root, read_text
from ..models import DetectorResult

# go.mod substring -> framework name
_FRAMEWORKS = (
    ("gin-gonic", "gin"),
    ("fiber", "fiber"),
    ("echo", "echo"),
    ("gorilla", "gorilla"),
)


class GoDetector(Detector):
    """Detects Go modules and common HTTP frameworks."""

    name = "go"

    def detect(self, root: Path) -> Optional[DetectorResult]:
        names = list_root(root)
        has_go_mod = "go.mod" in names
        if not has_go_mod and not any(name.endswith(".go") for name in names):
            return None

        signals: List[str] = ["go"]
        capabilities: List[str] = []
        framework: Optional[str] = None

        if has_go_mod:
            content = read_text(root / "go.mod")
            for needle, name in _FRAMEWORKS:
                if needle in content:
                    framework = name
                    signals.append(name)
                    break

        if framework:
            capabilities.append("api")
        if any("cmd" in name for name in names):
            capabilities.append("cli")

        return DetectorResult(
            language="go",
            framework=framework,
            signals=signals,
            capabilities=capabilities,
            detector=self.name,
        )
