"""Rust workspace detector."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from .base import Detector
from .utils import list_root, read_text
from ..models import DetectorResult

_FRAMEWORKS = ("actix", "warp", "axum", "rocket", "tide")


class RustDetector(Detector):
    """Detects Cargo projects, web frameworks and WASM targets."""

    name = "rust"

    def detect(self, root: Path) -> Optional[DetectorResult]:
        names = list_root(root)
        has_cargo = "Cargo.toml" in names
        if not has_cargo and not any(name.endswith(".rs") for name in names):
            return None

        signals: List[str] = ["rust"]
        capabilities: List[str] = []
        framework: Optional[str] = None

        if has_cargo:
            content = read_text(root / "Cargo.toml")
            framework = next((name for name in _FRAMEWORKS if name in content), None)
            if framework:
                signals.append(framework)

        if "webpack.config.js" in names or any(name.endswith(".wasm") for name in names):
            signals.append("wasm")
            capabilities.append("wasm")
        if has_cargo and any("main.rs" in name for name in names):
            capabilities.append("cli")
        if framework:
            capabilities.append("api")

        return DetectorResult(
            language="rust",
            framework=framework,
            signals=signals,
            capabilities=capabilities,
            detector=self.name,
        )
