"""Python workspace detector."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from .base import Detector
from .utils import dedupe, has_suffix, list_root, read_text
from ..models import DetectorResult

_MANIFESTS = ("requirements.txt", "pyproject.toml", "setup.py")
_WEB_FRAMEWORKS = ("django", "flask", "fastapi", "aiohttp")
_API_FRAMEWORKS = {"django", "flask", "fastapi"}
_DATA_PACKAGES = ("pandas", "numpy")
_ML_PACKAGES = ("torch", "tensorflow", "sklearn", "scikit-learn")


class PythonDetector(Detector):
    """Detects Python web, data and ML projects."""

    name = "python"

    def detect(self, root: Path) -> Optional[DetectorResult]:
        names = list_root(root)
        has_py = has_suffix(names, (".py",))
        manifest = next((name for name in _MANIFESTS if name in names), None)
        if not has_py and manifest is None:
            return None

        signals: List[str] = []
        capabilities: List[str] = []
        framework: Optional[str] = None

        if has_py:
            signals.append("python")

        if manifest is not None:
            content = read_text(root / manifest).lower()
            framework = next((name for name in _WEB_FRAMEWORKS if name in content), None)
            if framework is not None:
                signals.append(framework)
            elif any(package in content for package in _DATA_PACKAGES):
                signals.append("data-science")
                capabilities.append("ml")
            elif any(package in content for package in _ML_PACKAGES):
                signals.append("ml")
                capabilities.append("ml")

        if "manage.py" in names or any(name.endswith("settings.py") for name in names):
            framework = "django"
            signals.append("django")

        if framework in _API_FRAMEWORKS:
            capabilities.append("api")

        return DetectorResult(
            language="python",
            framework=framework,
            signals=dedupe(signals),
            capabilities=dedupe(capabilities),
            detector=self.name,
        )
