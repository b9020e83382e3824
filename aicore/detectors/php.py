"""PHP workspace detector."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from .base import Detector
from .utils import list_root, load_json, merged_dependencies
from ..models import DetectorResult

# composer package -> framework name
_FRAMEWORKS = (
    (("laravel", "laravel/framework"), "laravel"),
    (("symfony", "symfony/skeleton"), "symfony"),
    (("codeigniter",), "codeigniter"),
    (("yii2", "yii3"), "yii"),
    (("slim",), "slim"),
    (("lumen",), "lumen"),
)
_API_FRAMEWORKS = {"laravel", "symfony", "slim", "lumen"}


class PHPDetector(Detector):
    """Detects Composer projects and PHP frameworks."""

    name = "php"

    def detect(self, root: Path) -> Optional[DetectorResult]:
        names = list_root(root)
        if "composer.json" not in names and not any(name.endswith(".php") for name in names):
            return None

        signals: List[str] = ["php"]
        capabilities: List[str] = []
        framework: Optional[str] = None

        if "composer.json" in names:
            composer = load_json(root / "composer.json")
            deps = merged_dependencies(composer, "require", "require-dev")
            for packages, name in _FRAMEWORKS:
                if any(package in deps for package in packages):
                    framework = name
                    signals.append(name)
                    break

        if "artisan" in names:
            framework = "laravel"
            if "laravel" not in signals:
                signals.append("laravel")

        if framework in _API_FRAMEWORKS:
            capabilities.append("api")

        return DetectorResult(
            language="php",
            framework=framework,
            signals=signals,
            capabilities=capabilities,
            detector=self.name,
        )
