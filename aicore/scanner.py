"""Workspace scanning: run detectors and merge them into one descriptor."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from .detectors import Detector, discover_detectors
from .errors import InvalidPath
from .logging import get_logger
from .models import DetectorResult, WorkspaceDescriptor

_WEB_SCRIPT_LANGUAGES = {"javascript", "typescript"}

logger = get_logger("scanner")


def resolve_workspace(path: str | Path) -> Path:
    """Return the absolute workspace path, raising InvalidPath when it is unusable."""
    root = Path(path).expanduser().resolve()
    if not root.exists():
        raise InvalidPath(f"Workspace path does not exist: {root}")
    if not root.is_dir():
        raise InvalidPath(f"Workspace path is not a directory: {root}")
    return root


def derive_project_type(language: str, capabilities: Iterable[str], signals: Iterable[str]) -> str:
    """Classify the project from its merged capabilities, first match wins."""
    capability_set = set(capabilities)
    if "api" in capability_set:
        return "api"
    if "ml" in capability_set:
        return "ml"
    if "cli" in capability_set:
        return "cli"
    if language in _WEB_SCRIPT_LANGUAGES:
        if "node" not in set(signals):
            return "landing"
        return "saas"
    return "unknown"


def merge_results(results: Sequence[DetectorResult]) -> WorkspaceDescriptor:
    """Merge detector results collected in registration order."""
    if not results:
        return WorkspaceDescriptor()

    primary = next((result for result in results if result.framework), results[0])
    signals = frozenset(signal for result in results for signal in result.signals)
    capabilities = frozenset(cap for result in results for cap in result.capabilities)

    return WorkspaceDescriptor(
        language=primary.language,
        framework=primary.framework,
        capabilities=capabilities,
        signals=signals,
        project_type=derive_project_type(primary.language, capabilities, signals),
    )


class WorkspaceScanner:
    """Runs every registered detector against a workspace."""

    def __init__(self, detectors: Optional[Iterable[Detector]] = None) -> None:
        self.detectors: List[Detector] = (
            list(detectors) if detectors is not None else discover_detectors()
        )

    def scan(self, path: str | Path) -> WorkspaceDescriptor:
        """Return the unified descriptor for the workspace at *path*."""
        root = resolve_workspace(path)
        results = self.collect(root)
        descriptor = merge_results(results)
        logger.debug(
            "Scanned %s: language=%s framework=%s type=%s",
            root,
            descriptor.language,
            descriptor.framework,
            descriptor.project_type,
        )
        return descriptor

    def collect(self, root: Path) -> List[DetectorResult]:
        """Run detectors sequentially; failing detectors contribute no signal."""
        results: List[DetectorResult] = []
        for detector in self.detectors:
            result = self._run_detector(detector, root)
            if result is not None:
                if not result.detector:
                    result.detector = detector.name
                results.append(result)
        return results

    @staticmethod
    def _run_detector(detector: Detector, root: Path) -> Optional[DetectorResult]:
        try:
            return detector.detect(root)
        except Exception as exc:
            logger.warning("Detector %s failed: %s", detector.name or type(detector).__name__, exc)
            return None


__all__ = ["WorkspaceScanner", "derive_project_type", "merge_results", "resolve_workspace"]
