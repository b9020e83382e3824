"""Lifecycle phase detection from filesystem and version-control signals.

The classifier measures a handful of independent facts about a workspace
(:class:`~aicore.models.PhaseSignals`) and turns them into a
discovery/build/ship verdict through additive scoring rules. Every threshold
and point value lives on :class:`PhasePolicy` so the heuristics can be tuned
without touching control flow.
"""

from __future__ import annotations

import json
import os
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from .logging import get_logger
from .models import PHASES, PhaseSignals, PhaseVerdict
from .scanner import resolve_workspace

DISCOVERY, BUILD, SHIP = PHASES

GitRunner = Callable[[Sequence[str], Path], str]

logger = get_logger("phase")


@dataclass(frozen=True)
class PhasePolicy:
    """Thresholds, point values and file markers used by the phase heuristics."""

    excluded_dirs: Tuple[str, ...] = ("node_modules", ".git", "dist", "build", "coverage")
    ci_paths: Tuple[str, ...] = (
        ".github/workflows",
        ".gitlab-ci.yml",
        "azure-pipelines",
        "azure-pipelines.yml",
        "jenkins",
        "Jenkinsfile",
        "bitbucket-pipelines.yml",
    )
    container_files: Tuple[str, ...] = ("Dockerfile", "docker-compose.yml", "docker-compose.yaml")
    deploy_files: Tuple[str, ...] = (
        "vercel.json",
        "netlify.toml",
        "next.config.js",
        "firebase.json",
        "app.json",
        "now.json",
    )
    readme_files: Tuple[str, ...] = ("README.md", "readme.md", "README.txt")
    readme_min_chars: int = 500

    max_files_for_discovery: int = 20
    tiny_file_count: int = 10
    min_files_for_build: int = 20
    max_files_for_build: int = 200
    min_files_for_ship: int = 50
    min_tests_for_ship: int = 3
    max_tests_for_build: int = 10
    few_dependencies: int = 10
    min_dependencies_for_build: int = 5
    max_dependencies_for_build: int = 30
    many_dependencies: int = 20
    few_commits: int = 10
    many_commits: int = 100

    points: Dict[str, Dict[str, int]] = field(
        default_factory=lambda: {
            DISCOVERY: {
                "few_files": 3,
                "tiny": 2,
                "no_ci_or_container": 2,
                "few_dependencies": 1,
                "few_commits": 2,
            },
            BUILD: {
                "mid_files": 3,
                "mid_dependencies": 2,
                "ci": 2,
                "some_tests": 2,
                "mid_commits": 1,
            },
            SHIP: {
                "many_files": 3,
                "enough_tests": 4,
                "ci": 3,
                "container_or_deploy": 3,
                "complete_readme": 1,
                "many_dependencies": 1,
                "many_commits": 2,
            },
        }
    )
    normalizers: Dict[str, int] = field(
        default_factory=lambda: {DISCOVERY: 15, BUILD: 15, SHIP: 20}
    )
    max_confidence: float = 0.9
    tie_confidence: float = 0.5


DEFAULT_POLICY = PhasePolicy()


# ----------------------------------------------------------------------
# Measurement


def _iter_files(root: Path, excluded: Iterable[str]) -> Iterator[str]:
    excluded_set = set(excluded)
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = [name for name in dirnames if name not in excluded_set]
        current = Path(dirpath)
        rel_dir = current.relative_to(root).as_posix() if current != root else ""
        for filename in filenames:
            yield f"{rel_dir}/{filename}" if rel_dir else filename


def is_test_file(rel_path: str) -> bool:
    """Return True when the relative path follows a test naming convention."""
    lowered = rel_path.lower()
    parts = lowered.split("/")
    name = parts[-1]
    if ".test." in name or ".spec." in name:
        return True
    if name.endswith(("test.js", "test.ts", "_test.py", "test.py")):
        return True
    return any(part in {"test", "tests", "__tests__"} for part in parts[:-1])


def _any_exists(root: Path, candidates: Iterable[str]) -> bool:
    return any((root / candidate).exists() for candidate in candidates)


def _has_complete_readme(root: Path, policy: PhasePolicy) -> bool:
    for name in policy.readme_files:
        path = root / name
        if path.is_file():
            try:
                content = path.read_text(encoding="utf-8", errors="ignore")
            except OSError:
                return False
            return len(content) > policy.readme_min_chars
    return False


def count_dependencies(root: Path) -> int:
    """Count declared dependencies from package.json, falling back to requirements.txt."""
    package_json = root / "package.json"
    if package_json.is_file():
        try:
            data = json.loads(package_json.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError):
            return 0
        if not isinstance(data, dict):
            return 0
        names = set()
        for key in ("dependencies", "devDependencies"):
            section = data.get(key)
            if isinstance(section, dict):
                names.update(section)
        return len(names)

    requirements = root / "requirements.txt"
    if requirements.is_file():
        try:
            lines = requirements.read_text(encoding="utf-8").splitlines()
        except (OSError, UnicodeDecodeError):
            return 0
        return sum(1 for line in lines if line.strip() and not line.startswith("#"))
    return 0


def _default_git_runner(args: Sequence[str], cwd: Path) -> str:
    completed = subprocess.run(
        list(args),
        cwd=str(cwd),
        check=True,
        text=True,
        capture_output=True,
    )
    return completed.stdout


def count_commits(root: Path, runner: GitRunner | None = None) -> int:
    """Best-effort commit count; 0 when git or its history is unavailable."""
    if not (root / ".git").exists():
        return 0
    run = runner or _default_git_runner
    try:
        output = run(["git", "rev-list", "--count", "HEAD"], root)
    except (OSError, subprocess.SubprocessError) as exc:
        logger.debug("Commit count unavailable for %s: %s", root, exc)
        return 0
    try:
        return int(output.strip())
    except ValueError:
        return 0


def measure_signals(
    root: Path,
    policy: PhasePolicy = DEFAULT_POLICY,
    *,
    git_runner: GitRunner | None = None,
) -> PhaseSignals:
    """Collect phase signals for the workspace rooted at *root*."""
    file_count = 0
    test_count = 0
    for rel_path in _iter_files(root, policy.excluded_dirs):
        file_count += 1
        if is_test_file(rel_path):
            test_count += 1

    return PhaseSignals(
        file_count=file_count,
        test_count=test_count,
        has_ci=_any_exists(root, policy.ci_paths),
        has_container=_any_exists(root, policy.container_files),
        has_deploy_config=_any_exists(root, policy.deploy_files),
        has_complete_readme=_has_complete_readme(root, policy),
        dependency_count=count_dependencies(root),
        commit_count=count_commits(root, git_runner),
    )


# ----------------------------------------------------------------------
# Scoring


def score_phases(signals: PhaseSignals, policy: PhasePolicy = DEFAULT_POLICY) -> Dict[str, int]:
    """Accumulate integer scores for each phase from independent rules."""
    points = policy.points
    files = signals.file_count
    deps = signals.dependency_count
    commits = signals.commit_count
    tests = signals.test_count

    rules: Dict[str, List[Tuple[bool, str]]] = {
        DISCOVERY: [
            (files <= policy.max_files_for_discovery, "few_files"),
            (files < policy.tiny_file_count, "tiny"),
            (not signals.has_ci and not signals.has_container, "no_ci_or_container"),
            (deps < policy.few_dependencies, "few_dependencies"),
            (commits < policy.few_commits, "few_commits"),
        ],
        BUILD: [
            (policy.min_files_for_build <= files <= policy.max_files_for_build, "mid_files"),
            (
                policy.min_dependencies_for_build <= deps < policy.max_dependencies_for_build,
                "mid_dependencies",
            ),
            (signals.has_ci, "ci"),
            (0 < tests < policy.max_tests_for_build, "some_tests"),
            (policy.few_commits <= commits < policy.many_commits, "mid_commits"),
        ],
        SHIP: [
            (files >= policy.min_files_for_ship, "many_files"),
            (tests >= policy.min_tests_for_ship, "enough_tests"),
            (signals.has_ci, "ci"),
            (signals.has_container or signals.has_deploy_config, "container_or_deploy"),
            (signals.has_complete_readme, "complete_readme"),
            (deps >= policy.many_dependencies, "many_dependencies"),
            (commits >= policy.many_commits, "many_commits"),
        ],
    }

    return {
        phase: sum(points[phase][name] for matched, name in phase_rules if matched)
        for phase, phase_rules in rules.items()
    }


def _pick_phase(scores: Dict[str, int], policy: PhasePolicy) -> Tuple[str, float]:
    for phase in (DISCOVERY, SHIP, BUILD):
        others = [value for name, value in scores.items() if name != phase]
        if all(scores[phase] > value for value in others):
            confidence = min(policy.max_confidence, scores[phase] / policy.normalizers[phase])
            return phase, confidence
    return BUILD, policy.tie_confidence


def recommendations_for(phase: str, signals: PhaseSignals) -> List[str]:
    """Advisory notes conditioned on the final phase and signal gaps."""
    notes: List[str] = []
    if phase == DISCOVERY and signals.file_count > 10:
        notes.append("Consider moving beyond discovery: add CI/CD configuration")
    if phase == BUILD and not signals.has_ci:
        notes.append("Add CI/CD pipeline before shipping")
    if phase == BUILD and signals.test_count < 3:
        notes.append("Add tests before ship phase")
    if phase == SHIP and not signals.has_ci:
        notes.append("WARNING: Ship phase without CI/CD detected")
    return notes


def classify(
    signals: PhaseSignals,
    policy: PhasePolicy = DEFAULT_POLICY,
    *,
    force_phase: Optional[str] = None,
) -> PhaseVerdict:
    """Turn measured signals into a phase verdict."""
    scores = score_phases(signals, policy)
    if force_phase is not None:
        if force_phase not in PHASES:
            raise ValueError(f"Unknown phase: {force_phase}")
        phase, confidence = force_phase, 1.0
    else:
        phase, confidence = _pick_phase(scores, policy)

    return PhaseVerdict(
        phase=phase,
        confidence=confidence,
        scores=scores,
        signals=signals,
        recommendations=recommendations_for(phase, signals),
    )


class PhaseClassifier:
    """Measures a workspace and reports its lifecycle phase."""

    def __init__(
        self,
        policy: PhasePolicy = DEFAULT_POLICY,
        *,
        git_runner: GitRunner | None = None,
    ) -> None:
        self.policy = policy
        self._git_runner = git_runner

    def detect_phase(self, path: str | Path, force_phase: Optional[str] = None) -> PhaseVerdict:
        """Classify the workspace at *path*; nothing is cached between calls."""
        root = resolve_workspace(path)
        signals = measure_signals(root, self.policy, git_runner=self._git_runner)
        verdict = classify(signals, self.policy, force_phase=force_phase)
        logger.debug(
            "Phase for %s: %s (confidence %.2f, scores %s)",
            root,
            verdict.phase,
            verdict.confidence,
            verdict.scores,
        )
        return verdict


__all__ = [
    "DEFAULT_POLICY",
    "PhaseClassifier",
    "PhasePolicy",
    "classify",
    "count_commits",
    "count_dependencies",
    "is_test_file",
    "measure_signals",
    "recommendations_for",
    "score_phases",
]
