"""Tests for lifecycle phase detection."""

from __future__ import annotations

import json
import subprocess
from pathlib import Path

import pytest

from aicore.models import PhaseSignals
from aicore.phase import (
    PhaseClassifier,
    PhasePolicy,
    classify,
    count_commits,
    count_dependencies,
    is_test_file,
    score_phases,
)


def _fill(root: Path, count: int, prefix: str = "src/module") -> None:
    for index in range(count):
        path = root / f"{prefix}_{index}.py"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("x = 1\n", encoding="utf-8")


def test_small_workspace_is_discovery(tmp_path: Path) -> None:
    _fill(tmp_path, 5)

    verdict = PhaseClassifier().detect_phase(tmp_path)

    assert verdict.phase == "discovery"
    assert verdict.scores == {"discovery": 10, "build": 0, "ship": 0}
    assert verdict.confidence == pytest.approx(10 / 15)
    assert verdict.recommendations == []


def test_mature_workspace_is_ship(tmp_path: Path) -> None:
    (tmp_path / ".github" / "workflows").mkdir(parents=True)
    (tmp_path / ".github" / "workflows" / "ci.yml").write_text("on: push\n", encoding="utf-8")
    (tmp_path / "Dockerfile").write_text("FROM python:3.12\n", encoding="utf-8")
    (tmp_path / "README.md").write_text("# Project\n" + "details " * 80, encoding="utf-8")
    _fill(tmp_path, 5, prefix="tests/test_feature")
    _fill(tmp_path, 72)

    verdict = PhaseClassifier().detect_phase(tmp_path)

    assert verdict.signals.file_count == 80
    assert verdict.signals.test_count == 5
    assert verdict.signals.has_complete_readme is True
    assert verdict.phase == "ship"
    assert verdict.confidence == pytest.approx(0.7)
    assert verdict.confidence <= 0.9


def test_confidence_is_capped() -> None:
    signals = PhaseSignals(
        file_count=300,
        test_count=40,
        has_ci=True,
        has_container=True,
        has_complete_readme=True,
        dependency_count=50,
        commit_count=500,
    )

    policy = PhasePolicy(normalizers={"discovery": 15, "build": 15, "ship": 10})

    assert classify(signals).confidence == pytest.approx(0.85)
    verdict = classify(signals, policy)

    assert verdict.phase == "ship"
    assert verdict.scores["ship"] == 17
    assert verdict.confidence == 0.9


def test_tie_resolves_to_build() -> None:
    signals = PhaseSignals(file_count=60, test_count=1, has_ci=True, has_complete_readme=True)

    scores = score_phases(signals)
    verdict = classify(signals)

    assert scores["build"] == scores["ship"] == 7
    assert verdict.phase == "build"
    assert verdict.confidence == 0.5
    assert verdict.recommendations == ["Add tests before ship phase"]


def test_forced_phase_has_full_confidence(tmp_path: Path) -> None:
    _fill(tmp_path, 3)

    verdict = PhaseClassifier().detect_phase(tmp_path, force_phase="ship")

    assert verdict.phase == "ship"
    assert verdict.confidence == 1.0
    assert verdict.scores["discovery"] > verdict.scores["ship"]
    assert verdict.recommendations == ["WARNING: Ship phase without CI/CD detected"]


def test_unknown_forced_phase_is_rejected() -> None:
    with pytest.raises(ValueError):
        classify(PhaseSignals(), force_phase="maintenance")


def test_excluded_directories_are_not_counted(tmp_path: Path) -> None:
    _fill(tmp_path, 2)
    _fill(tmp_path, 30, prefix="node_modules/pkg/index")

    verdict = PhaseClassifier().detect_phase(tmp_path)

    assert verdict.signals.file_count == 2


def test_git_runner_is_injected(tmp_path: Path) -> None:
    (tmp_path / ".git").mkdir()
    calls = []

    def runner(args, cwd):
        calls.append((list(args), cwd))
        return "150\n"

    verdict = PhaseClassifier(git_runner=runner).detect_phase(tmp_path)

    assert verdict.signals.commit_count == 150
    assert calls == [(["git", "rev-list", "--count", "HEAD"], tmp_path.resolve())]
    assert verdict.scores["ship"] == 2


def test_commit_count_is_best_effort(tmp_path: Path) -> None:
    def failing(args, cwd):
        raise subprocess.CalledProcessError(128, list(args))

    def never_called(args, cwd):  # pragma: no cover - guarded by the .git check
        raise AssertionError("git should not run outside a repository")

    assert count_commits(tmp_path, never_called) == 0
    (tmp_path / ".git").mkdir()
    assert count_commits(tmp_path, failing) == 0
    assert count_commits(tmp_path, lambda args, cwd: "not a number") == 0


def test_count_dependencies_prefers_package_json(tmp_path: Path) -> None:
    (tmp_path / "package.json").write_text(
        json.dumps(
            {
                "dependencies": {"react": "18", "next": "14"},
                "devDependencies": {"jest": "29", "react": "18"},
            }
        ),
        encoding="utf-8",
    )
    (tmp_path / "requirements.txt").write_text("flask\n", encoding="utf-8")

    assert count_dependencies(tmp_path) == 3


def test_count_dependencies_from_requirements(tmp_path: Path) -> None:
    (tmp_path / "requirements.txt").write_text(
        "# pinned\nfastapi==0.110\n\nuvicorn\npydantic>=2\n", encoding="utf-8"
    )

    assert count_dependencies(tmp_path) == 3


def test_count_dependencies_tolerates_malformed_manifest(tmp_path: Path) -> None:
    (tmp_path / "package.json").write_text("{not json", encoding="utf-8")

    assert count_dependencies(tmp_path) == 0


@pytest.mark.parametrize(
    ("path", "expected"),
    [
        ("src/app.test.ts", True),
        ("src/app.spec.js", True),
        ("pkg/handler_test.py", True),
        ("tests/helpers.py", True),
        ("web/__tests__/button.jsx", True),
        ("src/app.py", False),
        ("docs/testing.md", False),
    ],
)
def test_is_test_file(path: str, expected: bool) -> None:
    assert is_test_file(path) is expected
