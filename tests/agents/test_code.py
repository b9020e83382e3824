"""Tests for the code agent."""

from __future__ import annotations

import asyncio

from aicore.agents import AgentContext, CodeAgent
from aicore.agents.code import analyze_content
from aicore.llm import ChatClient


def _run(workspace, metadata, **kwargs):
    context = AgentContext(workspace.path(), metadata, **kwargs)
    return asyncio.run(CodeAgent().run(context))


def test_analyze_content_python_findings() -> None:
    content = "# TODO: tidy\ntry:\n    work()\nexcept Exception:\n    pass\n"

    found = analyze_content("app.py", content)

    assert [(item.line, item.severity, item.message) for item in found] == [
        (1, "info", "Found TODO comment"),
        (4, "warning", "Exception handler silently ignores errors"),
    ]


def test_analyze_content_javascript_findings() -> None:
    content = "try {\n  run();\n} catch (e) {\n}\nconsole.log('done');\n// FIXME later\n"

    found = analyze_content("src/index.js", content)

    assert [(item.line, item.message) for item in found] == [
        (3, "Empty catch block - errors are silently ignored"),
        (5, "Consider removing console.log statement"),
        (6, "Found FIXME comment"),
    ]


def test_analyze_content_flags_large_files() -> None:
    found = analyze_content("big.py", "x = 1\n" * 501)

    assert [item.message for item in found] == ["Large file (501 lines) - consider splitting it"]


def test_code_agent_reports_source_and_project_findings(workspace) -> None:
    workspace.write({"app.py": "# TODO: tidy\nprint('hi')\n"})

    result = _run(workspace, {"language": "python", "framework": None})

    assert result.success is True
    assert [item.message for item in result.diagnostics] == [
        "Found TODO comment",
        "No .gitignore file found - consider adding one",
        "No dependency file found (requirements.txt or pyproject.toml)",
    ]
    assert result.summary == "Code analysis complete. Found 3 issues for python/no-framework project."


def test_code_agent_without_sources(workspace) -> None:
    workspace.write({".gitignore": "bin/\n"})

    result = _run(workspace, {"language": "go", "framework": "gin"})

    assert [item.message for item in result.diagnostics] == [
        "No go code files found",
        "No go.mod found - run go mod init",
    ]
    assert result.summary.endswith("for go/gin project.")


def test_code_agent_caps_analyzed_files(workspace) -> None:
    workspace.write({f"src/module_{index:02d}.py": "x = 1\n" for index in range(25)})
    workspace.write({".gitignore": "", "requirements.txt": ""})

    result = _run(workspace, {"language": "python"})

    assert [item.message for item in result.diagnostics] == ["Analyzed 20 of 25 files"]


def test_code_agent_appends_model_review(workspace) -> None:
    workspace.write({"app.py": "print('hi')\n", ".gitignore": "", "requirements.txt": ""})
    prompts = []

    def transport(request):
        prompts.append(request.messages[1]["content"])
        return "Add type hints."

    llm = ChatClient("test-model", base_url="http://localhost:9/v1", transport=transport)

    result = _run(
        workspace,
        {"language": "python"},
        user_intent="clean up the code",
        agent_rules="Prefer small functions.",
        llm=llm,
    )

    assert result.diagnostics[-1].message == "Model review: Add type hints."
    assert "Request: clean up the code" in prompts[0]
    assert "Prefer small functions." in prompts[0]


def test_code_agent_survives_model_failure(workspace) -> None:
    workspace.write({"app.py": "print('hi')\n", ".gitignore": "", "requirements.txt": ""})

    def transport(request):
        raise RuntimeError("Chat endpoint unreachable: refused")

    llm = ChatClient("test-model", base_url="http://localhost:9/v1", transport=transport)

    result = _run(workspace, {"language": "python"}, user_intent="refactor", llm=llm)

    assert result.success is True
    assert result.diagnostics[-1].message == (
        "Model review unavailable: Chat endpoint unreachable: refused"
    )
