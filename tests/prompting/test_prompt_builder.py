"""Tests for the enrichment prompt builder."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

from stackmap.models import AnalysisReport
from stackmap.orchestrator import ReportComposer
from stackmap.prompting.builder import PromptBuilder
from stackmap.prompting.constants import NODE_QUESTIONS, REACT_QUESTIONS, SYSTEM_PROMPT

from tests._fixtures.repo_builder import RepoBuilder


def _compose(repo_builder: RepoBuilder) -> AnalysisReport:
    composer = ReportComposer(clock=lambda: datetime(2024, 1, 1, tzinfo=timezone.utc))
    return composer.compose(repo_builder.path())


def test_express_project_gets_node_questions(repo_builder: RepoBuilder) -> None:
    repo_builder.package_json(name="api", dependencies={"express": "^4.18.0"}, scripts={"start": "node server.js"})
    repo_builder.write({"server.js": "const express = require('express');\napp.get('/health', h);\n"})
    report = _compose(repo_builder)

    request = PromptBuilder().build(report)

    assert request.system == SYSTEM_PROMPT
    assert request.metadata == {"react": False, "node": True, "truncated": False}
    assert "- Name: repo" in request.prompt
    assert "- Type: Express.js Backend" in request.prompt
    assert "- File Count: 1" in request.prompt
    assert '"server.js"' in request.prompt
    assert "For Node.js/Express projects, also analyze:" in request.prompt
    assert f"- {NODE_QUESTIONS[0]}" in request.prompt
    assert "For React projects" not in request.prompt


def test_react_project_gets_react_questions(repo_builder: RepoBuilder) -> None:
    repo_builder.package_json(dependencies={"react": "^18.2.0"})
    repo_builder.write({"src/App.jsx": "export const App = () => <main />;\n"})
    report = _compose(repo_builder)

    request = PromptBuilder().build(report)

    assert request.metadata["react"] is True
    assert request.metadata["node"] is False
    assert f"- {REACT_QUESTIONS[-1]}" in request.prompt
    assert "For Node.js/Express projects" not in request.prompt


def test_file_breakdown_is_truncated(repo_builder: RepoBuilder) -> None:
    repo_builder.write({f"lib/m{i}.js": f"export const v{i} = {i};\n" for i in range(5)})
    report = _compose(repo_builder)

    request = PromptBuilder(max_files=2).build(report)

    assert request.metadata["truncated"] is True
    assert '"lib/m0.js"' in request.prompt
    assert '"lib/m1.js"' in request.prompt
    assert '"lib/m4.js": {' not in request.prompt
    assert "- File Count: 5" in request.prompt


def test_custom_templates_dir_overrides_default(tmp_path: Path, repo_builder: RepoBuilder) -> None:
    templates = tmp_path / "templates"
    templates.mkdir()
    (templates / "analysis.j2").write_text("Project {{ project_type }} has {{ file_count }} files.\n", encoding="utf-8")
    repo_builder.write({"index.js": "module.exports = 1;\n"})
    report = _compose(repo_builder)

    request = PromptBuilder(templates_dir=templates).build(report)

    assert request.prompt == "Project JavaScript Project has 1 files."
