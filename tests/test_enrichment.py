"""Tests for stackmap.enrichment."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest

from stackmap.enrichment import Enricher, EnrichmentError, describe_files, parse_response
from stackmap.llm.runner import LLMRunner
from stackmap.models import AnalysisReport, FileAnalysis
from stackmap.orchestrator import ReportComposer

from tests._fixtures.repo_builder import RepoBuilder

_PAYLOAD = {
    "semanticInsights": "A small Express API.",
    "fileDescriptions": {"server.js": "Boots the HTTP server"},
    "apiFlow": "GET /health returns status",
    "componentFlow": "",
    "criticalIssues": [{"type": "security", "severity": "high"}, "not-a-record"],
    "recommendations": [{"category": "testing", "priority": "low"}],
    "missingDependencies": ["helmet"],
    "frameworkInsights": "Add error middleware",
}


def _report(repo_builder: RepoBuilder) -> AnalysisReport:
    repo_builder.package_json(dependencies={"express": "^4.18.0"}, scripts={"start": "node server.js"})
    repo_builder.write({"server.js": "const express = require('express');\napp.get('/health', h);\n"})
    composer = ReportComposer(clock=lambda: datetime(2024, 1, 1, tzinfo=timezone.utc))
    return composer.compose(repo_builder.path())


def _runner(reply: str) -> LLMRunner:
    return LLMRunner(model="test-model", base_url=None, transport=lambda request: reply)


def test_enrich_parses_fenced_model_reply(repo_builder: RepoBuilder) -> None:
    reply = "Here you go:\n```json\n" + json.dumps(_PAYLOAD) + "\n```\n"

    enrichment = Enricher(runner=_runner(reply)).enrich(_report(repo_builder))

    assert enrichment.source == "llm"
    assert enrichment.basic_only is False
    assert enrichment.semantic_insights == "A small Express API."
    assert enrichment.file_descriptions == {"server.js": "Boots the HTTP server"}
    assert enrichment.critical_issues == [{"type": "security", "severity": "high"}]
    assert enrichment.missing_dependencies == ["helmet"]
    assert enrichment.message is None


def test_enrich_without_runner_falls_back(repo_builder: RepoBuilder) -> None:
    report = _report(repo_builder)

    enrichment = Enricher().enrich(report)

    assert enrichment.source == "fallback"
    assert enrichment.basic_only is True
    assert enrichment.message == "basic analysis only: LLM runner not configured"
    assert enrichment.file_descriptions == {"server.js": "JavaScript file: server.js"}
    assert len(enrichment.critical_issues) == len(report.issues.all())
    assert [item["category"] for item in enrichment.recommendations] == ["code-quality"]


def test_enrich_falls_back_on_runner_error(repo_builder: RepoBuilder) -> None:
    def _boom(request):
        raise RuntimeError("connection refused")

    runner = LLMRunner(model="m", base_url=None, transport=_boom)

    enrichment = Enricher(runner=runner).enrich(_report(repo_builder))

    assert enrichment.basic_only is True
    assert enrichment.message == "basic analysis only: connection refused"


def test_enrich_falls_back_on_invalid_reply(repo_builder: RepoBuilder) -> None:
    enrichment = Enricher(runner=_runner("I cannot help with that.")).enrich(_report(repo_builder))

    assert enrichment.source == "fallback"
    assert enrichment.message is not None
    assert enrichment.message.startswith("basic analysis only: Model response is not valid JSON")


def test_parse_response_accepts_bare_object() -> None:
    assert parse_response('Result: {"apiFlow": "none"} done') == {"apiFlow": "none"}


def test_parse_response_rejects_non_objects() -> None:
    with pytest.raises(EnrichmentError):
        parse_response("[1, 2, 3]")


def test_describe_files_labels_by_extension() -> None:
    files = {
        path: FileAnalysis(path=path, kind="module", summary="")
        for path in ("src/App.jsx", "src/types.ts", "src/Card.tsx", "data/seed.json", "lib/util.mjs")
    }

    assert describe_files(files) == {
        "src/App.jsx": "JavaScript React file: App.jsx",
        "src/types.ts": "TypeScript file: types.ts",
        "src/Card.tsx": "TypeScript React file: Card.tsx",
        "data/seed.json": "Configuration file: seed.json",
        "lib/util.mjs": "File: util.mjs",
    }
