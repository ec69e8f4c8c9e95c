"""Optional narrative enrichment of a finished report by a local LLM."""

from __future__ import annotations

import json
import posixpath
import re
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from .llm.runner import LLMRunner
from .logging import get_logger
from .models import AnalysisReport, Enrichment, FileAnalysis
from .prompting.builder import PromptBuilder

_FENCED_JSON = re.compile(r"```(?:json)?\s*\n(.*?)\n\s*```", re.DOTALL)
_BARE_OBJECT = re.compile(r"\{.*\}", re.DOTALL)

_EXTENSION_LABELS = {
    ".js": "JavaScript file",
    ".jsx": "JavaScript React file",
    ".ts": "TypeScript file",
    ".tsx": "TypeScript React file",
    ".json": "Configuration file",
}


class EnrichmentError(RuntimeError):
    """Raised when a model response cannot be turned into an enrichment."""


class Enricher:
    """Adds prose to a report; degrades to a marked basic-only result on any failure."""

    def __init__(self, runner: Optional[LLMRunner] = None, prompt_builder: Optional[PromptBuilder] = None) -> None:
        self.runner = runner
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.logger = get_logger("enrichment")

    def enrich(self, report: AnalysisReport) -> Enrichment:
        if self.runner is None:
            return self.fallback(report, "LLM runner not configured")
        try:
            request = self.prompt_builder.build(report)
            response = self.runner.chat(request.messages, json_mode=True)
            payload = parse_response(response)
        except Exception as exc:
            self.logger.warning("Enrichment failed, using basic analysis: %s", exc)
            return self.fallback(report, str(exc))
        self.logger.info("Enrichment completed with %s", self.runner.model)
        return _from_payload(payload)

    @staticmethod
    def fallback(report: AnalysisReport, reason: str) -> Enrichment:
        issues = report.issues.all()
        recommendations: List[Dict[str, Any]] = []
        if issues:
            recommendations.append(
                {
                    "category": "code-quality",
                    "priority": "medium",
                    "description": "Address static analysis issues found",
                    "implementation": "Review and fix the identified code quality issues",
                }
            )
        return Enrichment(
            source="fallback",
            basic_only=True,
            semantic_insights="Analysis performed using static heuristics (LLM unavailable)",
            file_descriptions=describe_files(report.files),
            api_flow="API flow analysis requires LLM integration",
            component_flow="Component flow analysis requires LLM integration",
            critical_issues=[asdict(issue) for issue in issues],
            recommendations=recommendations,
            missing_dependencies=[],
            framework_insights="Framework-specific insights require LLM integration",
            message=f"basic analysis only: {reason}",
        )


def parse_response(response: str) -> Dict[str, Any]:
    """Extract the JSON object from a model reply, fenced or bare."""
    match = _FENCED_JSON.search(response) or _BARE_OBJECT.search(response)
    candidate = match.group(1) if match and match.groups() else (match.group(0) if match else response)
    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError as exc:
        raise EnrichmentError(f"Model response is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise EnrichmentError("Model response must be a JSON object")
    return payload


def describe_files(files: Dict[str, FileAnalysis]) -> Dict[str, str]:
    descriptions: Dict[str, str] = {}
    for path in files:
        name = posixpath.basename(path)
        label = _EXTENSION_LABELS.get(posixpath.splitext(name)[1].lower())
        descriptions[path] = f"{label}: {name}" if label else f"File: {name}"
    return descriptions


def _from_payload(payload: Dict[str, Any]) -> Enrichment:
    def _text(key: str) -> str:
        value = payload.get(key)
        return value if isinstance(value, str) else ""

    def _records(key: str) -> List[Dict[str, Any]]:
        value = payload.get(key)
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict)]

    descriptions = payload.get("fileDescriptions")
    missing = payload.get("missingDependencies")
    return Enrichment(
        source="llm",
        basic_only=False,
        semantic_insights=_text("semanticInsights"),
        file_descriptions=(
            {str(k): str(v) for k, v in descriptions.items()} if isinstance(descriptions, dict) else {}
        ),
        api_flow=_text("apiFlow"),
        component_flow=_text("componentFlow"),
        critical_issues=_records("criticalIssues"),
        recommendations=_records("recommendations"),
        missing_dependencies=[str(item) for item in missing] if isinstance(missing, list) else [],
        framework_insights=_text("frameworkInsights"),
    )


__all__ = ["Enricher", "EnrichmentError", "describe_files", "parse_response"]
