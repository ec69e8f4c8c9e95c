"""Builds enrichment prompts from a finished analysis report."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Dict, List

from jinja2 import Environment, FileSystemLoader

from ..models import AnalysisReport
from .constants import ANALYSIS_TEMPLATE, NODE_QUESTIONS, REACT_QUESTIONS, SYSTEM_PROMPT

MAX_PROMPT_FILES = 150


@dataclass(frozen=True)
class PromptMessage:
    """Represents a single chat message for LLM prompting."""

    role: str
    content: str


@dataclass
class PromptRequest:
    """An enrichment prompt ready to hand to the runner."""

    messages: List[PromptMessage]
    metadata: Dict[str, object] = field(default_factory=dict)

    @property
    def system(self) -> str | None:
        return next((message.content for message in self.messages if message.role == "system"), None)

    @property
    def prompt(self) -> str:
        return "\n\n".join(message.content for message in self.messages if message.role == "user")


class PromptBuilder:
    """Renders the analysis prompt with framework-specific question blocks."""

    SYSTEM_PROMPT = SYSTEM_PROMPT

    def __init__(self, templates_dir: Path | None = None, *, max_files: int = MAX_PROMPT_FILES) -> None:
        self.templates_dir = templates_dir or Path(__file__).with_name("templates")
        self.max_files = max_files
        self._env = self._create_env(self.templates_dir)

    def build(self, report: AnalysisReport) -> PromptRequest:
        names = [entry.name.lower() for entry in report.tech_stack]
        is_react = any("react" in name for name in names)
        is_node = any("node" in name or "express" in name for name in names)

        breakdown = {path: analysis.to_summary() for path, analysis in report.files.items()}
        truncated = len(breakdown) > self.max_files
        if truncated:
            breakdown = dict(list(breakdown.items())[: self.max_files])

        graph = report.dependency_graph
        template = self._env.get_template(ANALYSIS_TEMPLATE)
        prompt = template.render(
            project_name=Path(report.metadata.project_path).name or "Unknown",
            project_type=report.project_type,
            file_count=len(report.files),
            tech_stack=_dump([asdict(entry) for entry in report.tech_stack]),
            dependency_graph=_dump(
                {
                    "stats": asdict(graph.stats),
                    "edges": [edge.to_dict() for edge in graph.edges],
                    "patterns": report.patterns.to_dict(),
                }
            ),
            commands=_dump([asdict(command) for command in report.recommended_commands]),
            file_breakdown=_dump(breakdown),
            static_issues=_dump([asdict(issue) for issue in report.issues.all()]),
            react_questions=REACT_QUESTIONS if is_react else (),
            node_questions=NODE_QUESTIONS if is_node else (),
        )
        return PromptRequest(
            messages=[
                PromptMessage(role="system", content=self.SYSTEM_PROMPT),
                PromptMessage(role="user", content=prompt.strip()),
            ],
            metadata={"react": is_react, "node": is_node, "truncated": truncated},
        )

    @staticmethod
    def _create_env(templates_dir: Path) -> Environment:
        directories = [str(templates_dir)]
        default_dir = str(Path(__file__).with_name("templates"))
        if default_dir not in directories:
            directories.append(default_dir)
        loader = FileSystemLoader(directories)
        return Environment(loader=loader, autoescape=False, trim_blocks=True, lstrip_blocks=True)


def _dump(value: object) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False)


__all__ = ["PromptBuilder", "PromptMessage", "PromptRequest"]
