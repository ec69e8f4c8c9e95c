"""Pipeline orchestration: scan, graph, issues, workflow and report assembly."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from dataclasses import asdict, replace
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Callable, Dict, List

from .analyzers.graph import GraphBuilder
from .analyzers.issues import IssueDetector
from .analyzers.project import detect_tech_stack, determine_project_type, recommend_commands, summarize_project
from .analyzers.workflow import WorkflowClassifier
from .config import ConfigError, load_config
from .enrichment import Enricher
from .llm.runner import LLMRunner
from .logging import get_logger
from .models import AnalysisReport, AnalysisResult, Enrichment, ReportMetadata
from .project_scanner import ProjectScanner

ANALYSIS_VERSION = "1.0.0"

BASE_CONFIDENCE = 0.8
MIN_CONFIDENCE = 0.1
MAX_CONFIDENCE = 1.0
CRITICAL_PENALTY = 0.1


def calculate_confidence(file_count: int, tech_count: int, critical_count: int) -> float:
    confidence = BASE_CONFIDENCE
    if file_count > 10:
        confidence += 0.1
    if file_count > 50:
        confidence += 0.05
    if tech_count > 0:
        confidence += 0.05
    if tech_count > 3:
        confidence += 0.05
    confidence -= critical_count * CRITICAL_PENALTY
    return round(max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, confidence)), 2)


class ReportComposer:
    """Runs the analysis stages in order and assembles one report."""

    def __init__(
        self,
        scanner: ProjectScanner | None = None,
        graph_builder: GraphBuilder | None = None,
        issue_detector: IssueDetector | None = None,
        classifier: WorkflowClassifier | None = None,
        enricher: Enricher | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.scanner = scanner or ProjectScanner()
        self.graph_builder = graph_builder or GraphBuilder()
        self.issue_detector = issue_detector or IssueDetector()
        self.classifier = classifier or WorkflowClassifier()
        self.enricher = enricher
        self._clock = clock or (lambda: datetime.now(UTC))
        self.logger = get_logger("orchestrator")

    def run(self, path: str | Path, *, timeout: float | None = None, enrich: bool = False) -> AnalysisResult:
        """Analyse `path`; every failure, including an exceeded budget, becomes a failure result."""
        if timeout is None:
            return self._run_guarded(path, enrich)

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="stackmap-run")
        future = executor.submit(self._run_guarded, path, enrich)
        try:
            return future.result(timeout=timeout)
        except FuturesTimeout:
            self.logger.error("Analysis of %s exceeded %.1fs budget", path, timeout)
            return AnalysisResult.failure(f"Analysis failed: exceeded time budget of {timeout:g}s")
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    def _run_guarded(self, path: str | Path, enrich: bool) -> AnalysisResult:
        try:
            report = self.compose(path)
        except Exception as exc:
            self.logger.exception("Analysis failed for %s", path)
            return AnalysisResult.failure(f"Analysis failed: {exc}")
        if enrich:
            report = replace(report, enrichment=self._enrich(report))
        return AnalysisResult.ok(report)

    def compose(self, path: str | Path) -> AnalysisReport:
        """Build the report for `path`, letting stage errors propagate."""
        project_path = Path(path).expanduser().resolve()
        self.logger.info("Starting analysis of %s", project_path)

        scan = self.scanner.scan(project_path)
        self.logger.debug("Scanner analysed %d files", len(scan.files))

        graph = self.graph_builder.build(scan.files, scan.root)
        patterns = self.graph_builder.analyze_patterns(graph)
        self.logger.debug(
            "Found %d entry points, %d hubs, %d cycles",
            len(patterns.entry_points),
            len(patterns.hubs),
            len(patterns.cycles),
        )

        issues = self.issue_detector.detect(
            scan.files, scan.manifest, patterns, unreadable_dirs=scan.unreadable_dirs
        )
        categorized = self.issue_detector.categorize(issues)

        tech_stack = detect_tech_stack(scan.manifest, scan.marker_files)
        workflow = self.classifier.classify(tech_stack, scan.files)
        workflow = replace(workflow, dev_steps=self.classifier.dev_workflow(scan.manifest, scan.lockfiles))
        project_type = determine_project_type(scan.files, scan.manifest)

        report = AnalysisReport(
            summary=summarize_project(project_type, scan.files, tech_stack, workflow.kind),
            project_type=project_type,
            tech_stack=tech_stack,
            files=scan.files,
            dependency_graph=graph,
            patterns=patterns,
            issues=categorized,
            recommended_commands=recommend_commands(scan.manifest, scan.lockfiles),
            workflow=workflow,
            confidence=calculate_confidence(len(scan.files), len(tech_stack), len(categorized.critical)),
            metadata=ReportMetadata(
                analyzed_at=self._clock().isoformat(),
                project_path=str(project_path),
                analysis_version=ANALYSIS_VERSION,
            ),
        )
        self.logger.info(
            "Analysis complete: %d technologies, %d issues", len(tech_stack), len(issues)
        )
        return report

    def _enrich(self, report: AnalysisReport) -> Enrichment:
        enricher = self.enricher or self._build_enricher(Path(report.metadata.project_path))
        return enricher.enrich(report)

    def _build_enricher(self, root: Path) -> Enricher:
        try:
            config = load_config(root)
        except ConfigError as exc:
            self.logger.warning("LLM runner unavailable: %s", exc)
            return Enricher(runner=None)
        if not config.llm.enabled:
            self.logger.info("LLM enrichment disabled; set llm.enabled in .stackmap.yml to turn it on")
            return Enricher(runner=None)
        try:
            runner = LLMRunner.from_config(config.llm)
        except RuntimeError as exc:
            self.logger.warning("LLM runner unavailable: %s", exc)
            return Enricher(runner=None)
        return Enricher(runner=runner)

    @staticmethod
    def quick_insights(report: AnalysisReport) -> List[Dict[str, str]]:
        """Short dashboard-style observations about a report."""
        insights: List[Dict[str, str]] = []
        if report.tech_stack:
            names = ", ".join(entry.name for entry in report.tech_stack[:3])
            insights.append({"type": "tech-stack", "message": f"Uses modern stack: {names}"})

        critical = len(report.issues.critical)
        if critical:
            insights.append({"type": "issues", "message": f"{critical} critical issues need attention"})
        else:
            insights.append({"type": "health", "message": "No critical issues detected"})

        insights.append({"type": "architecture", "message": f"Follows {report.workflow.kind} pattern"})
        return insights

    @staticmethod
    def recommendations(report: AnalysisReport) -> Dict[str, Any]:
        return {
            "commands": [asdict(command) for command in report.recommended_commands],
            "workflow": [asdict(step) for step in report.workflow.dev_steps],
            "deployment": [asdict(option) for option in report.deployment_recommendations],
            "issues": report.issues.to_dict(),
        }


__all__ = ["ANALYSIS_VERSION", "ReportComposer", "calculate_confidence"]
