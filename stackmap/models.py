"""Core data models shared across stackmap components."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import PurePosixPath
from typing import Any, Dict, List, Optional

SEVERITIES: tuple[str, ...] = ("critical", "high", "medium", "low")

FILE_KINDS: tuple[str, ...] = (
    "express-server",
    "react-component",
    "mongoose-model",
    "module",
    "config",
    "test",
    "package-config",
    "unparseable",
    "parse-error",
    "unknown",
)


@dataclass(frozen=True)
class SourceFile:
    """A JavaScript/TypeScript file discovered during a scan."""

    relative_path: str
    absolute_path: str
    extension: str

    @property
    def name(self) -> str:
        return PurePosixPath(self.relative_path).name


@dataclass(frozen=True)
class ImportSpecifier:
    """One binding introduced by an import (default, named, namespace or require)."""

    local_name: str
    kind: str
    imported_name: Optional[str] = None


@dataclass(frozen=True)
class ImportRef:
    """An import of `source`, kept verbatim as written in the file."""

    source: str
    specifiers: List[ImportSpecifier] = field(default_factory=list)

    @property
    def is_relative(self) -> bool:
        return self.source.startswith(".")


@dataclass(frozen=True)
class ExportRef:
    name: str
    kind: str


@dataclass(frozen=True)
class Route:
    method: str
    path: str


@dataclass(frozen=True)
class FileAnalysis:
    """Per-file extraction and classification result."""

    path: str
    kind: str
    summary: str
    imports: List[ImportRef] = field(default_factory=list)
    exports: List[ExportRef] = field(default_factory=list)
    functions: List[str] = field(default_factory=list)
    classes: List[str] = field(default_factory=list)
    routes: List[Route] = field(default_factory=list)
    schemas: List[str] = field(default_factory=list)
    components: List[str] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.kind in {"parse-error", "unparseable"}

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_summary(self) -> Dict[str, Any]:
        """Compact view used by report consumers."""
        return {
            "kind": self.kind,
            "summary": self.summary,
            "imports": len(self.imports),
            "exports": len(self.exports),
            "functions": len(self.functions),
            "components": len(self.components),
            "routes": len(self.routes),
        }


@dataclass(frozen=True)
class PackageManifest:
    """Declared dependencies and scripts read from package.json."""

    name: Optional[str] = None
    version: Optional[str] = None
    dependencies: Dict[str, str] = field(default_factory=dict)
    dev_dependencies: Dict[str, str] = field(default_factory=dict)
    scripts: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PackageManifest":
        def _mapping(key: str) -> Dict[str, str]:
            value = data.get(key)
            if not isinstance(value, dict):
                return {}
            return {str(name): str(spec) for name, spec in value.items()}

        name = data.get("name")
        version = data.get("version")
        return cls(
            name=name if isinstance(name, str) else None,
            version=version if isinstance(version, str) else None,
            dependencies=_mapping("dependencies"),
            dev_dependencies=_mapping("devDependencies"),
            scripts=_mapping("scripts"),
        )

    def all_dependencies(self) -> Dict[str, str]:
        combined = dict(self.dependencies)
        combined.update(self.dev_dependencies)
        return combined


# Graph


@dataclass(frozen=True)
class GraphNode:
    id: str
    label: str
    kind: str
    path: str
    imports: int
    exports: int


@dataclass(frozen=True)
class GraphEdge:
    from_id: str
    to_id: str
    source: str
    type: str = "import"

    def to_dict(self) -> Dict[str, Any]:
        return {"from": self.from_id, "to": self.to_id, "type": self.type, "source": self.source}


@dataclass(frozen=True)
class GraphStats:
    total_files: int
    total_connections: int
    isolated_files: int


@dataclass(frozen=True)
class DependencyGraph:
    nodes: List[GraphNode]
    edges: List[GraphEdge]
    stats: GraphStats

    def node_ids(self) -> set[str]:
        return {node.id for node in self.nodes}

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": [asdict(node) for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
            "stats": asdict(self.stats),
        }


@dataclass(frozen=True)
class EntryPoint:
    file: str
    kind: str
    outgoing_connections: int


@dataclass(frozen=True)
class Hub:
    file: str
    kind: str
    connections: int


@dataclass(frozen=True)
class Cluster:
    directory: str
    file_count: int
    kinds: List[str]


@dataclass(frozen=True)
class Cycle:
    """Closed walk of display paths; the first file is repeated at the end."""

    files: List[str]
    length: int


@dataclass(frozen=True)
class GraphPatterns:
    entry_points: List[EntryPoint] = field(default_factory=list)
    hubs: List[Hub] = field(default_factory=list)
    clusters: List[Cluster] = field(default_factory=list)
    cycles: List[Cycle] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# Issues


@dataclass(frozen=True)
class Issue:
    """A typed, severity-tagged project problem with a suggested remediation."""

    type: str
    severity: str
    file: str
    description: str
    remediation: str


@dataclass(frozen=True)
class CategorizedIssues:
    critical: List[Issue] = field(default_factory=list)
    high: List[Issue] = field(default_factory=list)
    medium: List[Issue] = field(default_factory=list)
    low: List[Issue] = field(default_factory=list)
    by_type: Dict[str, List[Issue]] = field(default_factory=dict)

    def all(self) -> List[Issue]:
        return [*self.critical, *self.high, *self.medium, *self.low]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# Technology and workflow


@dataclass(frozen=True)
class TechStackEntry:
    name: str
    version: str
    category: str
    role: str


@dataclass(frozen=True)
class Command:
    command: str
    description: str


@dataclass(frozen=True)
class DevStep:
    order: int
    action: str
    command: str
    description: str


@dataclass(frozen=True)
class DeploymentOption:
    platform: str
    reason: str
    steps: List[str]


@dataclass(frozen=True)
class WorkflowArchetype:
    kind: str
    description: str
    flow_steps: List[str]
    summary: str
    key_files: List[str]
    deployment_options: List[DeploymentOption]
    dev_steps: List[DevStep] = field(default_factory=list)
    flags: Dict[str, bool] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# Report


@dataclass(frozen=True)
class Enrichment:
    """Narrative analysis merged into a report by the optional enrichment step."""

    source: str
    basic_only: bool
    semantic_insights: str
    file_descriptions: Dict[str, str] = field(default_factory=dict)
    api_flow: str = ""
    component_flow: str = ""
    critical_issues: List[Dict[str, Any]] = field(default_factory=list)
    recommendations: List[Dict[str, Any]] = field(default_factory=list)
    missing_dependencies: List[str] = field(default_factory=list)
    framework_insights: str = ""
    message: Optional[str] = None


@dataclass(frozen=True)
class ReportMetadata:
    analyzed_at: str
    project_path: str
    analysis_version: str


@dataclass(frozen=True)
class AnalysisReport:
    """Root aggregate produced once per analysis run."""

    summary: str
    project_type: str
    tech_stack: List[TechStackEntry]
    files: Dict[str, FileAnalysis]
    dependency_graph: DependencyGraph
    patterns: GraphPatterns
    issues: CategorizedIssues
    recommended_commands: List[Command]
    workflow: WorkflowArchetype
    confidence: float
    metadata: ReportMetadata
    enrichment: Optional[Enrichment] = None

    @property
    def deployment_recommendations(self) -> List[DeploymentOption]:
        return self.workflow.deployment_options

    def to_dict(self) -> Dict[str, Any]:
        graph = self.dependency_graph.to_dict()
        graph["patterns"] = self.patterns.to_dict()
        return {
            "project_summary": self.summary,
            "project_type": self.project_type,
            "tech_stack": [asdict(entry) for entry in self.tech_stack],
            "file_breakdown": {path: analysis.to_summary() for path, analysis in self.files.items()},
            "workflow": self.workflow.to_dict(),
            "dependency_graph": graph,
            "issues": self.issues.to_dict(),
            "recommended_commands": [asdict(command) for command in self.recommended_commands],
            "dev_workflow": [asdict(step) for step in self.workflow.dev_steps],
            "deployment_recommendations": [asdict(option) for option in self.deployment_recommendations],
            "enrichment": asdict(self.enrichment) if self.enrichment is not None else None,
            "metadata": {**asdict(self.metadata), "confidence": self.confidence},
        }


@dataclass(frozen=True)
class AnalysisResult:
    """Envelope handed to callers: either a complete report or one failure message."""

    success: bool
    report: Optional[AnalysisReport] = None
    message: Optional[str] = None

    @classmethod
    def ok(cls, report: AnalysisReport) -> "AnalysisResult":
        return cls(success=True, report=report)

    @classmethod
    def failure(cls, message: str) -> "AnalysisResult":
        return cls(success=False, message=message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "message": self.message,
            "data": self.report.to_dict() if self.report is not None else None,
        }
