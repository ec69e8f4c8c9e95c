"""Heuristic project issue detection."""

from __future__ import annotations

import posixpath
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from ..logging import get_logger
from ..models import SEVERITIES, CategorizedIssues, FileAnalysis, GraphPatterns, Issue, PackageManifest
from .utils import is_node_builtin, package_name

ENTRY_FILENAMES = ("index.js", "app.js", "server.js", "main.js")
MAX_IMPORTS = 20
SRC_DIRECTORY_MIN_FILES = 5

_Check = Callable[[], List[Issue]]


class IssueDetector:
    """Derives typed, severity-tagged issues from an analysed project.

    The detector is pure: everything it inspects is passed in. A check that
    trips over unexpected input is logged and skipped so the remaining checks
    still report.
    """

    def __init__(self) -> None:
        self.logger = get_logger("issues")

    def detect(
        self,
        files: Dict[str, FileAnalysis],
        manifest: Optional[PackageManifest],
        patterns: GraphPatterns,
        *,
        unreadable_dirs: Sequence[str] = (),
    ) -> List[Issue]:
        checks: List[tuple[str, _Check]] = [
            ("missing-dependency", lambda: check_missing_dependencies(files, manifest)),
            ("missing-script", lambda: check_missing_scripts(manifest)),
            ("circular-dependency", lambda: check_circular_dependencies(patterns)),
            ("structure", lambda: check_project_structure(files)),
            ("anti-patterns", lambda: check_anti_patterns(files)),
            ("unreadable-directory", lambda: check_unreadable_directories(unreadable_dirs)),
        ]

        issues: List[Issue] = []
        for name, check in checks:
            try:
                issues.extend(check())
            except Exception as exc:  # pragma: no cover - defensive guard
                self.logger.warning("Issue check %s failed: %s", name, exc)
        self.logger.debug("Detected %d issues", len(issues))
        return issues

    @staticmethod
    def categorize(issues: Iterable[Issue]) -> CategorizedIssues:
        by_severity: Dict[str, List[Issue]] = {severity: [] for severity in SEVERITIES}
        by_type: Dict[str, List[Issue]] = {}
        for issue in issues:
            by_severity.setdefault(issue.severity, []).append(issue)
            by_type.setdefault(issue.type, []).append(issue)
        return CategorizedIssues(
            critical=by_severity["critical"],
            high=by_severity["high"],
            medium=by_severity["medium"],
            low=by_severity["low"],
            by_type=by_type,
        )


def check_missing_dependencies(
    files: Dict[str, FileAnalysis], manifest: Optional[PackageManifest]
) -> List[Issue]:
    """One high issue per imported package absent from the manifest.

    Node built-ins (`fs`, `path`, ...) and `node:` specifiers are never
    reported, even though no package.json lists them.
    """
    declared = set(manifest.all_dependencies()) if manifest is not None else set()

    imported: Dict[str, None] = {}
    for analysis in files.values():
        for ref in analysis.imports:
            if is_node_builtin(ref.source):
                continue
            name = package_name(ref.source)
            if name:
                imported.setdefault(name)

    return [
        Issue(
            type="missing-dependency",
            severity="high",
            file="package.json",
            description=f"Package '{name}' is imported but not listed in dependencies",
            remediation=f"Run: npm install {name}",
        )
        for name in imported
        if name not in declared
    ]


def check_missing_scripts(manifest: Optional[PackageManifest]) -> List[Issue]:
    scripts = manifest.scripts if manifest is not None else {}
    issues: List[Issue] = []
    if "start" not in scripts and "dev" not in scripts:
        issues.append(
            Issue(
                type="missing-script",
                severity="medium",
                file="package.json",
                description="No start or dev script found",
                remediation='Add "start" or "dev" script to package.json',
            )
        )
    if "test" not in scripts:
        issues.append(
            Issue(
                type="missing-script",
                severity="low",
                file="package.json",
                description="No test script found",
                remediation='Add "test" script to package.json',
            )
        )
    return issues


def check_circular_dependencies(patterns: GraphPatterns) -> List[Issue]:
    return [
        Issue(
            type="circular-dependency",
            severity="high",
            file=cycle.files[0],
            description=f"Circular dependency detected: {' → '.join(cycle.files)}",
            remediation="Refactor to remove circular dependency",
        )
        for cycle in patterns.cycles
        if len(cycle.files) > 1
    ]


def check_project_structure(files: Dict[str, FileAnalysis]) -> List[Issue]:
    paths = list(files)
    issues: List[Issue] = []

    if not any(posixpath.basename(path) in ENTRY_FILENAMES for path in paths):
        issues.append(
            Issue(
                type="missing-entry-point",
                severity="medium",
                file="project-root",
                description="No clear entry point found (index.js, app.js, server.js)",
                remediation="Create a main entry point file",
            )
        )

    if len(paths) > SRC_DIRECTORY_MIN_FILES and not any(path.startswith("src/") for path in paths):
        issues.append(
            Issue(
                type="no-src-directory",
                severity="low",
                file="project-root",
                description="No src/ directory found for larger project",
                remediation="Consider organizing code in src/ directory",
            )
        )
    return issues


def check_anti_patterns(files: Dict[str, FileAnalysis]) -> List[Issue]:
    issues: List[Issue] = []
    for path, analysis in files.items():
        if len(analysis.imports) > MAX_IMPORTS:
            issues.append(
                Issue(
                    type="too-many-imports",
                    severity="medium",
                    file=path,
                    description=f"File has {len(analysis.imports)} imports (consider refactoring)",
                    remediation="Break down into smaller modules",
                )
            )

        if analysis.routes and "route" not in path and "server" not in path:
            issues.append(
                Issue(
                    type="misplaced-routes",
                    severity="low",
                    file=path,
                    description="Express routes found outside route files",
                    remediation="Move routes to dedicated route files",
                )
            )

        if analysis.schemas and not analysis.exports:
            issues.append(
                Issue(
                    type="unexported-model",
                    severity="high",
                    file=path,
                    description="Mongoose schema defined but not exported",
                    remediation="Export the model: module.exports = mongoose.model(...)",
                )
            )
    return issues


def check_unreadable_directories(unreadable_dirs: Sequence[str]) -> List[Issue]:
    return [
        Issue(
            type="unreadable-directory",
            severity="low",
            file=directory,
            description=f"Directory '{directory}' could not be read; its files were not analysed",
            remediation="Check the directory permissions and re-run the analysis",
        )
        for directory in unreadable_dirs
    ]


__all__ = [
    "ENTRY_FILENAMES",
    "IssueDetector",
    "check_anti_patterns",
    "check_circular_dependencies",
    "check_missing_dependencies",
    "check_missing_scripts",
    "check_project_structure",
    "check_unreadable_directories",
]
