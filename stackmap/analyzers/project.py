"""Project-level aggregation: project type, technology stack and run commands."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from ..models import Command, FileAnalysis, PackageManifest, TechStackEntry
from .utils import build_install_command, build_node_script_command, detect_node_package_manager

# dependency name -> (display name, category, role)
_TECH_TABLE: Dict[str, tuple[str, str, str]] = {
    "react": ("React", "Frontend", "framework"),
    "next": ("Next.js", "Fullstack", "framework"),
    "express": ("Express", "Backend", "framework"),
    "mongoose": ("Mongoose", "Database", "database"),
    "vite": ("Vite", "Build", "build-tool"),
    "webpack": ("Webpack", "Build", "build-tool"),
    "jest": ("Jest", "Testing", "test-tool"),
    "vitest": ("Vitest", "Testing", "test-tool"),
    "mocha": ("Mocha", "Testing", "test-tool"),
}

# marker file prefix -> dependency it implies
_MARKER_TOOLS: Dict[str, str] = {
    "vite.config.": "vite",
    "webpack.config.": "webpack",
}

_SCRIPT_DESCRIPTIONS: tuple[tuple[str, str], ...] = (
    ("dev", "Start development server"),
    ("start", "Start production server"),
    ("build", "Build for production"),
    ("test", "Run tests"),
)


def _has_kind(files: Dict[str, FileAnalysis], kind: str) -> bool:
    return any(analysis.kind == kind for analysis in files.values())


def determine_project_type(files: Dict[str, FileAnalysis], manifest: Optional[PackageManifest]) -> str:
    has_express = _has_kind(files, "express-server")
    has_react = _has_kind(files, "react-component")
    has_mongoose = _has_kind(files, "mongoose-model")
    has_next = manifest is not None and "next" in manifest.all_dependencies()

    if has_next:
        return "Next.js Fullstack Application"
    if has_express and has_react and has_mongoose:
        return "MERN Stack Application"
    if has_express and has_mongoose:
        return "Express + MongoDB Backend"
    if has_react:
        return "React Frontend Application"
    if has_express:
        return "Express.js Backend"
    return "JavaScript Project"


def detect_tech_stack(
    manifest: Optional[PackageManifest], marker_files: Iterable[str] = ()
) -> List[TechStackEntry]:
    """Map declared dependencies and build-tool config files onto stack entries."""
    dependencies = manifest.all_dependencies() if manifest is not None else {}
    stack: List[TechStackEntry] = []
    for package, (name, category, role) in _TECH_TABLE.items():
        if package in dependencies:
            stack.append(TechStackEntry(name, dependencies[package], category, role))

    present = {entry.name for entry in stack}
    for prefix, package in _MARKER_TOOLS.items():
        name, category, role = _TECH_TABLE[package]
        if name in present:
            continue
        if any(marker.startswith(prefix) for marker in marker_files):
            stack.append(TechStackEntry(name, dependencies.get(package, "detected"), category, role))
            present.add(name)
    return stack


def recommend_commands(manifest: Optional[PackageManifest], lockfiles: Iterable[str] = ()) -> List[Command]:
    manager = detect_node_package_manager(lockfiles)
    scripts = manifest.scripts if manifest is not None else {}
    commands = [
        Command(build_node_script_command(script, manager), description)
        for script, description in _SCRIPT_DESCRIPTIONS
        if script in scripts
    ]
    if not commands:
        commands.append(Command(build_install_command(manager), "Install dependencies"))
    return commands


def summarize_project(
    project_type: str,
    files: Dict[str, FileAnalysis],
    tech_stack: List[TechStackEntry],
    architecture: str,
) -> str:
    components = sum(1 for analysis in files.values() if analysis.kind == "react-component")
    routes = sum(len(analysis.routes) for analysis in files.values())
    models = sum(1 for analysis in files.values() if analysis.kind == "mongoose-model")

    parts = [f"This is a {project_type} with {len(files)} JavaScript/TypeScript files."]
    if components:
        parts.append(f"Contains {components} React components.")
    if routes:
        parts.append(f"Defines {routes} API routes.")
    if models:
        parts.append(f"Uses {models} Mongoose models.")
    if tech_stack:
        parts.append(f"Built with {', '.join(entry.name for entry in tech_stack)}.")
    parts.append(f"Follows {architecture} architecture pattern.")
    return " ".join(parts)


__all__ = [
    "detect_tech_stack",
    "determine_project_type",
    "recommend_commands",
    "summarize_project",
]
