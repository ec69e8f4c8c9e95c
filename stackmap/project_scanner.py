"""Project walking and per-file analysis table construction."""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Sequence

from .analyzers.source_parser import SourceParser
from .analyzers.syntax import SUPPORTED_EXTENSIONS
from .analyzers.utils import LOCKFILES, load_manifest
from .config import DEFAULT_MAX_WORKERS, ConfigError, load_config
from .logging import get_logger
from .models import FileAnalysis, PackageManifest, SourceFile

_EXCLUDED_DIRS = {
    "node_modules",
    ".git",
    "build",
    "dist",
    ".next",
    "coverage",
}

_MARKER_PREFIXES = ("vite.config.", "webpack.config.", "next.config.")


@dataclass
class IgnoreRule:
    """Represents an ignore rule parsed from .gitignore or .stackmap.yml."""

    pattern: str
    directory_only: bool
    anchored: bool
    negate: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            return self.directory_only and rel_path.startswith(f"{self.pattern}/")

        return any(fnmatchcase(part, self.pattern) for part in rel_path.split("/"))


def _build_ignore_rule(pattern: str, negate: bool = False) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        negate=negate,
        has_slash="/" in pattern,
    )


def _parse_gitignore(path: Path) -> List[IgnoreRule]:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return []

    rules: List[IgnoreRule] = []
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        negate = line.startswith("!")
        if negate:
            line = line[1:]
        rule = _build_ignore_rule(line, negate=negate)
        if rule is not None:
            rules.append(rule)
    return rules


def _should_ignore(rel_path: str, is_dir: bool, rules: Sequence[IgnoreRule]) -> bool:
    ignored = False
    for rule in rules:
        if rule.matches(rel_path, is_dir):
            ignored = not rule.negate
    return ignored


@dataclass
class ProjectScan:
    """Everything the pipeline learns from one walk of the project directory."""

    root: Path
    files: Dict[str, FileAnalysis] = field(default_factory=dict)
    manifest: Optional[PackageManifest] = None
    marker_files: List[str] = field(default_factory=list)
    lockfiles: List[str] = field(default_factory=list)
    unreadable_dirs: List[str] = field(default_factory=list)


class ProjectScanner:
    """Walks a project and parses every JavaScript/TypeScript file it finds."""

    def __init__(
        self,
        parser: Optional[SourceParser] = None,
        *,
        max_workers: Optional[int] = None,
        respect_gitignore: Optional[bool] = None,
        exclude_paths: Optional[Sequence[str]] = None,
    ) -> None:
        self.parser = parser or SourceParser()
        self.max_workers = max_workers
        self.respect_gitignore = respect_gitignore
        self.exclude_paths = list(exclude_paths) if exclude_paths is not None else None
        self.logger = get_logger("scanner")

    def scan(self, project_root: str | Path) -> ProjectScan:
        """Return the analysis table for `project_root`, ordered by relative path."""
        root_path = Path(project_root).expanduser().resolve()
        if not root_path.exists():
            raise FileNotFoundError(f"Project path not found: {project_root}")
        if not root_path.is_dir():
            raise NotADirectoryError(f"Project path is not a directory: {project_root}")

        rules, max_workers = self._load_settings(root_path)
        result = ProjectScan(root=root_path)
        sources = list(self._iter_sources(root_path, rules, result.unreadable_dirs))
        self.logger.debug("Discovered %d source files under %s", len(sources), root_path)

        analyses: Dict[str, FileAnalysis] = {}
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = {executor.submit(self.parser.analyze_file, source): source for source in sources}
            for future in as_completed(futures):
                source = futures[future]
                try:
                    analyses[source.relative_path] = future.result()
                except Exception as exc:
                    self.logger.warning("Failed to analyse %s: %s", source.relative_path, exc)
                    analyses[source.relative_path] = FileAnalysis(
                        path=source.relative_path,
                        kind="parse-error",
                        summary=f"Failed to parse: {exc}",
                        error=str(exc),
                    )

        result.files = {path: analyses[path] for path in sorted(analyses)}
        result.manifest = load_manifest(root_path)
        result.marker_files, result.lockfiles = self._root_markers(root_path)
        result.unreadable_dirs.sort()
        return result

    def _load_settings(self, root: Path) -> tuple[List[IgnoreRule], int]:
        try:
            config = load_config(root)
        except ConfigError as exc:
            self.logger.warning("Ignoring invalid configuration: %s", exc)
            config = None

        respect_gitignore = self.respect_gitignore
        if respect_gitignore is None:
            respect_gitignore = config.scan.respect_gitignore if config else True
        max_workers = self.max_workers or (config.scan.max_workers if config else DEFAULT_MAX_WORKERS)

        rules = _parse_gitignore(root / ".gitignore") if respect_gitignore else []
        patterns = self.exclude_paths if self.exclude_paths is not None else (config.exclude_paths if config else [])
        for pattern in patterns:
            rule = _build_ignore_rule(pattern)
            if rule is not None:
                rules.append(rule)
        return rules, max_workers

    def _iter_sources(
        self, root: Path, rules: Sequence[IgnoreRule], unreadable: List[str]
    ) -> Iterator[SourceFile]:
        def _on_error(error: OSError) -> None:
            failed = Path(error.filename) if error.filename else root
            rel_dir = failed.relative_to(root).as_posix() if failed != root else "."
            self.logger.warning("Skipping unreadable directory %s: %s", rel_dir, error.strerror or error)
            unreadable.append(rel_dir)

        for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
            current_dir = Path(dirpath)
            rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

            kept_dirs = []
            for name in dirnames:
                if name in _EXCLUDED_DIRS:
                    continue
                rel_path = f"{rel_dir}/{name}" if rel_dir else name
                if _should_ignore(rel_path, True, rules):
                    continue
                kept_dirs.append(name)
            dirnames[:] = sorted(kept_dirs)

            for filename in sorted(filenames):
                extension = os.path.splitext(filename)[1].lower()
                if extension not in SUPPORTED_EXTENSIONS:
                    continue
                rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
                if _should_ignore(rel_path, False, rules):
                    continue
                yield SourceFile(
                    relative_path=rel_path,
                    absolute_path=str(current_dir / filename),
                    extension=extension,
                )

    @staticmethod
    def _root_markers(root: Path) -> tuple[List[str], List[str]]:
        try:
            names = sorted(entry.name for entry in root.iterdir() if entry.is_file())
        except OSError:
            return [], []
        markers = [name for name in names if name.startswith(_MARKER_PREFIXES)]
        lockfiles = [name for name in LOCKFILES if name in names]
        return markers, lockfiles


__all__ = ["IgnoreRule", "ProjectScan", "ProjectScanner"]
