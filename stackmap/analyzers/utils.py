"""Shared Node.js project helpers used by the analyzers."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Iterable, Optional

from ..models import PackageManifest

LOCKFILES: tuple[str, ...] = ("pnpm-lock.yaml", "yarn.lock", "package-lock.json")

# Modules shipped with Node itself; importing them never needs a manifest entry.
NODE_BUILTINS = frozenset(
    {
        "assert", "async_hooks", "buffer", "child_process", "cluster", "console",
        "constants", "crypto", "dgram", "diagnostics_channel", "dns", "domain",
        "events", "fs", "http", "http2", "https", "inspector", "module", "net",
        "os", "path", "perf_hooks", "process", "punycode", "querystring",
        "readline", "repl", "stream", "string_decoder", "sys", "timers", "tls",
        "trace_events", "tty", "url", "util", "v8", "vm", "wasi",
        "worker_threads", "zlib",
    }
)


def load_package_json(root: Path) -> Dict[str, object]:
    """Return the parsed package.json contents or an empty dict."""
    package_json = root / "package.json"
    if not package_json.exists():
        return {}
    try:
        data = json.loads(package_json.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return {}
    if isinstance(data, dict):
        return data
    return {}


def load_manifest(root: Path) -> Optional[PackageManifest]:
    """Return the project's manifest, or None when there is no usable package.json."""
    data = load_package_json(root)
    if not data:
        return None
    return PackageManifest.from_dict(data)


def detect_node_package_manager(manifest_paths: Iterable[str]) -> str:
    """Infer the preferred Node package manager based on lockfiles."""
    present = set(manifest_paths)
    if "pnpm-lock.yaml" in present:
        return "pnpm"
    if "yarn.lock" in present:
        return "yarn"
    return "npm"


def build_node_script_command(script: str, manager: str) -> str:
    manager = manager.lower()
    if manager in {"pnpm", "yarn"}:
        return f"{manager} {script}"
    # npm run <script>, except start and test which npm aliases
    if script in {"start", "test"}:
        return f"npm {script}"
    return f"npm run {script}"


def build_install_command(manager: str) -> str:
    return f"{manager.lower()} install"


def package_name(import_source: str) -> Optional[str]:
    """Return the installable package an import refers to, or None for relative/absolute paths."""
    if import_source.startswith((".", "/")):
        return None
    parts = import_source.split("/")
    if import_source.startswith("@"):
        return "/".join(parts[:2]) if len(parts) > 1 else None
    return parts[0] or None


def is_node_builtin(import_source: str) -> bool:
    if import_source.startswith("node:"):
        return True
    return import_source.split("/", 1)[0] in NODE_BUILTINS


__all__ = [
    "LOCKFILES",
    "NODE_BUILTINS",
    "build_install_command",
    "build_node_script_command",
    "detect_node_package_manager",
    "is_node_builtin",
    "load_manifest",
    "load_package_json",
    "package_name",
]
