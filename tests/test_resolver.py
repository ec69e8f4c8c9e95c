"""Tests for stackmap.resolver."""

from __future__ import annotations

from pathlib import Path

from stackmap.resolver import PathResolver


def _touch(root: Path, *paths: str) -> None:
    for relative in paths:
        target = root / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text("", encoding="utf-8")


def test_resolves_extension_candidates_in_order(tmp_path: Path) -> None:
    _touch(tmp_path, "src/util.ts", "src/util.json")
    resolver = PathResolver()

    assert resolver.resolve("./util", "src/app.js", tmp_path) == "src/util.ts"


def test_resolves_explicit_extension_and_parent_directory(tmp_path: Path) -> None:
    _touch(tmp_path, "lib/helpers.js", "src/app.js")
    resolver = PathResolver()

    assert resolver.resolve("../lib/helpers.js", "src/app.js", tmp_path) == "lib/helpers.js"
    assert resolver.resolve("../lib/helpers", "src/app.js", tmp_path) == "lib/helpers.js"


def test_resolves_directory_index(tmp_path: Path) -> None:
    _touch(tmp_path, "src/components/index.jsx")
    resolver = PathResolver()

    assert resolver.resolve("./components", "src/App.jsx", tmp_path) == "src/components/index.jsx"


def test_package_imports_are_never_resolved(tmp_path: Path) -> None:
    _touch(tmp_path, "react.js")
    resolver = PathResolver()

    assert resolver.resolve("react", "index.js", tmp_path) is None
    assert resolver.is_external("react")
    assert resolver.is_external("@scope/pkg")
    assert not resolver.is_external("./local")


def test_miss_and_escape_return_none(tmp_path: Path) -> None:
    resolver = PathResolver()

    assert resolver.resolve("./missing", "index.js", tmp_path) is None
    assert resolver.resolve("../../outside", "src/app.js", tmp_path) is None


def test_backslash_paths_are_normalized(tmp_path: Path) -> None:
    _touch(tmp_path, "src/lib/db.js")
    resolver = PathResolver()

    assert resolver.resolve("./lib/db", "src\\server.js", tmp_path) == "src/lib/db.js"
