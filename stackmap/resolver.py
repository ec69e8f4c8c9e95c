"""Resolution of relative import specifiers to files inside the project."""

from __future__ import annotations

import posixpath
from pathlib import Path
from typing import Optional

RESOLVABLE_EXTENSIONS: tuple[str, ...] = (".js", ".jsx", ".ts", ".tsx", ".json")


class PathResolver:
    """Maps `./x` style specifiers onto concrete project-relative paths.

    Package imports are never resolved. A miss is a normal outcome and is
    reported as ``None`` rather than an error.
    """

    extensions = RESOLVABLE_EXTENSIONS

    def resolve(self, import_source: str, current_file: str, project_root: str | Path) -> Optional[str]:
        """Return the project-relative path `import_source` points at, if any."""
        if not import_source.startswith("."):
            return None

        root = Path(project_root)
        current_dir = posixpath.dirname(self.normalize(current_file))
        target = posixpath.normpath(posixpath.join(current_dir, self.normalize(import_source)))
        if target == ".." or target.startswith("../"):
            return None
        base = "" if target == "." else target

        candidates = []
        if base:
            # ESM code commonly spells the extension out (`./util.js`).
            if posixpath.splitext(base)[1] in self.extensions:
                candidates.append(base)
            candidates.extend(f"{base}{ext}" for ext in self.extensions)
        candidates.extend(posixpath.join(base, f"index{ext}") for ext in self.extensions)

        for candidate in candidates:
            if (root / candidate).is_file():
                return candidate
        return None

    @staticmethod
    def is_external(import_source: str) -> bool:
        return not import_source.startswith(".") and not import_source.startswith("/")

    @staticmethod
    def normalize(file_path: str) -> str:
        return file_path.replace("\\", "/")


__all__ = ["PathResolver", "RESOLVABLE_EXTENSIONS"]
