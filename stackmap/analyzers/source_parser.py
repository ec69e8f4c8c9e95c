"""Per-file extraction and classification for JavaScript/TypeScript sources."""

from __future__ import annotations

from pathlib import Path
from typing import List

from ..logging import get_logger
from ..models import ExportRef, FileAnalysis, ImportRef, Route, SourceFile
from .syntax import (
    CallExpr,
    ClassDecl,
    ExportDecl,
    FunctionDecl,
    ImportDecl,
    SourceSyntaxError,
    SyntaxRecord,
    VariableDecl,
    parse_source,
)

ROUTE_METHODS = {"get", "post", "put", "delete", "patch"}
# Both are literal identifier matches; nothing checks what `app` or `mongoose` is bound to.
ROUTE_OBJECT = "app"
SCHEMA_OBJECT = "mongoose"


class SourceParser:
    """Stateless parser turning one source file into a `FileAnalysis`."""

    def __init__(self) -> None:
        self.logger = get_logger("parser")

    def analyze_file(self, source_file: SourceFile) -> FileAnalysis:
        """Read `source_file` from disk and parse it; read failures are recorded, not raised."""
        try:
            content = Path(source_file.absolute_path).read_bytes().decode("utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            self.logger.warning("Unable to read %s: %s", source_file.relative_path, exc)
            return FileAnalysis(
                path=source_file.relative_path,
                kind="unparseable",
                summary=f"Unable to read file: {exc}",
                error=str(exc),
            )
        return self.parse(source_file, content)

    def parse(self, source_file: SourceFile, content: str) -> FileAnalysis:
        try:
            records = parse_source(content, source_file.extension)
        except (SourceSyntaxError, ValueError) as exc:
            self.logger.warning("Failed to parse %s: %s", source_file.relative_path, exc)
            return FileAnalysis(
                path=source_file.relative_path,
                kind="parse-error",
                summary=f"Failed to parse: {exc}",
                error=str(exc),
            )
        return self._extract(source_file, records)

    def _extract(self, source_file: SourceFile, records: List[SyntaxRecord]) -> FileAnalysis:
        imports: List[ImportRef] = []
        exports: List[ExportRef] = []
        functions: List[str] = []
        classes: List[str] = []
        routes: List[Route] = []
        schemas: List[str] = []
        components: List[str] = []

        for record in records:
            match record:
                case ImportDecl(source=source, specifiers=specifiers):
                    imports.append(ImportRef(source=source, specifiers=list(specifiers)))
                case ExportDecl(name=name, kind=kind):
                    exports.append(ExportRef(name=name, kind=kind))
                case FunctionDecl(name=name):
                    functions.append(name)
                case ClassDecl(name=name):
                    classes.append(name)
                case VariableDecl(name=name, initializer="arrow_function") if _is_component_name(name):
                    components.append(name)
                case CallExpr(object_name=obj, property_name=prop, first_argument=arg, constructed=False) if (
                    obj == ROUTE_OBJECT and prop in ROUTE_METHODS
                ):
                    routes.append(Route(method=prop.upper(), path=arg if arg is not None else "unknown"))
                case CallExpr(object_name=obj, property_name="Schema") if obj == SCHEMA_OBJECT:
                    schemas.append(SCHEMA_OBJECT)
                case _:
                    pass

        kind = classify(source_file.name, routes, schemas, components, functions, classes)
        return FileAnalysis(
            path=source_file.relative_path,
            kind=kind,
            summary=summarize(kind, imports, functions, classes, routes, schemas, components),
            imports=imports,
            exports=exports,
            functions=functions,
            classes=classes,
            routes=routes,
            schemas=schemas,
            components=components,
        )


def classify(
    file_name: str,
    routes: List[Route],
    schemas: List[str],
    components: List[str],
    functions: List[str],
    classes: List[str],
) -> str:
    """Pick a file kind; the order of the checks is significant."""
    if routes:
        return "express-server"
    if schemas:
        return "mongoose-model"
    if components:
        return "react-component"
    if file_name == "package.json":
        return "package-config"
    if "config" in file_name:
        return "config"
    if "test" in file_name or "spec" in file_name:
        return "test"
    if functions or classes:
        return "module"
    return "unknown"


def summarize(
    kind: str,
    imports: List[ImportRef],
    functions: List[str],
    classes: List[str],
    routes: List[Route],
    schemas: List[str],
    components: List[str],
) -> str:
    if kind == "express-server":
        return f"Express server with {len(routes)} routes, imports {len(imports)} modules"
    if kind == "react-component":
        return f"React component file with {len(components)} components"
    if kind == "mongoose-model":
        return f"Mongoose model file with {len(schemas)} schemas"
    if kind == "module":
        return f"JavaScript module with {len(functions)} functions, {len(classes)} classes"
    return f"{kind} file with {len(imports)} imports"


def _is_component_name(name: str) -> bool:
    return bool(name) and name[0].isupper() and name[0].isascii()


__all__ = ["ROUTE_METHODS", "SourceParser", "classify", "summarize"]
