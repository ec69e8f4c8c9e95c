"""Tree-sitter front end that lowers JS/TS syntax trees into tagged records.

Only the constructs the extraction rules care about survive lowering:
imports, exports, declarations and member calls. Everything downstream
dispatches on these record types instead of poking at raw tree-sitter nodes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator, List, Optional, Tuple, Union

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from ..models import ImportSpecifier

JAVASCRIPT = Language(tree_sitter_javascript.language())
TYPESCRIPT = Language(tree_sitter_typescript.language_typescript())
TSX = Language(tree_sitter_typescript.language_tsx())

# Plain JS files fall back to TSX so that files mixing JSX and type
# annotations parse the way a babel jsx+typescript setup would.
_GRAMMARS_BY_EXTENSION: dict[str, Tuple[Language, ...]] = {
    ".js": (JAVASCRIPT, TSX),
    ".jsx": (JAVASCRIPT, TSX),
    ".ts": (TYPESCRIPT,),
    ".tsx": (TSX,),
}

SUPPORTED_EXTENSIONS: tuple[str, ...] = tuple(_GRAMMARS_BY_EXTENSION)

_FUNCTION_TYPES = {"function_declaration", "generator_function_declaration"}
_CLASS_TYPES = {"class_declaration", "abstract_class_declaration"}
_VARIABLE_TYPES = {"lexical_declaration", "variable_declaration"}
_TYPE_TYPES = {"interface_declaration", "type_alias_declaration", "enum_declaration"}


class SourceSyntaxError(ValueError):
    """Raised when a source file contains syntax the grammar cannot recover from."""

    def __init__(self, message: str, line: int, column: int) -> None:
        super().__init__(f"{message} ({line}:{column})")
        self.line = line
        self.column = column


@dataclass(frozen=True)
class ImportDecl:
    source: str
    specifiers: Tuple[ImportSpecifier, ...] = ()
    kind: str = "esm"


@dataclass(frozen=True)
class ExportDecl:
    name: str
    kind: str


@dataclass(frozen=True)
class FunctionDecl:
    name: str


@dataclass(frozen=True)
class ClassDecl:
    name: str


@dataclass(frozen=True)
class VariableDecl:
    name: str
    initializer: Optional[str]


@dataclass(frozen=True)
class CallExpr:
    """A call or construction whose callee is `object.property`."""

    object_name: Optional[str]
    property_name: str
    first_argument: Optional[str]
    constructed: bool = False


SyntaxRecord = Union[ImportDecl, ExportDecl, FunctionDecl, ClassDecl, VariableDecl, CallExpr]


def parse_source(source: str, extension: str) -> List[SyntaxRecord]:
    """Parse `source` and return its lowered records in document order."""
    grammars = _GRAMMARS_BY_EXTENSION.get(extension.lower())
    if not grammars:
        raise ValueError(f"Unsupported source extension: {extension}")

    source_bytes = source.encode("utf-8")
    primary, *fallbacks = grammars
    tree = Parser(primary).parse(source_bytes)
    if not tree.root_node.has_error:
        return list(_Lowering(source_bytes).lower(tree.root_node))

    # The first grammar's error is the one reported.
    failure = _describe_error(tree.root_node, source_bytes)
    for language in fallbacks:
        tree = Parser(language).parse(source_bytes)
        if not tree.root_node.has_error:
            return list(_Lowering(source_bytes).lower(tree.root_node))
    raise failure


def _describe_error(root: Node, source_bytes: bytes) -> SourceSyntaxError:
    stack = [root]
    while stack:
        node = stack.pop()
        line, column = node.start_point[0] + 1, node.start_point[1]
        if node.is_missing:
            return SourceSyntaxError(f"Missing {node.type!r}", line, column)
        if node.is_error:
            snippet = source_bytes[node.start_byte : node.end_byte].decode("utf-8", errors="replace")
            snippet = snippet.strip().splitlines()[0][:20] if snippet.strip() else ""
            return SourceSyntaxError(f"Unexpected token {snippet!r}", line, column)
        stack.extend(child for child in reversed(node.children) if child.has_error or child.is_missing)
    return SourceSyntaxError("Syntax error", root.start_point[0] + 1, root.start_point[1])


class _Lowering:
    def __init__(self, source_bytes: bytes) -> None:
        self._source = source_bytes

    def lower(self, root: Node) -> Iterator[SyntaxRecord]:
        stack: List[Tuple[Node, bool]] = [(child, True) for child in reversed(root.named_children)]
        while stack:
            node, top_level = stack.pop()
            if top_level:
                yield from self._statement(node)
            if node.type in {"call_expression", "new_expression"}:
                record = self._call(node)
                if record is not None:
                    yield record
            stack.extend((child, False) for child in reversed(node.named_children))

    # ------------------------------------------------------------------
    # Statements

    def _statement(self, node: Node) -> Iterator[SyntaxRecord]:
        if node.type == "import_statement":
            yield from self._import(node)
        elif node.type == "export_statement":
            yield from self._export(node)
        elif node.type in _FUNCTION_TYPES:
            name = self._field_text(node, "name")
            if name:
                yield FunctionDecl(name)
        elif node.type in _CLASS_TYPES:
            name = self._field_text(node, "name")
            if name:
                yield ClassDecl(name)
        elif node.type in _VARIABLE_TYPES:
            yield from self._declarators(node)
        elif node.type == "expression_statement":
            yield from self._commonjs_export(node)

    def _import(self, node: Node) -> Iterator[SyntaxRecord]:
        source_node = node.child_by_field_name("source")
        specifiers: List[ImportSpecifier] = []
        for child in node.named_children:
            if child.type == "import_require_clause":
                # TypeScript `import x = require("y")`
                require_source = child.child_by_field_name("source")
                local = next((c for c in child.named_children if c.type == "identifier"), None)
                if require_source is not None:
                    bindings = (ImportSpecifier(self._text(local), "namespace"),) if local else ()
                    yield ImportDecl(self._string_value(require_source), bindings, "require")
                return
            if child.type == "import_clause":
                specifiers.extend(self._import_clause(child))
        if source_node is not None:
            yield ImportDecl(self._string_value(source_node), tuple(specifiers))

    def _import_clause(self, clause: Node) -> Iterator[ImportSpecifier]:
        for part in clause.named_children:
            if part.type == "identifier":
                yield ImportSpecifier(self._text(part), "default", "default")
            elif part.type == "namespace_import":
                local = next((c for c in part.named_children if c.type == "identifier"), None)
                if local is not None:
                    yield ImportSpecifier(self._text(local), "namespace")
            elif part.type == "named_imports":
                for spec in part.named_children:
                    if spec.type != "import_specifier":
                        continue
                    imported = self._field_text(spec, "name")
                    alias = self._field_text(spec, "alias")
                    yield ImportSpecifier(alias or imported, "named", imported)

    def _export(self, node: Node) -> Iterator[SyntaxRecord]:
        source_node = node.child_by_field_name("source")
        declaration = node.child_by_field_name("declaration")
        is_default = any(child.type == "default" for child in node.children)

        if source_node is not None:
            names = list(self._export_clause_names(node))
            specifiers = tuple(ImportSpecifier(name, "named", name) for name in names)
            yield ImportDecl(self._string_value(source_node), specifiers, "reexport")
            for name in names:
                yield ExportDecl(name, "named")
            return

        if declaration is not None:
            name = self._field_text(declaration, "name")
            if declaration.type in _FUNCTION_TYPES:
                if name:
                    yield ExportDecl(name, "default" if is_default else "function")
                    yield FunctionDecl(name)
            elif declaration.type in _CLASS_TYPES:
                if name:
                    yield ExportDecl(name, "default" if is_default else "class")
                    yield ClassDecl(name)
            elif declaration.type in _VARIABLE_TYPES:
                for record in self._declarators(declaration):
                    yield ExportDecl(record.name, "variable")
                    yield record
            elif declaration.type in _TYPE_TYPES and name:
                yield ExportDecl(name, "type")
            return

        if is_default:
            value = node.child_by_field_name("value")
            name = self._text(value) if value is not None and value.type == "identifier" else "default"
            yield ExportDecl(name, "default")
            return

        for name in self._export_clause_names(node):
            yield ExportDecl(name, "named")

    def _export_clause_names(self, node: Node) -> Iterator[str]:
        for child in node.named_children:
            if child.type != "export_clause":
                continue
            for spec in child.named_children:
                if spec.type != "export_specifier":
                    continue
                name = self._field_text(spec, "alias") or self._field_text(spec, "name")
                if name:
                    yield name

    def _declarators(self, node: Node) -> Iterator[VariableDecl]:
        for declarator in node.named_children:
            if declarator.type != "variable_declarator":
                continue
            name_node = declarator.child_by_field_name("name")
            if name_node is None or name_node.type != "identifier":
                continue
            value = declarator.child_by_field_name("value")
            yield VariableDecl(self._text(name_node), value.type if value is not None else None)

    def _commonjs_export(self, node: Node) -> Iterator[ExportDecl]:
        expression = next(iter(node.named_children), None)
        if expression is None or expression.type != "assignment_expression":
            return
        left = expression.child_by_field_name("left")
        if left is None or left.type != "member_expression":
            return
        target = self._text(left)
        if target == "module.exports":
            yield ExportDecl("default", "commonjs")
        elif target.startswith("module.exports.") or target.startswith("exports."):
            yield ExportDecl(target.rsplit(".", 1)[1], "commonjs")

    # ------------------------------------------------------------------
    # Calls

    def _call(self, node: Node) -> Optional[SyntaxRecord]:
        constructed = node.type == "new_expression"
        callee = node.child_by_field_name("constructor" if constructed else "function")
        if callee is None:
            return None
        first = self._first_argument(node.child_by_field_name("arguments"))

        if not constructed and callee.type == "identifier" and self._text(callee) == "require":
            if first is None or first.type != "string":
                return None
            return ImportDecl(self._string_value(first), tuple(self._require_bindings(node)), "require")

        if callee.type != "member_expression":
            return None
        obj = callee.child_by_field_name("object")
        prop = callee.child_by_field_name("property")
        if prop is None or prop.type != "property_identifier":
            return None
        return CallExpr(
            object_name=self._text(obj) if obj is not None and obj.type == "identifier" else None,
            property_name=self._text(prop),
            first_argument=self._string_value(first) if first is not None and first.type == "string" else None,
            constructed=constructed,
        )

    def _require_bindings(self, call: Node) -> Iterator[ImportSpecifier]:
        parent = call.parent
        if parent is None or parent.type != "variable_declarator":
            return
        value = parent.child_by_field_name("value")
        if value is None or (value.start_byte, value.end_byte) != (call.start_byte, call.end_byte):
            return
        name = parent.child_by_field_name("name")
        if name is None:
            return
        if name.type == "identifier":
            yield ImportSpecifier(self._text(name), "namespace")
        elif name.type == "object_pattern":
            for prop in name.named_children:
                if prop.type == "shorthand_property_identifier_pattern":
                    text = self._text(prop)
                    yield ImportSpecifier(text, "named", text)
                elif prop.type == "pair_pattern":
                    key = self._field_text(prop, "key")
                    local = self._field_text(prop, "value")
                    if key and local:
                        yield ImportSpecifier(local, "named", key)

    @staticmethod
    def _first_argument(arguments: Optional[Node]) -> Optional[Node]:
        if arguments is None:
            return None
        return next((child for child in arguments.named_children if child.type != "comment"), None)

    # ------------------------------------------------------------------
    # Text helpers

    def _text(self, node: Optional[Node]) -> str:
        if node is None:
            return ""
        return self._source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")

    def _field_text(self, node: Node, field_name: str) -> str:
        return self._text(node.child_by_field_name(field_name))

    def _string_value(self, node: Node) -> str:
        text = self._text(node)
        if len(text) >= 2 and text[0] in {"'", '"'} and text[-1] == text[0]:
            return text[1:-1]
        return text


def iter_records(records: Iterable[SyntaxRecord], kind: type) -> Iterator[SyntaxRecord]:
    """Yield only the records of one variant."""
    return (record for record in records if isinstance(record, kind))


__all__ = [
    "CallExpr",
    "ClassDecl",
    "ExportDecl",
    "FunctionDecl",
    "ImportDecl",
    "SourceSyntaxError",
    "SUPPORTED_EXTENSIONS",
    "SyntaxRecord",
    "VariableDecl",
    "iter_records",
    "parse_source",
]
