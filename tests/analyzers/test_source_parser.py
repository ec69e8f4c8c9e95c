"""Tests for stackmap.analyzers.source_parser."""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from stackmap.analyzers.source_parser import SourceParser
from stackmap.analyzers.syntax import SourceSyntaxError, parse_source
from stackmap.models import ExportRef, ImportSpecifier, Route, SourceFile


def _parse(relative_path: str, content: str):
    extension = Path(relative_path).suffix
    source = SourceFile(relative_path=relative_path, absolute_path=f"/virtual/{relative_path}", extension=extension)
    return SourceParser().parse(source, textwrap.dedent(content).lstrip("\n"))


def test_routes_win_over_functions() -> None:
    analysis = _parse(
        "src/app.js",
        """
        const express = require('express');
        const app = express();

        function helper() {
          return 1;
        }

        app.get('/health', (req, res) => res.json({ ok: true }));
        app.post('/items', helper);
        app.listen(3000);

        module.exports = app;
        """,
    )

    assert analysis.kind == "express-server"
    assert analysis.routes == [Route("GET", "/health"), Route("POST", "/items")]
    assert analysis.functions == ["helper"]
    assert [ref.source for ref in analysis.imports] == ["express"]
    assert analysis.exports == [ExportRef("default", "commonjs")]
    assert analysis.summary == "Express server with 2 routes, imports 1 modules"


def test_route_without_literal_path_is_unknown() -> None:
    analysis = _parse(
        "server.js",
        """
        const path = '/dynamic';
        app.delete(path, handler);
        """,
    )

    assert analysis.routes == [Route("DELETE", "unknown")]


def test_routes_require_object_named_app() -> None:
    analysis = _parse(
        "router.js",
        """
        const router = require('express').Router();
        router.get('/users', list);
        """,
    )

    assert analysis.routes == []
    assert analysis.kind == "unknown"


def test_import_specifiers_are_captured() -> None:
    analysis = _parse(
        "src/App.jsx",
        """
        import React, { useState as useLocalState, useEffect } from 'react';
        import * as utils from './utils';
        import './styles.css';

        export const App = () => <div />;
        """,
    )

    assert [ref.source for ref in analysis.imports] == ["react", "./utils", "./styles.css"]
    assert analysis.imports[0].specifiers == [
        ImportSpecifier("React", "default", "default"),
        ImportSpecifier("useLocalState", "named", "useState"),
        ImportSpecifier("useEffect", "named", "useEffect"),
    ]
    assert analysis.imports[1].specifiers == [ImportSpecifier("utils", "namespace")]
    assert analysis.imports[2].specifiers == []


def test_arrow_components_with_uppercase_names() -> None:
    analysis = _parse(
        "src/components/Button.jsx",
        """
        export const Button = ({ label }) => <button>{label}</button>;
        const formatLabel = (label) => label.trim();
        const Icon = function () { return null; };
        """,
    )

    assert analysis.kind == "react-component"
    assert analysis.components == ["Button"]
    assert analysis.exports == [ExportRef("Button", "variable")]
    assert analysis.summary == "React component file with 1 components"


def test_mongoose_schema_marker_from_call_and_new() -> None:
    analysis = _parse(
        "models/User.js",
        """
        const mongoose = require('mongoose');
        const userSchema = new mongoose.Schema({ name: String });
        const legacySchema = mongoose.Schema({ age: Number });
        """,
    )

    assert analysis.kind == "mongoose-model"
    assert analysis.schemas == ["mongoose", "mongoose"]
    assert analysis.exports == []
    assert analysis.summary == "Mongoose model file with 2 schemas"


def test_module_with_functions_and_classes() -> None:
    analysis = _parse(
        "lib/math.ts",
        """
        interface Options {
          precision: number;
        }

        export function add(a: number, b: number): number {
          return a + b;
        }

        export class Calculator {
          constructor(private options: Options) {}
        }
        """,
    )

    assert analysis.kind == "module"
    assert analysis.functions == ["add"]
    assert analysis.classes == ["Calculator"]
    assert analysis.exports == [ExportRef("add", "function"), ExportRef("Calculator", "class")]
    assert analysis.summary == "JavaScript module with 1 functions, 1 classes"


def test_nested_functions_are_not_top_level_declarations() -> None:
    analysis = _parse(
        "lib/outer.js",
        """
        function outer() {
          function inner() {}
          return inner;
        }
        """,
    )

    assert analysis.functions == ["outer"]


def test_filename_classification_for_config_and_tests() -> None:
    config = _parse("webpack.config.js", "module.exports = { mode: 'production' };\n")
    test = _parse(
        "src/math.test.js",
        """
        function add(a, b) { return a + b; }
        test('adds', () => expect(add(1, 2)).toBe(3));
        """,
    )
    spec = _parse("src/math.spec.ts", "describe('math', () => {});\n")

    assert config.kind == "config"
    assert test.kind == "test"
    assert spec.kind == "test"
    assert config.summary == "config file with 0 imports"


def test_unknown_file() -> None:
    analysis = _parse("scripts/log.js", "console.log('hi');\n")

    assert analysis.kind == "unknown"
    assert analysis.summary == "unknown file with 0 imports"


def test_reexports_and_export_clauses() -> None:
    analysis = _parse(
        "src/index.js",
        """
        export { Button } from './Button';
        export * from './hooks';
        const version = '1.0.0';
        export { version };
        export default version;
        """,
    )

    assert [(ref.source, ref.specifiers) for ref in analysis.imports] == [
        ("./Button", [ImportSpecifier("Button", "named", "Button")]),
        ("./hooks", []),
    ]
    assert ExportRef("Button", "named") in analysis.exports
    assert ExportRef("version", "named") in analysis.exports
    assert ExportRef("version", "default") in analysis.exports


def test_destructured_require_bindings() -> None:
    analysis = _parse(
        "src/db.js",
        """
        const { connect, model: makeModel } = require('mongoose');
        require('dotenv').config();
        exports.connect = connect;
        """,
    )

    assert analysis.imports[0].source == "mongoose"
    assert analysis.imports[0].specifiers == [
        ImportSpecifier("connect", "named", "connect"),
        ImportSpecifier("makeModel", "named", "model"),
    ]
    assert analysis.imports[1].source == "dotenv"
    assert analysis.imports[1].specifiers == []
    assert analysis.exports == [ExportRef("connect", "commonjs")]


def test_tsx_component_file() -> None:
    analysis = _parse(
        "src/Card.tsx",
        """
        type Props = { title: string };

        export const Card = ({ title }: Props) => <section>{title}</section>;
        """,
    )

    assert analysis.kind == "react-component"
    assert analysis.components == ["Card"]


def test_syntax_error_yields_parse_error_record() -> None:
    analysis = _parse("src/broken.js", "const = ;\nfunction (\n")

    assert analysis.kind == "parse-error"
    assert analysis.summary.startswith("Failed to parse: ")
    assert analysis.error is not None
    assert analysis.imports == []


def test_undecodable_file_is_unparseable(tmp_path: Path) -> None:
    path = tmp_path / "binary.js"
    path.write_bytes(b"const x = '\xff\xfe';\n")
    source = SourceFile(relative_path="binary.js", absolute_path=str(path), extension=".js")

    analysis = SourceParser().analyze_file(source)

    assert analysis.kind == "unparseable"
    assert analysis.failed


def test_analyze_file_reads_from_disk(tmp_path: Path) -> None:
    path = tmp_path / "util.js"
    path.write_text("export function noop() {}\n", encoding="utf-8")
    source = SourceFile(relative_path="util.js", absolute_path=str(path), extension=".js")

    analysis = SourceParser().analyze_file(source)

    assert analysis.kind == "module"
    assert analysis.functions == ["noop"]


def test_js_file_with_type_annotations_uses_tsx_grammar() -> None:
    analysis = _parse("src/math.js", "export function add(a: number, b: number): number { return a + b; }\n")

    assert analysis.kind == "module"
    assert analysis.functions == ["add"]


def test_parse_source_raises_when_every_grammar_fails() -> None:
    with pytest.raises(SourceSyntaxError) as excinfo:
        parse_source("const = ;\n", ".js")

    assert excinfo.value.line == 1
