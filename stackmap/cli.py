"""CLI entrypoints for stackmap commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .logging import configure_logging
from .models import AnalysisReport
from .orchestrator import ReportComposer


def _add_verbose_option(parser: argparse.ArgumentParser, *, suppress_default: bool = False) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    kwargs["default"] = argparse.SUPPRESS if suppress_default else False
    parser.add_argument("-v", "--verbose", **kwargs)


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the project root (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stackmap",
        description="Statically analyze a JavaScript/TypeScript project and report on its structure.",
    )
    _add_verbose_option(parser)
    parser.add_argument("--log-file", type=Path, help="Also write logs to this file.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser("analyze", help="Produce the full analysis report.")
    _add_verbose_option(analyze_parser, suppress_default=True)
    _add_path_argument(analyze_parser)
    analyze_parser.add_argument("--json", action="store_true", help="Print the report as JSON.")
    analyze_parser.add_argument("--output", type=Path, help="Write the JSON report to this file.")
    analyze_parser.add_argument(
        "--enrich",
        action="store_true",
        help=(
            "Add narrative insights from a local LLM runner when llm.enabled is set"
            " in .stackmap.yml (falls back to basic analysis otherwise)."
        ),
    )
    analyze_parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Wall-clock budget in seconds for the whole analysis.",
    )

    insights_parser = subparsers.add_parser("insights", help="Print quick insights for a project.")
    _add_verbose_option(insights_parser, suppress_default=True)
    _add_path_argument(insights_parser)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP analysis service.")
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for stackmap commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        quiet=bool(getattr(args, "json", False)),
        log_file=args.log_file,
    )

    if args.command == "serve":
        from .service.app import run_service

        run_service(host=args.host, port=args.port)
        return

    composer = ReportComposer()

    if args.command == "analyze":
        result = composer.run(args.path, timeout=args.timeout, enrich=bool(args.enrich))
        if not result.success or result.report is None:
            parser.exit(1, f"{result.message}\nRun with --verbose for more details.\n")
        payload = json.dumps(result.to_dict(), indent=2, ensure_ascii=False)
        if args.output is not None:
            args.output.write_text(payload + "\n", encoding="utf-8")
            print(f"Report written to {_relativize(args.output)}")
        if args.json:
            print(payload)
        elif args.output is None:
            print(_render_text(result.report))
    elif args.command == "insights":
        result = composer.run(args.path)
        if not result.success or result.report is None:
            parser.exit(1, f"{result.message}\n")
        for insight in composer.quick_insights(result.report):
            print(f"[{insight['type']}] {insight['message']}")
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _render_text(report: AnalysisReport) -> str:
    lines = [
        report.summary,
        "",
        f"Project type: {report.project_type}",
        f"Architecture: {report.workflow.kind} ({report.workflow.summary})",
        f"Files: {report.dependency_graph.stats.total_files}, "
        f"connections: {report.dependency_graph.stats.total_connections}, "
        f"isolated: {report.dependency_graph.stats.isolated_files}",
        f"Confidence: {report.confidence:.2f}",
    ]
    if report.tech_stack:
        lines.append("Tech stack: " + ", ".join(f"{entry.name} {entry.version}" for entry in report.tech_stack))

    issues = report.issues.all()
    lines.append("")
    lines.append(f"Issues ({len(issues)}):")
    for issue in issues:
        lines.append(f"  [{issue.severity}] {issue.file}: {issue.description}")

    lines.append("")
    lines.append("Commands:")
    for command in report.recommended_commands:
        lines.append(f"  {command.command}  # {command.description}")
    return "\n".join(lines)


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
