"""CLI entrypoints for toolspec commands."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Dict, List

from .config import ConfigError, ToolSpecConfig, load_config
from .exporters import ExportError, export_metadata, get_export_formats
from .github.client import GitHubClient
from .logging import configure_logging
from .models import AnalysisState
from .pipeline import AnalysisPipeline
from .validators.citation import parse_citation_cff
from .validators.tool_spec import validate_tool_spec

_STATUS_MARKERS = {
    "completed": "ok",
    "failed": "FAIL",
    "pending": "--",
    "running": "..",
    "skipped": "skip",
}


def _add_logging_options(parser: argparse.ArgumentParser, *, suppress_default: bool = False) -> None:
    default: object = argparse.SUPPRESS if suppress_default else False
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=default,
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        default=default,
        help="Only report warnings and errors.",
    )


def _add_export_options(parser: argparse.ArgumentParser) -> None:
    group = parser.add_argument_group("export options")
    group.add_argument("--command", help="Galaxy command line (defaults to the Dockerfile command).")
    group.add_argument("--interpreter", help="Galaxy command interpreter.")
    group.add_argument("--container", help="Container image for Galaxy and CWL exports.")
    group.add_argument("--container-version", help="Image tag replacing the container's tag.")
    group.add_argument("--profile", help="Galaxy tool profile.")
    group.add_argument(
        "--galaxy-output",
        action="append",
        default=[],
        metavar="NAME:FORMAT[:LABEL]",
        help="Declare a Galaxy output; may be repeated.",
    )
    group.add_argument("--cwl-version", choices=("v1.1", "v1.2"), help="CWL document version.")
    group.add_argument("--base-command", help="Command executed inside the CWL container.")
    group.add_argument(
        "--cwl-output",
        action="append",
        default=[],
        metavar="NAME:TYPE:GLOB",
        help="Declare a CWL output; may be repeated.",
    )
    group.add_argument("--maintainer", help="DOAP maintainer name.")
    group.add_argument("--doap-format", choices=("turtle", "rdfxml"), help="DOAP serialization.")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="toolspec",
        description="Validate tool-spec repositories and convert them to software metadata formats.",
    )
    _add_logging_options(parser)
    parser.add_argument(
        "--config",
        default=".",
        help="Path to .toolspec.yml or the directory containing it (defaults to current directory).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Run every repository check and export the resulting metadata.",
    )
    _add_logging_options(analyze_parser, suppress_default=True)
    analyze_parser.add_argument("repo", help="GitHub URL, SSH remote or owner/name.")
    analyze_parser.add_argument(
        "--format",
        help="Export format id (see `toolspec formats`); defaults to the configured format.",
    )
    analyze_parser.add_argument(
        "--output",
        help="File or directory to write the export to (prints to stdout when omitted).",
    )
    analyze_parser.add_argument(
        "--no-export",
        action="store_true",
        help="Only report check outcomes.",
    )
    _add_export_options(analyze_parser)

    tool_parser = subparsers.add_parser("validate-tool", help="Validate a local tool.yml file.")
    _add_logging_options(tool_parser, suppress_default=True)
    tool_parser.add_argument("path", help="Path to tool.yml.")

    citation_parser = subparsers.add_parser(
        "validate-citation", help="Validate a local CITATION.cff file."
    )
    _add_logging_options(citation_parser, suppress_default=True)
    citation_parser.add_argument("path", help="Path to CITATION.cff.")

    subparsers.add_parser("formats", help="List available export formats.")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP service.")
    _add_logging_options(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for toolspec commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose), quiet=bool(args.quiet))

    try:
        config = load_config(Path(args.config))
    except ConfigError as exc:
        parser.exit(2, f"{exc}\n")

    if args.command == "analyze":
        _run_analyze(parser, args, config)
    elif args.command == "validate-tool":
        _run_validate_tool(parser, Path(args.path))
    elif args.command == "validate-citation":
        _run_validate_citation(parser, Path(args.path))
    elif args.command == "formats":
        for export_format in get_export_formats():
            print(f"{export_format.id:<12} {export_format.name:<12} {export_format.description}")
    elif args.command == "serve":
        from .service.app import run_service

        run_service(host=args.host, port=args.port, config=config)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def _run_analyze(
    parser: argparse.ArgumentParser, args: argparse.Namespace, config: ToolSpecConfig
) -> None:
    pipeline = AnalysisPipeline(GitHubClient(config.github))
    state = pipeline.run_analysis(args.repo)
    _print_state(state)

    if state.state != "completed" or state.metadata is None:
        parser.exit(1, f"toolspec analyze failed: {'; '.join(state.errors) or state.state}\n")
    if args.no_export:
        return

    format_id = args.format or config.export_format or "codemeta"
    options = config.export_options(format_id)
    options.update(export_options_from_args(args, format_id))
    try:
        result = export_metadata(format_id, state.metadata, options)
    except ExportError as exc:
        parser.exit(1, f"toolspec export failed: {exc}\n")

    for error in result.validation_errors:
        print(f"warning: {format_id}: {error}", file=sys.stderr)

    if not args.output:
        sys.stdout.write(result.content)
        if not result.content.endswith("\n"):
            sys.stdout.write("\n")
        return

    target = Path(args.output).expanduser()
    if target.is_dir():
        target = target / result.filename
    target.write_text(result.content, encoding="utf-8")
    print(f"{format_id} metadata written to {_relativize(target)}")


def _run_validate_tool(parser: argparse.ArgumentParser, path: Path) -> None:
    text = _read_text(parser, path)
    result = validate_tool_spec(text)
    for warning in result.warnings:
        print(f"warning: {warning}")
    if not result.is_valid:
        for error in result.errors:
            print(f"error: {error}")
        parser.exit(1, f"{path} is not a valid tool.yml\n")
    if result.tool_spec is None:
        parser.exit(1, f"{path} did not produce a tool definition\n")
    print(f"{path} is valid: {result.tool_spec.title}")


def _run_validate_citation(parser: argparse.ArgumentParser, path: Path) -> None:
    text = _read_text(parser, path)
    result = parse_citation_cff(text)
    for warning in result.warnings:
        print(f"warning: {warning}")
    if not result.is_valid:
        for error in result.errors:
            print(f"error: {error}")
        parser.exit(1, f"{path} is not a valid CITATION.cff\n")
    if result.citation_cff is None:
        parser.exit(1, f"{path} did not produce citation metadata\n")
    print(f"{path} is valid: {result.citation_cff.title}")


def export_options_from_args(args: argparse.Namespace, format_id: str) -> Dict[str, Any]:
    """Collect export options given on the command line, skipping unset flags."""
    options: Dict[str, Any] = {}
    for key in (
        "command",
        "interpreter",
        "container",
        "container_version",
        "profile",
        "cwl_version",
        "base_command",
        "maintainer",
    ):
        value = getattr(args, key, None)
        if value is not None:
            options[key] = value
    if getattr(args, "doap_format", None):
        options["format"] = args.doap_format
    galaxy_outputs = getattr(args, "galaxy_output", None) or []
    cwl_outputs = getattr(args, "cwl_output", None) or []
    if format_id == "galaxy" and galaxy_outputs:
        options["outputs"] = [_galaxy_output(spec) for spec in galaxy_outputs]
    elif format_id == "cwl" and cwl_outputs:
        options["outputs"] = [_cwl_output(spec) for spec in cwl_outputs]
    return options


def _galaxy_output(spec: str) -> Dict[str, str]:
    parts = spec.split(":", 2)
    name = parts[0]
    return {
        "name": name,
        "format": parts[1] if len(parts) > 1 else "",
        "label": parts[2] if len(parts) > 2 else name,
    }


def _cwl_output(spec: str) -> Dict[str, str]:
    parts = spec.split(":", 2)
    return {
        "name": parts[0],
        "type": parts[1] if len(parts) > 1 else "",
        "glob": parts[2] if len(parts) > 2 else "",
    }


def _print_state(state: AnalysisState) -> None:
    lines: List[str] = [f"Analysis of {state.repo_url}: {state.state}"]
    for result in state.checks.values():
        marker = _STATUS_MARKERS.get(result.status, result.status)
        suffix = " (optional)" if not result.is_required else ""
        lines.append(f"  [{marker}] {result.name or result.id}{suffix}")
        if result.error:
            lines.append(f"        error: {result.error}")
        if result.warning:
            lines.append(f"        warning: {result.warning}")
    print("\n".join(lines), file=sys.stderr)


def _read_text(parser: argparse.ArgumentParser, path: Path) -> str:
    try:
        return path.expanduser().read_text(encoding="utf-8")
    except OSError as exc:
        parser.exit(1, f"Could not read {path}: {exc}\n")


def _relativize(path: Path) -> str:
    try:
        return str(path.resolve().relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
