"""CLI entrypoints for resusage commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from .config import ConfigError
from .logging import configure_logging
from .orchestrator import AnalysisReport, Orchestrator

_REPORTS = ("unused", "config", "references", "model", "keep")


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument(
        "-v",
        "--verbose",
        **kwargs,
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="resusage",
        description="Find Android resources that are not reachable from manifests, code or keep rules.",
    )
    _add_verbose_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Analyse a project and report unused resources.",
    )
    _add_verbose_option(analyze_parser, suppress_default=True)
    analyze_parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the project root (defaults to current directory).",
    )
    analyze_parser.add_argument(
        "--report",
        choices=_REPORTS,
        default="unused",
        help="Which report to print (defaults to the unused resource list).",
    )
    analyze_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the analysis result as JSON.",
    )
    analyze_parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Ignore and do not update the cached resource model.",
    )

    serve_parser = subparsers.add_parser(
        "serve",
        help="Run the HTTP analysis service.",
    )
    _add_verbose_option(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1", help="Interface to bind.")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on.")

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for resusage commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=bool(args.verbose))

    if args.command == "analyze":
        orchestrator = Orchestrator()
        try:
            report = orchestrator.run_analysis(
                args.path,
                use_cache=False if args.no_cache else None,
            )
        except (FileNotFoundError, NotADirectoryError, ConfigError) as exc:
            parser.exit(1, f"{exc}\n")
        except RuntimeError as exc:
            parser.exit(1, f"resusage analyze failed: {exc}\nRun with --verbose for more details.\n")
        if args.json:
            print(json.dumps(report.to_dict(), indent=2))
        else:
            print(render_report(report, args.report), end="")
    elif args.command == "serve":
        from .service.app import run_service

        run_service(host=args.host, port=args.port)
    else:  # pragma: no cover - argparse enforces choices
        parser.exit(1, "Unknown command\n")


def render_report(report: AnalysisReport, kind: str) -> str:
    """Return the text of one report, newline terminated unless empty."""
    if kind == "config":
        return report.config_report
    if kind == "references":
        return f"{report.references}\n"
    if kind == "model":
        return report.resource_model
    if kind == "keep":
        return f"{report.keep_resources}\n" if report.keep_resources else ""
    lines = []
    for resource in report.unused:
        locations = ", ".join(_relativize(path, report.root) for path in resource.declarations)
        lines.append(f"{resource.url}\t{locations}" if locations else resource.url)
    return "".join(f"{line}\n" for line in lines)


def _relativize(path: Path, root: Path) -> str:
    try:
        return str(path.relative_to(root))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
