"""CLI entrypoints for aicore commands."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from .config import load_config_or_default
from .errors import AICoreError, InvalidPath
from .logging import configure_logging
from .models import AgentsContext, PHASES
from .pipeline import Pipeline
from .router import FallbackOptions
from .scanner import resolve_workspace
from .scoring import ScoreSignals, compute_score, recommended_action
from .stores import RunHistory


def _add_logging_options(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    default = argparse.SUPPRESS if suppress_default else False
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
        help="Only log warnings and errors.",
    )
    parser.add_argument(
        "--log-json",
        action="store_true",
        default=default,
        help="Write console log records as JSON lines.",
    )


def _add_path_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "path",
        nargs="?",
        default=".",
        help="Path to the workspace root (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="aicore",
        description="Scan workspaces, route requests to agents and run them.",
    )
    _add_logging_options(parser)
    parser.add_argument("--log-file", type=Path, help="Also write JSON log records to this file.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser("scan", help="Print the workspace descriptor.")
    _add_logging_options(scan_parser, suppress_default=True)
    _add_path_argument(scan_parser)

    phase_parser = subparsers.add_parser("phase", help="Classify the workspace lifecycle phase.")
    _add_logging_options(phase_parser, suppress_default=True)
    _add_path_argument(phase_parser)
    phase_parser.add_argument("--force-phase", choices=PHASES, help="Override the detected phase.")

    route_parser = subparsers.add_parser("route", help="Show the dispatch plan and route decision.")
    _add_logging_options(route_parser, suppress_default=True)
    route_parser.add_argument("intent", help="Free-text description of the request.")
    _add_path_argument(route_parser)
    route_parser.add_argument("--prompt-id", default="unknown", help="Identifier echoed in telemetry.")

    score_parser = subparsers.add_parser("score", help="Score raw signals without scanning.")
    _add_logging_options(score_parser, suppress_default=True)
    score_parser.add_argument("--keywords", type=float, default=0.0)
    score_parser.add_argument("--profile", type=float, default=0.0)
    score_parser.add_argument("--history", type=float, default=0.5)
    score_parser.add_argument("--complexity", type=float, default=0.0)
    score_parser.add_argument(
        "--config",
        type=Path,
        default=Path("."),
        help="Workspace or .aicore.yml providing weights and thresholds.",
    )

    run_parser = subparsers.add_parser("run", help="Scan, route and execute agents for a request.")
    _add_logging_options(run_parser, suppress_default=True)
    run_parser.add_argument("intent", help="Free-text description of the request.")
    _add_path_argument(run_parser)
    run_parser.add_argument("--prompt-id", help="Identifier echoed in telemetry and history.")
    run_parser.add_argument("--force-phase", choices=PHASES, help="Override the detected phase.")
    run_parser.add_argument("--project-id", help="Knowledge-base project to notify on success.")

    history_parser = subparsers.add_parser("history", help="Show recorded runs for a workspace.")
    _add_logging_options(history_parser, suppress_default=True)
    _add_path_argument(history_parser)
    history_parser.add_argument(
        "--purge-expired", action="store_true", help="Drop records older than the TTL first."
    )

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP service.")
    _add_logging_options(serve_parser, suppress_default=True)
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser


def _emit(payload: Any) -> None:
    print(json.dumps(payload, indent=2, sort_keys=True))


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for aicore commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        quiet=bool(args.quiet),
        json_format=bool(args.log_json),
        log_file=args.log_file,
    )

    try:
        if args.command == "scan":
            root = resolve_workspace(args.path)
            _emit(Pipeline.for_workspace(root).scanner.scan(root).to_dict())
        elif args.command == "phase":
            root = resolve_workspace(args.path)
            verdict = Pipeline.for_workspace(root).classifier.detect_phase(
                root, force_phase=args.force_phase
            )
            _emit(verdict.to_dict())
        elif args.command == "route":
            _emit(_route(args))
        elif args.command == "score":
            _emit(_score(args))
        elif args.command == "run":
            agents_context = AgentsContext(project_id=args.project_id) if args.project_id else None
            result = Pipeline.for_workspace(args.path).run(
                args.path,
                args.intent,
                prompt_id=args.prompt_id,
                force_phase=args.force_phase,
                agents_context=agents_context,
            )
            _emit(result.to_dict())
        elif args.command == "history":
            _emit(_history(args))
        elif args.command == "serve":  # pragma: no cover - integration path
            from .service import run_service

            run_service(host=args.host, port=args.port)
        else:  # pragma: no cover - argparse enforces choices
            parser.exit(1, "Unknown command\n")
    except InvalidPath as exc:
        parser.exit(1, f"{exc}\n")
    except AICoreError as exc:
        parser.exit(1, f"aicore {args.command} failed: {exc}\nRun with --verbose for more details.\n")


def _route(args: argparse.Namespace) -> dict[str, Any]:
    root = resolve_workspace(args.path)
    pipeline = Pipeline.for_workspace(root)
    descriptor = pipeline.scanner.scan(root)
    plan = pipeline.router.route(descriptor, args.intent, root)
    signals = pipeline.router.score_signals(descriptor, args.intent, plan, root)
    decision = pipeline.router.apply_fallback_rules(
        FallbackOptions(signals=signals, prompt_id=args.prompt_id, user_intent=args.intent)
    )
    return {"plan": plan.to_dict(), "decision": decision.to_dict()}


def _score(args: argparse.Namespace) -> dict[str, Any]:
    config = load_config_or_default(args.config)
    signals = ScoreSignals(
        keywords_score=args.keywords,
        profile_match_score=args.profile,
        historical_success_score=args.history,
        complexity_estimate=args.complexity,
    )
    result = compute_score(signals, config.scoring.weights, config.routing)
    action = recommended_action(result.score, config.routing)
    return {
        "score": result.score,
        "level": result.level,
        "breakdown": result.breakdown,
        "action": action.action,
        "message": action.message,
    }


def _history(args: argparse.Namespace) -> dict[str, Any]:
    root = resolve_workspace(args.path)
    config = load_config_or_default(root)
    history = RunHistory.from_config(config.memory)
    payload: dict[str, Any] = {}
    if args.purge_expired:
        payload["purge"] = history.purge_expired(root)
    payload["status"] = history.status(root)
    payload["runs"] = history.runs(root)
    return payload


if __name__ == "__main__":
    main(sys.argv[1:])
