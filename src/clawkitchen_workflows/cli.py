"""CLI entrypoint.

Serves the REST API and exposes the same run operations for local use.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from pydantic import ValidationError

from clawkitchen_workflows import __version__
from clawkitchen_workflows.config import Settings
from clawkitchen_workflows.errors import InvalidRequest
from clawkitchen_workflows.logging import configure_logging
from clawkitchen_workflows.runs.service import RunService
from clawkitchen_workflows.runs.state_machine import ApprovalAction
from clawkitchen_workflows.workflows.templates import marketing_cadence_workflow

logger = logging.getLogger(__name__)


def _add_run_target(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--team", dest="team_id", required=True, help="Team id")
    parser.add_argument("--workflow", dest="workflow_id", required=True, help="Workflow id")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clawkitchen-workflows",
        description="File-first workflow runs with a human approval gate",
    )
    parser.add_argument(
        "--version", action="version", version=f"clawkitchen-workflows {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the REST API")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve.add_argument("--port", type=int, default=7420, help="Bind port")

    create_run = subparsers.add_parser("create-run", help="Create a workflow run")
    _add_run_target(create_run)
    create_run.add_argument(
        "--sample",
        action="store_true",
        help="Simulate the run deterministically up to the first approval gate",
    )

    decide = subparsers.add_parser("decide", help="Approve, request changes on, or cancel a run")
    _add_run_target(decide)
    decide.add_argument("--run", dest="run_id", required=True, help="Run id")
    decide.add_argument(
        "--action",
        required=True,
        choices=[a.value for a in ApprovalAction],
        help="Decision to record",
    )
    decide.add_argument("--note", default=None, help="Optional note stored with the decision")

    list_runs = subparsers.add_parser("list-runs", help="List run files for a workflow")
    _add_run_target(list_runs)

    show_run = subparsers.add_parser("show-run", help="Print a run record")
    _add_run_target(show_run)
    show_run.add_argument("--run", dest="run_id", required=True, help="Run id")

    install = subparsers.add_parser(
        "install-template", help="Write the marketing cadence workflow into a team workspace"
    )
    install.add_argument("--team", dest="team_id", required=True, help="Team id")
    install.add_argument("--id", dest="workflow_id", default="marketing-cadence-v1")
    install.add_argument("--approval-provider", default="telegram")
    install.add_argument("--approval-target", default="")

    return parser


def _print_json(payload: dict[str, object]) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = Settings()
    except ValidationError as e:
        # Logging isn't configured yet.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    configure_logging(settings.log_level, fmt=settings.log_format)

    if args.command == "serve":
        import uvicorn

        from clawkitchen_workflows.server.app import create_app

        uvicorn.run(create_app(settings), host=args.host, port=args.port)
        return 0

    service = RunService.from_settings(settings)
    try:
        if args.command == "create-run":
            created = service.create_run(
                args.team_id, args.workflow_id, "sample" if args.sample else ""
            )
            _print_json(created)
            return 0

        if args.command == "decide":
            decided = service.decide(
                args.team_id, args.workflow_id, args.run_id, args.action, args.note
            )
            _print_json(decided)
            return 0

        if args.command == "list-runs":
            _print_json(service.list_runs(args.team_id, args.workflow_id))
            return 0

        if args.command == "show-run":
            _print_json(service.get_run(args.team_id, args.workflow_id, args.run_id))
            return 0

        if args.command == "install-template":
            workflow = marketing_cadence_workflow(
                workflow_id=args.workflow_id,
                approval_provider=args.approval_provider,
                approval_target=args.approval_target,
            )
            _print_json(service.workflows.write(args.team_id, workflow))
            return 0

        logger.error("Unknown command", extra={"command": args.command})
        return 2

    except InvalidRequest as e:
        print(str(e), file=sys.stderr)
        return 3

    except Exception:
        logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
