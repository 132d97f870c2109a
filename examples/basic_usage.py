#!/usr/bin/env python3
"""Programmatic sample-run example.

This demonstrates using the run service directly:

* load settings from `.env`
* install the marketing cadence workflow into a team workspace
* create a sample run (stops at the approval gate)
* approve it, which resolves the remaining nodes and appends POST_LOG.md

No gateway is needed: without an approval target the notification step is skipped.
"""

from __future__ import annotations

import argparse
import json
from typing import Sequence

from clawkitchen_workflows.config import Settings
from clawkitchen_workflows.logging import configure_logging
from clawkitchen_workflows.runs.service import RunService
from clawkitchen_workflows.workflows.templates import marketing_cadence_workflow


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create and approve a sample workflow run.")
    parser.add_argument("--team", required=True, help="Team id")
    parser.add_argument("--note", default="", help="Optional approval note")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = Settings()
    configure_logging(settings.log_level, fmt=settings.log_format)

    service = RunService.from_settings(settings)
    workflow = marketing_cadence_workflow()
    service.workflows.write(args.team, workflow)

    created = service.create_run(args.team, workflow.id, "sample")
    run_id = str(created["runId"])
    print(f"Created sample run {run_id}")

    service.decide(args.team, workflow.id, run_id, "approve", args.note or None)
    detail = service.get_run(args.team, workflow.id, run_id)
    print(json.dumps(detail["run"], indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
