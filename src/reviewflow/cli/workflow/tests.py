"""
reviewflow workflow tests command.

SUMMARY: List workflow tests by event for projects and branches
"""
from __future__ import annotations

import argparse

from reviewflow.cli import (
    COMMAND_ERRORS,
    OutputFormatter,
    add_project_arg,
    add_records_arg,
    add_standard_flags,
    build_manager,
    parse_project_branches,
)
from reviewflow.core.workflow.models import TestEvent

SUMMARY = "List workflow tests by event for projects and branches"


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    add_records_arg(parser)
    add_project_arg(parser, required=False)
    parser.add_argument(
        "--event",
        action="append",
        choices=[e.value for e in TestEvent],
        help="Only these events (repeatable)",
    )
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        manager, _ = build_manager(args)
        tests = manager.get_tests_for_affected(parse_project_branches(args.projects), args.event)
    except COMMAND_ERRORS as e:
        formatter.error(e, error_code="tests_error")
        return 1

    lines = [f"{event}: {', '.join(ids)}" for event, ids in sorted(tests.items())]
    formatter.success({"tests": tests}, "\n".join(lines) or "No tests")
    return 0
