"""
reviewflow workflow rule command.

SUMMARY: Show the net value of one rule for projects and branches
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
from reviewflow.core.workflow.models import RuleId, token_value

SUMMARY = "Show the net value of one rule for projects and branches"


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    parser.add_argument(
        "rule_id",
        help=f"Rule id ({', '.join(r.value for r in RuleId)})",
    )
    add_records_arg(parser)
    add_project_arg(parser)
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        rule_id = RuleId.parse(args.rule_id)
        manager, _ = build_manager(args)
        value = manager.get_branch_rule(rule_id, parse_project_branches(args.projects))
    except COMMAND_ERRORS as e:
        formatter.error(e, error_code="rule_error")
        return 1

    if value is None:
        formatter.success({"rule": rule_id.value, "value": None}, "Workflows are not enabled")
        return 0
    plain = token_value(value)
    formatter.success({"rule": rule_id.value, "value": plain}, f"{rule_id.value}: {plain}")
    return 0
