"""
reviewflow review blocking-tests command.

SUMMARY: List tests blocking a review from entering a state
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

SUMMARY = "List tests blocking a review from entering a state"


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    parser.add_argument("review_id", help="Review id")
    parser.add_argument("state", help="Target review state (e.g. approved)")
    add_records_arg(parser)
    add_project_arg(parser, required=False)
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    """Projects default to the review's own projects when none are given."""
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        manager, store = build_manager(args)
        review = store.fetch_review(args.review_id)
        affected = parse_project_branches(args.projects) or review.affected_projects()
        blocking = sorted(manager.get_blocking_tests(review, affected, args.state))
    except COMMAND_ERRORS as e:
        formatter.error(e, error_code="blocking_tests_error")
        return 1

    text = ", ".join(blocking) if blocking else f"No tests block state [{args.state}]"
    formatter.success(
        {"review": review.id, "state": args.state, "blocking": blocking, "blocked": bool(blocking)},
        text,
    )
    return 0
