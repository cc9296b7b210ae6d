"""
reviewflow workflow resolve command.

SUMMARY: Show the merged workflow for projects and branches
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

SUMMARY = "Show the merged workflow for projects and branches"


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    add_records_arg(parser)
    add_project_arg(parser, required=False)
    parser.add_argument(
        "--specific-only",
        action="store_true",
        help="Report nothing when no project or branch carries a workflow",
    )
    add_standard_flags(parser)


def _render(data: dict, indent: int = 0) -> list:
    lines = []
    for key, value in data.items():
        if isinstance(value, dict) and "rule" not in value:
            lines.append(f"{'  ' * indent}{key}:")
            lines.extend(_render(value, indent + 1))
        else:
            lines.append(f"{'  ' * indent}{key}: {value['rule']}")
    return lines


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        affected = parse_project_branches(args.projects)
        manager, _ = build_manager(args)
        if args.specific_only:
            # Raises WorkflowDisabledError when disabled.
            manager.get_global_workflow()
            merged = manager.resolver.resolve_for_projects(affected)
        else:
            merged = manager.get_merged_workflow(affected=affected)
    except COMMAND_ERRORS as e:
        formatter.error(e, error_code="resolve_error")
        return 1

    if merged is None:
        formatter.success({"workflow": None}, "No project or branch carries a workflow")
        return 0

    data = merged.to_dict()
    formatter.success({"workflow": data}, "\n".join(_render(data)))
    return 0
