"""Common CLI argument registration utilities."""
from __future__ import annotations

import argparse
from typing import Dict, Iterable, List, Optional


def add_json_flag(parser: argparse.ArgumentParser) -> None:
    """Add --json flag for JSON output mode."""
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )


def add_repo_root_flag(parser: argparse.ArgumentParser) -> None:
    """Add --repo-root flag for repository root override."""
    parser.add_argument(
        "--repo-root",
        type=str,
        help="Override repository root path",
    )


def add_records_arg(parser: argparse.ArgumentParser) -> None:
    """Add the required --records flag naming a YAML record file."""
    parser.add_argument(
        "--records",
        required=True,
        help="YAML file with workflows, projects, changes, reviews and groups",
    )


def add_project_arg(parser: argparse.ArgumentParser, required: bool = True) -> None:
    """Add the repeatable --project P[:BRANCH] flag."""
    parser.add_argument(
        "--project",
        "-p",
        dest="projects",
        action="append",
        default=[],
        required=required,
        metavar="PROJECT[:BRANCH]",
        help="Affected project, optionally with a branch (repeatable)",
    )


def add_standard_flags(parser: argparse.ArgumentParser) -> None:
    """Add --json and --repo-root."""
    add_json_flag(parser)
    add_repo_root_flag(parser)


def parse_project_branches(values: Optional[Iterable[str]]) -> Dict[str, List[str]]:
    """Turn ``["p1:main", "p1:dev", "p2"]`` into ``{"p1": ["main", "dev"], "p2": []}``.

    Raises:
        ValueError: on an empty project name.
    """
    affected: Dict[str, List[str]] = {}
    for raw in values or []:
        project, _, branch = str(raw).partition(":")
        project = project.strip()
        if not project:
            raise ValueError(f"Invalid project argument: {raw!r}")
        branches = affected.setdefault(project, [])
        branch = branch.strip()
        if branch and branch not in branches:
            branches.append(branch)
    return affected


__all__ = [
    "add_json_flag",
    "add_repo_root_flag",
    "add_records_arg",
    "add_project_arg",
    "add_standard_flags",
    "parse_project_branches",
]
