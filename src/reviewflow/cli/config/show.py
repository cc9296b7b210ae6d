"""
reviewflow config show command.

SUMMARY: Show current configuration

Displays the merged configuration from bundled defaults, project overrides,
and environment variables.
"""
from __future__ import annotations

import argparse

import yaml

from reviewflow.cli import COMMAND_ERRORS, OutputFormatter, add_standard_flags, get_repo_root
from reviewflow.core.config import ConfigManager

SUMMARY = "Show current configuration"


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    parser.add_argument(
        "--section",
        help="Only this section or dot-notation key (e.g. 'workflow.enabled')",
    )
    parser.add_argument(
        "--validate",
        action="store_true",
        help="Validate the merged configuration against its schema",
    )
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    """Show configuration - delegates to ConfigManager."""
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        manager = ConfigManager(get_repo_root(args))
        data = manager.load_config(validate=args.validate)
    except COMMAND_ERRORS as e:
        formatter.error(e, error_code="config_error")
        return 1

    if args.section:
        value = manager.get(args.section)
        if value is None:
            formatter.text(f"Key not found: {args.section}")
            return 1
        data = {args.section: value}

    if formatter.json_mode:
        formatter.json_output(data)
    else:
        formatter.text(yaml.safe_dump(data, default_flow_style=False, sort_keys=True).rstrip())
    return 0
