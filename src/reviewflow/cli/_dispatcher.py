"""
Auto-discovery CLI dispatcher for reviewflow.

Scans subfolders for commands and automatically registers them.
Adding new commands = just add a .py file to the appropriate subfolder.
"""
from __future__ import annotations

import argparse
import importlib
import logging
import sys
from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from reviewflow.core.exceptions import ReviewflowError

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def discover_domains() -> Dict[str, Path]:
    """
    Discover all CLI domain subfolders (workflow, review, config).

    Returns:
        Dict mapping domain name to directory path
    """
    cli_dir = Path(__file__).parent
    domains = {}
    for item in cli_dir.iterdir():
        if item.is_dir() and not item.name.startswith("_"):
            # Must have at least one non-init .py file
            has_commands = any(
                f.suffix == ".py" and not f.name.startswith("_")
                for f in item.iterdir()
            )
            if has_commands:
                domains[item.name] = item
    return domains


@lru_cache(maxsize=32)
def discover_commands(domain: str) -> Dict[str, Dict[str, Any]]:
    """
    Discover all commands in a domain subfolder.

    Args:
        domain: Name of the domain (e.g., "workflow", "review")

    Returns:
        Dict mapping command name to command info dict
    """
    domain_dir = Path(__file__).parent / domain
    commands: Dict[str, Dict[str, Any]] = {}

    for item in domain_dir.glob("*.py"):
        if item.name.startswith("_"):
            continue

        cmd_name = item.stem
        try:
            module = importlib.import_module(f"reviewflow.cli.{domain}.{cmd_name}")
        except ImportError as e:
            print(f"Warning: Could not import {domain}.{cmd_name}: {e}", file=sys.stderr)
            continue
        commands[cmd_name] = {
            "module": module,
            "summary": getattr(module, "SUMMARY", f"{domain} {cmd_name}"),
            "register_args": getattr(module, "register_args", None),
            "main": getattr(module, "main", None),
        }

    return commands


def build_parser() -> argparse.ArgumentParser:
    """
    Build the argument parser with auto-discovered domains and commands.

    Returns:
        Configured ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="reviewflow",
        description="Review workflow resolution and enforcement",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )
    parser.add_argument(
        "--log-level",
        help="Override logging.level from configuration (e.g. DEBUG)",
    )

    subparsers = parser.add_subparsers(
        dest="domain",
        title="domains",
        description="Available command domains",
        metavar="<domain>",
    )

    for domain_name in sorted(discover_domains().keys()):
        domain_commands = discover_commands(domain_name)
        if not domain_commands:
            continue

        domain_parser = subparsers.add_parser(
            domain_name,
            help=f"{domain_name.title()} commands",
        )
        cmd_subparsers = domain_parser.add_subparsers(
            dest="command",
            title="commands",
            description=f"Available {domain_name} commands",
            metavar="<command>",
        )

        for cmd_name, cmd_info in sorted(domain_commands.items()):
            primary_name = cmd_name.replace("_", "-")
            aliases = [cmd_name] if primary_name != cmd_name else []
            cmd_parser = cmd_subparsers.add_parser(
                primary_name,
                aliases=aliases,
                help=cmd_info["summary"],
            )

            # Let module register its own arguments
            if cmd_info["register_args"]:
                cmd_info["register_args"](cmd_parser)

            if cmd_info["main"]:
                cmd_parser.set_defaults(_func=cmd_info["main"])

    return parser


def _get_version() -> str:
    from reviewflow import __version__

    return __version__


def _setup_logging(args: argparse.Namespace) -> None:
    """Configure logging from the ``logging`` section, falling back to defaults."""
    from reviewflow.cli._utils import get_repo_root
    from reviewflow.core.config import LoggingConfig
    from reviewflow.core.logging_setup import configure_logging, suppress_lastresort_in_json_mode

    level: str = "INFO"
    log_path: Optional[Path] = None
    try:
        cfg = LoggingConfig(repo_root=get_repo_root(args))
        level, log_path = cfg.level, cfg.path
    except ReviewflowError as e:
        print(f"Warning: using default logging settings: {e}", file=sys.stderr)
    if getattr(args, "log_level", None):
        level = args.log_level
    elif getattr(args, "json", False) and log_path is None:
        # JSON mode keeps stderr quiet unless logging was asked for.
        suppress_lastresort_in_json_mode()
        return
    configure_logging(level, log_path)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the reviewflow CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = build_parser()
    args = parser.parse_args(argv)

    # If no domain specified, show help
    if not args.domain:
        parser.print_help()
        return 0

    func: Optional[Callable[[argparse.Namespace], int]] = getattr(args, "_func", None)
    if func is None:
        domain_parser = parser._subparsers._group_actions[0].choices.get(args.domain)  # type: ignore[union-attr]
        if domain_parser:
            domain_parser.print_help()
        return 0

    _setup_logging(args)
    logger.debug("Running %s %s", args.domain, args.command)

    try:
        return func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
