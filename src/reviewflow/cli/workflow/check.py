"""
reviewflow workflow check command.

SUMMARY: Run a submit, commit or shelve gate for a change

The record file is read, gated and (when the gate created a review) written
back while the change lock is held. Exit code is 0 when the change may proceed
and 2 when the workflow refuses it.
"""
from __future__ import annotations

import argparse

from reviewflow.cli import (
    COMMAND_ERRORS,
    OutputFormatter,
    add_records_arg,
    add_standard_flags,
    build_lock,
    build_manager,
    save_store,
)

SUMMARY = "Run a submit, commit or shelve gate for a change"

GATES = ("strict", "enforced", "shelve")


def register_args(parser: argparse.ArgumentParser) -> None:
    """Register command-specific arguments."""
    parser.add_argument("gate", choices=GATES, help="strict (commit), enforced (submit) or shelve")
    parser.add_argument("change_id", help="Change id")
    parser.add_argument("--user", help="User performing the operation")
    add_records_arg(parser)
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        with build_lock(args).acquire(str(args.change_id)):
            manager, store = build_manager(args)
            gate = getattr(manager, f"check_{args.gate}")
            result = gate(args.change_id, args.user)
            saved = save_store(args, store)
    except COMMAND_ERRORS as e:
        formatter.error(e, error_code="check_error")
        return 1

    text = result.status.value
    if result.messages:
        text = f"{text}: {'; '.join(result.messages)}"
    formatter.success(
        {
            "change": str(args.change_id),
            "gate": args.gate,
            "result": result.status.value,
            "messages": list(result.messages),
            "saved": saved,
        },
        text,
        status="ok" if result.ok else "refused",
    )
    return 0 if result.ok else 2
