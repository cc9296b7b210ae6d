"""
reviewflow CLI package.

Commands are discovered from the domain subfolders (workflow/, review/,
config/). Each command module defines ``SUMMARY``, ``register_args(parser)``
and ``main(args) -> int``.
"""
from ._args import (
    add_json_flag,
    add_project_arg,
    add_records_arg,
    add_repo_root_flag,
    add_standard_flags,
    parse_project_branches,
)
from ._output import OutputFormatter
from ._utils import COMMAND_ERRORS, build_lock, build_manager, get_repo_root, load_store, save_store

__all__ = [
    "OutputFormatter",
    "add_json_flag",
    "add_repo_root_flag",
    "add_records_arg",
    "add_project_arg",
    "add_standard_flags",
    "parse_project_branches",
    "COMMAND_ERRORS",
    "get_repo_root",
    "load_store",
    "save_store",
    "build_lock",
    "build_manager",
]
