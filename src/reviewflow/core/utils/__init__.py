"""Shared helpers for reviewflow core modules."""
from __future__ import annotations

from .io import atomic_write, ensure_directory, iter_yaml_files, merge_yaml_directory, read_yaml, write_yaml
from .merge import deep_merge, merge_arrays
from .paths import get_project_config_dir, resolve_project_root

__all__ = [
    "deep_merge",
    "merge_arrays",
    "ensure_directory",
    "iter_yaml_files",
    "merge_yaml_directory",
    "read_yaml",
    "write_yaml",
    "atomic_write",
    "get_project_config_dir",
    "resolve_project_root",
]
