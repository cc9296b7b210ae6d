"""Shared CLI utilities."""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional, Tuple

import yaml

from reviewflow.core.config import LockingConfig, get_cached_config
from reviewflow.core.exceptions import ReviewflowError
from reviewflow.core.repository import MemoryRecordStore, load_record_file, save_record_file
from reviewflow.core.repository.protocols import ChangeLock
from reviewflow.core.utils.paths import resolve_project_root
from reviewflow.core.workflow import FileChangeLock, WorkflowManager, WorkflowServices


# Failures a command reports instead of raising.
COMMAND_ERRORS = (ReviewflowError, OSError, ValueError, yaml.YAMLError)


def get_repo_root(args: argparse.Namespace) -> Path:
    """Get repository root from args or auto-detect."""
    if getattr(args, "repo_root", None):
        return Path(args.repo_root).resolve()
    return resolve_project_root()


def load_store(args: argparse.Namespace) -> MemoryRecordStore:
    """Load the record file named by ``--records``."""
    return load_record_file(Path(args.records))


def save_store(args: argparse.Namespace, store: MemoryRecordStore) -> bool:
    """Write ``store`` back to ``--records`` when a gate changed it. Returns True if written."""
    if not store.modified:
        return False
    save_record_file(store, Path(args.records))
    return True


def build_lock(args: argparse.Namespace) -> FileChangeLock:
    """File change lock configured from the ``locking`` section."""
    repo_root = get_repo_root(args)
    return FileChangeLock.from_config(LockingConfig(repo_root, config=get_cached_config(repo_root)))


def build_manager(
    args: argparse.Namespace, *, lock: Optional[ChangeLock] = None
) -> Tuple[WorkflowManager, MemoryRecordStore]:
    """Workflow manager over the ``--records`` file, configured for the repo root."""
    repo_root = get_repo_root(args)
    config = get_cached_config(repo_root)
    store = load_store(args)
    manager = WorkflowManager(
        WorkflowServices.from_store(store, lock=lock),
        config=config,
        repo_root=repo_root,
    )
    return manager, store


__all__ = ["COMMAND_ERRORS", "get_repo_root", "load_store", "save_store", "build_lock", "build_manager"]
