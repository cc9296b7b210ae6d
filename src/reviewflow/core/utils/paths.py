"""Project root and project config directory resolution.

Resolution priority:
1. ``REVIEWFLOW_PROJECT_ROOT`` environment variable
2. Nearest ancestor of the working directory holding a ``.reviewflow`` directory
3. Git repository root via ``git rev-parse --show-toplevel``
4. The working directory itself
"""
from __future__ import annotations

import os
import subprocess
from pathlib import Path

from reviewflow.core.exceptions import ReviewflowError

PROJECT_CONFIG_DIR_NAME = ".reviewflow"
PROJECT_ROOT_ENV = "REVIEWFLOW_PROJECT_ROOT"


class ProjectRootError(ReviewflowError):
    """Raised when the project root resolves to an unusable location."""


def resolve_project_root() -> Path:
    """Resolve the project root for configuration lookups."""
    env_root = os.environ.get(PROJECT_ROOT_ENV)
    if env_root:
        env_path = Path(env_root).expanduser().resolve()
        if not env_path.exists():
            raise ProjectRootError(f"{PROJECT_ROOT_ENV} points at missing path: {env_path}")
        if env_path.name == PROJECT_CONFIG_DIR_NAME:
            raise ProjectRootError(
                f"{PROJECT_ROOT_ENV} points to {PROJECT_CONFIG_DIR_NAME} directory: {env_path}. "
                "This is invalid - must point to project root."
            )
        return env_path

    cwd = Path.cwd().resolve()
    for candidate in (cwd, *cwd.parents):
        if candidate.name == PROJECT_CONFIG_DIR_NAME:
            continue
        if (candidate / PROJECT_CONFIG_DIR_NAME).is_dir():
            return candidate

    try:
        result = subprocess.run(
            ["git", "rev-parse", "--show-toplevel"],
            cwd=str(cwd),
            text=True,
            capture_output=True,
            check=True,
            timeout=5,
        )
    except (FileNotFoundError, subprocess.CalledProcessError, subprocess.TimeoutExpired):
        return cwd

    top = result.stdout.strip()
    return Path(top).resolve() if top else cwd


def get_project_config_dir(repo_root: Path) -> Path:
    """Return ``<repo_root>/.reviewflow`` without creating it."""
    return Path(repo_root) / PROJECT_CONFIG_DIR_NAME


__all__ = [
    "PROJECT_CONFIG_DIR_NAME",
    "PROJECT_ROOT_ENV",
    "ProjectRootError",
    "resolve_project_root",
    "get_project_config_dir",
]
