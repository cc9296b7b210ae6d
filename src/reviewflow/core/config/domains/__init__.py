"""Domain-specific configuration accessors.

Available domain configs:
- WorkflowConfig: feature switch and global workflow seed rules
- ReviewsConfig: review end states and description keyword patterns
- LockingConfig: change lock timeouts and lock directory
- LoggingConfig: stdlib logging level and optional log file

Usage:
    from reviewflow.core.config.domains import WorkflowConfig

    workflow = WorkflowConfig(repo_root=Path("/path/to/project"))
    if workflow.enabled:
        ...
"""
from __future__ import annotations

from .locking import LockingConfig
from .logging import LoggingConfig
from .reviews import ReviewsConfig
from .workflow import WorkflowConfig

__all__ = [
    "WorkflowConfig",
    "ReviewsConfig",
    "LockingConfig",
    "LoggingConfig",
]
