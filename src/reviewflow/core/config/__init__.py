"""reviewflow configuration system.

Usage:
    from reviewflow.core.config import ConfigManager
    from reviewflow.core.config.domains import WorkflowConfig

    manager = ConfigManager(repo_root=Path("/path/to/project"))
    config = manager.load_config()

    workflow = WorkflowConfig(repo_root=Path("/path/to/project"))
    enabled = workflow.enabled
"""
from __future__ import annotations

from .base import BaseDomainConfig
from .cache import clear_all_caches, get_cached_config, is_cached
from .domains import LockingConfig, LoggingConfig, ReviewsConfig, WorkflowConfig
from .manager import ConfigManager

__all__ = [
    "ConfigManager",
    "BaseDomainConfig",
    "get_cached_config",
    "clear_all_caches",
    "is_cached",
    "WorkflowConfig",
    "ReviewsConfig",
    "LockingConfig",
    "LoggingConfig",
]
