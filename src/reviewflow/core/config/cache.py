"""Centralized configuration caching.

Provides a single source of truth for loaded configuration across all domain
configs. Domain configs use this module's caching instead of their own.
"""
from __future__ import annotations

import hashlib
import os
from pathlib import Path
from typing import Any, Dict, Optional

from reviewflow.core.utils.io import iter_yaml_files
from reviewflow.core.utils.paths import get_project_config_dir, resolve_project_root

_config_cache: Dict[str, Dict[str, Any]] = {}


def _normalize_repo_root(repo_root: Optional[Path]) -> Path:
    if repo_root is None:
        return resolve_project_root()
    return Path(repo_root).expanduser().resolve()


def _fingerprint_dir(d: Path) -> list[tuple[str, int, int]]:
    files: list[tuple[str, int, int]] = []
    for p in iter_yaml_files(d):
        try:
            st = p.stat()
        except OSError:
            files.append((p.name, 0, 0))
            continue
        files.append((p.name, int(st.st_mtime_ns), int(st.st_size)))
    return files


def _cache_key(repo_root: Optional[Path]) -> str:
    """Cache key from repo root, REVIEWFLOW_* environment and project config mtimes."""
    base = _normalize_repo_root(repo_root)

    env_items = sorted(
        (k, os.environ.get(k, ""))
        for k in os.environ.keys()
        if k.startswith("REVIEWFLOW_")
    )
    env_fp = hashlib.sha256(repr(env_items).encode("utf-8")).hexdigest()[:12]

    project_root_dir = get_project_config_dir(base)
    cfg_files = {
        "project": _fingerprint_dir(project_root_dir / "config"),
        "project_local": _fingerprint_dir(project_root_dir / "config.local"),
    }
    cfg_fp = hashlib.sha256(repr(cfg_files).encode("utf-8")).hexdigest()[:12]

    return f"{base}:env={env_fp}:cfg={cfg_fp}"


def get_cached_config(repo_root: Optional[Path] = None, validate: bool = False) -> Dict[str, Any]:
    """Get configuration with caching.

    Returns the same config dict instance for the same repo root, environment
    and project config files, avoiding repeated file I/O.
    """
    normalized_root = _normalize_repo_root(repo_root)
    key = _cache_key(normalized_root)

    if key not in _config_cache:
        from .manager import ConfigManager

        manager = ConfigManager(repo_root=normalized_root)
        _config_cache[key] = manager._load_config_uncached(validate=validate)

    # NOTE: returns the cached dict instance (treat as immutable)
    return _config_cache[key]


def clear_all_caches() -> None:
    """Clear the config dict cache."""
    _config_cache.clear()


def is_cached(repo_root: Optional[Path] = None) -> bool:
    """Check if config for repo_root is cached."""
    return _cache_key(repo_root) in _config_cache


__all__ = [
    "get_cached_config",
    "clear_all_caches",
    "is_cached",
]
