"""YAML file helpers shared by configuration and record loading."""
from __future__ import annotations

import fcntl
import os
import tempfile
from pathlib import Path
from typing import Any, Callable, Optional, TextIO

import yaml

from reviewflow.core.utils.merge import deep_merge


def ensure_directory(path: Path) -> Path:
    """Create ``path`` (and parents) if missing and return it."""
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p


def read_yaml(path: Path, default: Any = None, raise_on_error: bool = False) -> Any:
    """Read YAML with error handling.

    Returns default if file is missing or invalid, unless raise_on_error is True.

    Args:
        path: YAML file path to read
        default: Value to return if file missing or invalid (default: None)
        raise_on_error: If True, propagate exceptions instead of returning default.

    Returns:
        Any: Parsed YAML data, or default if error
    """
    path = Path(path)
    if not path.exists():
        if raise_on_error:
            raise FileNotFoundError(f"File not found: {path}")
        return default

    try:
        with open(path, "r", encoding="utf-8") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_SH)
            try:
                data = yaml.safe_load(f)
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        return data if data is not None else default
    except (OSError, yaml.YAMLError):
        if raise_on_error:
            raise
        return default


def atomic_write(path: Path, write_fn: Callable[[TextIO], None], *, encoding: str = "utf-8") -> None:
    """Write ``path`` through a temp file in the same directory, then replace it.

    Readers holding the old file keep a complete copy; the temp file is
    removed if writing fails.
    """
    path = Path(path)
    ensure_directory(path.parent)

    tmp_path: Optional[Path] = None
    try:
        with tempfile.NamedTemporaryFile("w", encoding=encoding, dir=str(path.parent), delete=False) as f:
            tmp_path = Path(f.name)
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            write_fn(f)
            f.flush()
            os.fsync(f.fileno())
            fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        os.replace(str(tmp_path), str(path))
    finally:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()


def write_yaml(path: Path, data: Any) -> None:
    """Atomically write ``data`` as block-style YAML, keys in insertion order."""

    def _writer(f: TextIO) -> None:
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False, allow_unicode=True)

    atomic_write(Path(path), _writer)


def iter_yaml_files(dir_path: Path) -> list[Path]:
    """Return YAML files in ``dir_path`` in deterministic order.

    When both ``<name>.yaml`` and ``<name>.yml`` exist only the ``.yaml`` path
    is returned.
    """
    d = Path(dir_path)
    if not d.exists():
        return []
    yml_files = {p.stem: p for p in d.glob("*.yml")}
    yaml_files = {p.stem: p for p in d.glob("*.yaml")}

    out: list[Path] = []
    for stem in sorted(set(yml_files) | set(yaml_files)):
        preferred = yaml_files.get(stem) or yml_files.get(stem)
        if preferred is not None:
            out.append(preferred)
    return out


def merge_yaml_directory(base: dict[str, Any], directory: Path) -> dict[str, Any]:
    """Merge all YAML files from ``directory`` into ``base``.

    Files are merged in deterministic order. Missing directories are ignored.
    Invalid YAML raises.
    """
    d = Path(directory)
    if not d.exists():
        return base

    cfg: dict[str, Any] = dict(base)
    for path in iter_yaml_files(d):
        module_cfg = read_yaml(path, default={}, raise_on_error=True) or {}
        cfg = deep_merge(cfg, module_cfg)
    return cfg


__all__ = [
    "ensure_directory",
    "read_yaml",
    "atomic_write",
    "write_yaml",
    "iter_yaml_files",
    "merge_yaml_directory",
]
