"""Domain-specific configuration for advisory change locks."""
from __future__ import annotations

from functools import cached_property
from pathlib import Path

from ..base import BaseDomainConfig


class LockingConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "locking"

    @cached_property
    def timeout_seconds(self) -> float:
        return float(self.section.get("timeoutSeconds", 30))

    @cached_property
    def poll_interval_seconds(self) -> float:
        return float(self.section.get("pollIntervalSeconds", 0.1))

    @cached_property
    def directory(self) -> Path:
        """Lock directory, resolved against the repository root when relative."""
        raw = self.section.get("directory") or ".reviewflow/_locks"
        path = Path(str(raw)).expanduser()
        if path.is_absolute():
            return path
        return self.repo_root / path


__all__ = ["LockingConfig"]
