"""Domain-specific configuration for the workflow feature.

Exposes the feature switch and the seed values for the global workflow
record (rules with their ``default``/``policy`` modes).
"""
from __future__ import annotations

import copy
from functools import cached_property
from typing import Any, Dict

from ..base import BaseDomainConfig


class WorkflowConfig(BaseDomainConfig):
    """Accessor for the ``workflow`` configuration section."""

    def _config_section(self) -> str:
        return "workflow"

    @cached_property
    def enabled(self) -> bool:
        return bool(self.section.get("enabled", True))

    @cached_property
    def global_workflow_name(self) -> str:
        return str(self.section.get("globalWorkflowName") or "Global Workflow")

    @cached_property
    def case_sensitive_users(self) -> bool:
        return bool(self.section.get("caseSensitiveUsers", True))

    @cached_property
    def rules(self) -> Dict[str, Any]:
        """Global workflow seed in record shape (``on_submit``, ``end_rules``, ...).

        Returns a deep copy so callers may build records from it freely.
        """
        raw = self.section.get("rules") or {}
        if not isinstance(raw, dict):
            raise RuntimeError("workflow.rules must be a mapping")
        return copy.deepcopy(raw)


__all__ = ["WorkflowConfig"]
