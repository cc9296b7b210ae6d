"""Workflow feature guard and the per-manager global workflow cache."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from reviewflow.core.config.domains.workflow import WorkflowConfig
from reviewflow.core.exceptions import WorkflowDisabledError

from .models import GLOBAL_WORKFLOW_ID, Workflow

if TYPE_CHECKING:
    from reviewflow.core.repository.protocols import WorkflowRepository

logger = logging.getLogger(__name__)


class WorkflowChecker:
    """Check that workflows are enabled and that the global workflow exists.

    The first successful check imports the global workflow from the
    ``workflow.rules`` configuration when no record exists yet.
    """

    def __init__(self, workflows: "WorkflowRepository", config: WorkflowConfig) -> None:
        self.workflows = workflows
        self.config = config

    def check(self, *, raise_on_disabled: bool = True) -> bool:
        """Return True when enabled.

        Raises:
            WorkflowDisabledError: when disabled and ``raise_on_disabled`` is set.
        """
        if not self.config.enabled:
            if raise_on_disabled:
                raise WorkflowDisabledError()
            return False
        self.ensure_global_workflow()
        return True

    def ensure_global_workflow(self) -> Optional[Workflow]:
        """Import the global workflow from configuration when missing.

        Returns the imported workflow, or None when a record already exists.
        """
        if self.workflows.exists(GLOBAL_WORKFLOW_ID):
            return None
        record = dict(self.config.rules)
        record.update(
            {
                "id": GLOBAL_WORKFLOW_ID,
                "name": self.config.global_workflow_name,
                "description": "Global workflow imported from configuration",
                "shared": True,
            }
        )
        workflow = self.workflows.save(Workflow.from_dict(record))
        logger.info("Imported global workflow [%s] from configuration", workflow.name)
        return workflow


class GlobalWorkflowCache:
    """Holds the global workflow for one manager instance.

    Fetched on first use and kept until :meth:`invalidate`; a concurrent edit
    is not seen by an instance that already fetched it.
    """

    def __init__(self, workflows: "WorkflowRepository") -> None:
        self.workflows = workflows
        self._workflow: Optional[Workflow] = None

    @property
    def loaded(self) -> bool:
        return self._workflow is not None

    def get(self) -> Workflow:
        """Raises WorkflowNotFoundError if no global workflow record exists."""
        if self._workflow is None:
            self._workflow = self.workflows.fetch_workflow(GLOBAL_WORKFLOW_ID)
        return self._workflow

    def invalidate(self) -> None:
        self._workflow = None


__all__ = ["WorkflowChecker", "GlobalWorkflowCache"]
