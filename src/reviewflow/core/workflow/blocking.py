"""Queries over the tests attached to workflows.

A workflow test may block a review state (``blocks: approved``). A review is
blocked from entering that state while any of its runs for such a test has
not passed.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Set

from .models import GLOBAL_WORKFLOW_ID, TEST_RUN_PASS, AffectedProjects, Review

if TYPE_CHECKING:
    from reviewflow.core.repository.protocols import TestRunRepository

    from .resolver import WorkflowResolver

logger = logging.getLogger(__name__)


class BlockingTestQuery:
    def __init__(self, resolver: "WorkflowResolver", test_runs: "TestRunRepository") -> None:
        self.resolver = resolver
        self.test_runs = test_runs

    def _tests_by(self, workflow_ids: Iterable[str], field: str, values: Optional[Iterable[str]] = None) -> Dict[str, List[str]]:
        """Group test ids of the given workflows by ``field`` (``event`` or ``blocks``)."""
        grouped: Dict[str, List[str]] = {}
        for workflow in self.resolver.fetch_workflows(list(dict.fromkeys(str(w) for w in workflow_ids))):
            for test in workflow.tests:
                key = test.event.value if field == "event" else test.blocks
                bucket = grouped.setdefault(key, [])
                if test.id not in bucket:
                    bucket.append(test.id)
        if values:
            wanted = set(values)
            grouped = {k: v for k, v in grouped.items() if k in wanted}
        return grouped

    def get_tests_for_workflows(
        self, workflow_ids: Iterable[str], events: Optional[Iterable[str]] = None
    ) -> Dict[str, List[str]]:
        """Map of event (``onSubmit``/``onUpdate``/``onDemand``) to test ids."""
        return self._tests_by(workflow_ids, "event", events)

    def get_blocking_tests_by_state(
        self, workflow_ids: Iterable[str], states: Optional[Iterable[str]] = None
    ) -> Dict[str, List[str]]:
        """Map of blocked state to test ids."""
        return self._tests_by(workflow_ids, "blocks", states)

    def workflow_ids(self, affected: AffectedProjects) -> List[str]:
        """Workflows for the affected projects, plus the global workflow."""
        ids = self.resolver.workflow_ids_for_affected(affected)
        ids.append(GLOBAL_WORKFLOW_ID)
        return list(dict.fromkeys(ids))

    def get_blocking_tests(self, review: Review, affected: AffectedProjects, target_state: str) -> Set[str]:
        """Ids of blocking tests for ``target_state`` whose runs on ``review`` have not passed."""
        tests = self.get_blocking_tests_by_state(self.workflow_ids(affected), [target_state])
        test_ids = tests.get(target_state, [])
        if not test_ids:
            logger.debug("No tests found blocking state [%s] for review id [%s]", target_state, review.id)
            return set()

        logger.debug(
            "Tests with ids [%s] block state [%s] for review id [%s]",
            ", ".join(test_ids),
            target_state,
            review.id,
        )
        blocking: Set[str] = set()
        for run in self.test_runs.fetch_test_runs(review.test_runs):
            if run.status != TEST_RUN_PASS and run.test in test_ids:
                logger.debug(
                    "Test run with id [%s], test [%s], and status [%s] is blocking",
                    run.id,
                    run.test,
                    run.status,
                )
                blocking.add(run.test)
        return blocking

    def is_blocked_by_tests(self, review: Review, affected: AffectedProjects, target_state: str) -> bool:
        return bool(self.get_blocking_tests(review, affected, target_state))


__all__ = ["BlockingTestQuery"]
