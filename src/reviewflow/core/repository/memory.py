"""In-memory record store implementing every collaborator protocol.

Used by the command line (loaded from a YAML record file) and by tests. All
mutations are guarded by one re-entrant lock so a store can be shared by
threads holding different change locks.
"""
from __future__ import annotations

import logging
import re
import threading
from typing import Any, Dict, Iterable, List, Mapping, Optional

from reviewflow.core.exceptions import (
    ChangeNotFoundError,
    GroupNotFoundError,
    InvalidChangeIdError,
    ProjectNotFoundError,
    ReviewNotFoundError,
    WorkflowNotFoundError,
)
from reviewflow.core.workflow.models import (
    REVIEW_STATE_NEEDS_REVIEW,
    AffectedProjects,
    Change,
    Project,
    Review,
    TestRun,
    Workflow,
)

logger = logging.getLogger(__name__)

_CHANGE_ID_RE = re.compile(r"^[1-9][0-9]*$")


def _copy_affected(affected: Optional[Mapping[str, Iterable[str]]]) -> AffectedProjects:
    return {str(pid): [str(b) for b in (branches or [])] for pid, branches in (affected or {}).items()}


class MemoryRecordStore:
    """Dictionary backed workflows, projects, changes, reviews and test runs."""

    def __init__(
        self,
        *,
        workflows: Iterable[Workflow] = (),
        projects: Iterable[Project] = (),
        changes: Iterable[Change] = (),
        reviews: Iterable[Review] = (),
        test_runs: Iterable[TestRun] = (),
        groups: Optional[Mapping[str, Iterable[str]]] = None,
        affected: Optional[Mapping[str, Mapping[str, Iterable[str]]]] = None,
        affected_submitted: Optional[Mapping[str, Mapping[str, Iterable[str]]]] = None,
        content_changed: Iterable[str] = (),
    ) -> None:
        self._lock = threading.RLock()
        self.workflows: Dict[str, Workflow] = {w.id: w for w in workflows}
        self.projects: Dict[str, Project] = {p.id: p for p in projects}
        self.changes: Dict[str, Change] = {c.id: c for c in changes}
        self.reviews: Dict[str, Review] = {r.id: r for r in reviews}
        self.test_runs: Dict[str, TestRun] = {t.id: t for t in test_runs}
        self.groups: Dict[str, List[str]] = {str(g): [str(u) for u in members] for g, members in (groups or {}).items()}
        self.affected: Dict[str, AffectedProjects] = {
            str(cid): _copy_affected(a) for cid, a in (affected or {}).items()
        }
        self.affected_submitted: Dict[str, AffectedProjects] = {
            str(cid): _copy_affected(a) for cid, a in (affected_submitted or {}).items()
        }
        self.content_changed = {str(c) for c in content_changed}
        # Set by every write so callers know to persist the store.
        self.modified = False

    # ----- changes -----

    def fetch_change(self, change_id: Any) -> Change:
        raw = "" if change_id is None else str(change_id).strip()
        if not _CHANGE_ID_RE.match(raw):
            raise InvalidChangeIdError(context={"id": raw})
        with self._lock:
            change = self.changes.get(raw)
        if change is None:
            raise ChangeNotFoundError(record_id=raw)
        return change

    # ----- projects -----

    def fetch_project(self, project_id: str) -> Project:
        with self._lock:
            project = self.projects.get(str(project_id))
        if project is None:
            raise ProjectNotFoundError(record_id=project_id)
        return project

    # ----- workflows -----

    def fetch_workflow(self, workflow_id: str) -> Workflow:
        with self._lock:
            workflow = self.workflows.get(str(workflow_id))
        if workflow is None:
            raise WorkflowNotFoundError(record_id=workflow_id)
        return workflow

    def fetch_workflows(self, workflow_ids: Iterable[str]) -> List[Workflow]:
        out: List[Workflow] = []
        with self._lock:
            for wid in dict.fromkeys(str(w) for w in workflow_ids):
                workflow = self.workflows.get(wid)
                if workflow is not None:
                    out.append(workflow)
        return out

    def exists(self, workflow_id: str) -> bool:
        with self._lock:
            return str(workflow_id) in self.workflows

    def save(self, workflow: Workflow) -> Workflow:
        with self._lock:
            self.workflows[workflow.id] = workflow
            self.modified = True
        logger.debug("Saved workflow %s", workflow.id)
        return workflow

    # ----- reviews -----

    def find_by_change(self, change_id: str) -> Optional[Review]:
        cid = str(change_id)
        with self._lock:
            for review in self.reviews.values():
                if cid in review.changes:
                    return review
        return None

    def fetch_review(self, review_id: str) -> Review:
        with self._lock:
            review = self.reviews.get(str(review_id))
        if review is None:
            raise ReviewNotFoundError(record_id=review_id)
        return review

    def _next_id(self) -> str:
        numeric = [int(i) for i in (*self.reviews, *self.changes) if i.isdigit()]
        return str(max(numeric, default=0) + 1)

    def create_from_change(self, change: Change) -> Review:
        with self._lock:
            affected = self.affected.get(change.id) or self.affected_submitted.get(change.id) or {}
            review = Review(
                id=self._next_id(),
                state=REVIEW_STATE_NEEDS_REVIEW,
                changes=(change.id,),
                head_change=change.id,
                projects={pid: tuple(branches) for pid, branches in affected.items()},
            )
            self.reviews[review.id] = review
            self.modified = True
        logger.info("Created review %s from change %s", review.id, change.id)
        return review

    # ----- groups -----

    def is_member(self, user_id: str, group_id: str) -> bool:
        with self._lock:
            members = self.groups.get(str(group_id))
        if members is None:
            raise GroupNotFoundError(record_id=group_id)
        return str(user_id) in members

    # ----- affected projects -----

    def find_affected_projects(self, change: Change, *, submitted: bool = False) -> AffectedProjects:
        source = self.affected_submitted if submitted else self.affected
        with self._lock:
            return _copy_affected(source.get(change.id))

    # ----- content -----

    def has_content_changed(self, review: Review, change_id: str) -> bool:
        return str(change_id) in self.content_changed

    # ----- test runs -----

    def fetch_test_runs(self, test_run_ids: Iterable[str]) -> List[TestRun]:
        with self._lock:
            return [self.test_runs[t] for t in (str(i) for i in test_run_ids) if t in self.test_runs]

    # ----- export -----

    def to_records(self) -> Dict[str, Any]:
        """Record-file mapping accepted by ``build_record_store``."""
        with self._lock:
            return {
                "workflows": [w.to_dict() for w in self.workflows.values()],
                "projects": [p.to_dict() for p in self.projects.values()],
                "changes": [c.to_dict() for c in self.changes.values()],
                "reviews": [r.to_dict() for r in self.reviews.values()],
                "testRuns": [t.to_dict() for t in self.test_runs.values()],
                "groups": {g: list(members) for g, members in self.groups.items()},
                "affected": {cid: _copy_affected(a) for cid, a in self.affected.items()},
                "affectedSubmitted": {cid: _copy_affected(a) for cid, a in self.affected_submitted.items()},
                "contentChanged": sorted(self.content_changed),
            }


__all__ = ["MemoryRecordStore"]
