"""Builders for workflow records used across tests."""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from reviewflow.core.workflow import (
    Change,
    Project,
    Review,
    Workflow,
    WorkflowManager,
    WorkflowServices,
)
from reviewflow.core.config import ReviewsConfig, WorkflowConfig
from reviewflow.core.repository import MemoryRecordStore


def _rule(value: Any, mode: Optional[str]) -> Dict[str, Any]:
    node: Dict[str, Any] = {"rule": value}
    if mode:
        node["mode"] = mode
    return node


def workflow(
    workflow_id: str,
    *,
    with_review: Optional[str] = None,
    without_review: Optional[str] = None,
    end_rule: Optional[str] = None,
    auto_approve: Optional[str] = None,
    counted_votes: Optional[str] = None,
    group_exclusions: Optional[List[str]] = None,
    user_exclusions: Optional[List[str]] = None,
    mode: Optional[str] = None,
    list_mode: Optional[str] = None,
    tests: Optional[List[Dict[str, Any]]] = None,
) -> Workflow:
    """Workflow record with only the given fields declared."""
    data: Dict[str, Any] = {"id": workflow_id, "name": f"Workflow {workflow_id}"}
    on_submit: Dict[str, Any] = {}
    if with_review is not None:
        on_submit["with_review"] = _rule(with_review, mode)
    if without_review is not None:
        on_submit["without_review"] = _rule(without_review, mode)
    if on_submit:
        data["on_submit"] = on_submit
    if end_rule is not None:
        data["end_rules"] = {"update": _rule(end_rule, mode)}
    if auto_approve is not None:
        data["auto_approve"] = _rule(auto_approve, mode)
    if counted_votes is not None:
        data["counted_votes"] = _rule(counted_votes, mode)
    if group_exclusions is not None:
        data["group_exclusions"] = _rule(group_exclusions, list_mode)
    if user_exclusions is not None:
        data["user_exclusions"] = _rule(user_exclusions, list_mode)
    if tests:
        data["tests"] = tests
    return Workflow.from_dict(data)


def permissive_global(**overrides: Any) -> Workflow:
    """Global workflow with the bundled default values unless overridden."""
    fields: Dict[str, Any] = {
        "with_review": "no_checking",
        "without_review": "no_checking",
        "end_rule": "no_checking",
        "auto_approve": "never",
        "counted_votes": "anyone",
        "group_exclusions": [],
        "user_exclusions": [],
        "list_mode": "policy",
    }
    fields.update(overrides)
    return workflow("0", **fields)


def project(project_id: str, workflow_id: Optional[str] = None, branches: Iterable[Any] = ()) -> Project:
    """``branches`` items are ``"id"`` or ``("id", workflow_id)``."""
    data: Dict[str, Any] = {"id": project_id, "workflow": workflow_id, "branches": []}
    for branch in branches:
        if isinstance(branch, tuple):
            data["branches"].append({"id": branch[0], "workflow": branch[1]})
        else:
            data["branches"].append({"id": branch})
    return Project.from_dict(data)


def change(change_id: str, description: str = "", user: Optional[str] = None) -> Change:
    return Change(id=change_id, description=description, user=user)


def review(review_id: str, state: str = "needsReview", **fields: Any) -> Review:
    data: Dict[str, Any] = {"id": review_id, "state": state}
    data.update(fields)
    return Review.from_dict(data)


def make_manager(
    store: MemoryRecordStore,
    config: Dict[str, Any],
    *,
    end_states: Optional[List[str]] = None,
    enabled: bool = True,
    case_sensitive_users: bool = True,
    consume_disabled: bool = True,
) -> WorkflowManager:
    """Manager over ``store`` with the given configuration tweaks applied to ``config``."""
    config["workflow"]["enabled"] = enabled
    config["workflow"]["caseSensitiveUsers"] = case_sensitive_users
    if end_states is not None:
        config["reviews"]["endStates"] = list(end_states)
    return WorkflowManager(
        WorkflowServices.from_store(store),
        workflow_config=WorkflowConfig(config=config),
        reviews_config=ReviewsConfig(config=config),
        consume_disabled=consume_disabled,
    )
