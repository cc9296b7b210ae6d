"""Workflow domain models.

Workflows carry seven policy fields. Each field holds a :class:`RuleValue`
(a rule token plus its ``default``/``policy`` mode). Records are read from and
written to the nested mapping shape used by record files::

    on_submit:
      with_review: {rule: strict, mode: default}
      without_review: {rule: reject}
    end_rules:
      update: {rule: no_revision}
    auto_approve: {rule: never}
    counted_votes: {rule: members}
    group_exclusions: {rule: [admins]}
    user_exclusions: {rule: [bruno]}
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple, Type, Union

from reviewflow.core.exceptions import UnsupportedRuleError, WorkflowValidationError

GLOBAL_WORKFLOW_ID = "0"

# Mapping of project id to the branch ids of that project touched by a change.
AffectedProjects = Dict[str, list]


class RuleMode(str, Enum):
    DEFAULT = "default"
    POLICY = "policy"

    @classmethod
    def parse(cls, value: Any) -> "RuleMode":
        """Parse a record mode; missing and ``inherit`` read as ``default``."""
        if value is None or value == "" or value == "inherit":
            return cls.DEFAULT
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value))
        except ValueError:
            raise WorkflowValidationError(
                f"Unknown rule mode [{value}]", context={"mode": str(value)}
            ) from None


class RuleId(str, Enum):
    """Closed set of workflow policy fields."""

    WITH_REVIEW = "with_review"
    WITHOUT_REVIEW = "without_review"
    END_RULE_UPDATE = "end_rule_update"
    AUTO_APPROVE = "auto_approve"
    COUNTED_VOTES = "counted_votes"
    GROUP_EXCLUSIONS = "group_exclusions"
    USER_EXCLUSIONS = "user_exclusions"

    @classmethod
    def parse(cls, value: Any) -> "RuleId":
        """Parse a rule id. ``update`` is accepted for the end rule.

        Raises:
            UnsupportedRuleError: for anything outside the closed set.
        """
        if isinstance(value, cls):
            return value
        raw = str(value)
        if raw == "update":
            return cls.END_RULE_UPDATE
        try:
            return cls(raw)
        except ValueError:
            raise UnsupportedRuleError(value) from None

    @property
    def is_list(self) -> bool:
        return self in (RuleId.GROUP_EXCLUSIONS, RuleId.USER_EXCLUSIONS)


class WithReviewRule(str, Enum):
    NO_CHECKING = "no_checking"
    APPROVED = "approved"
    STRICT = "strict"


class WithoutReviewRule(str, Enum):
    NO_CHECKING = "no_checking"
    AUTO_CREATE = "auto_create"
    REJECT = "reject"


class EndRuleUpdate(str, Enum):
    NO_CHECKING = "no_checking"
    NO_REVISION = "no_revision"


class AutoApproveRule(str, Enum):
    VOTES = "votes"
    NEVER = "never"


class CountedVotesRule(str, Enum):
    ANYONE = "anyone"
    MEMBERS = "members"


RULE_TOKENS: Dict[RuleId, Type[Enum]] = {
    RuleId.WITH_REVIEW: WithReviewRule,
    RuleId.WITHOUT_REVIEW: WithoutReviewRule,
    RuleId.END_RULE_UPDATE: EndRuleUpdate,
    RuleId.AUTO_APPROVE: AutoApproveRule,
    RuleId.COUNTED_VOTES: CountedVotesRule,
}

# Location of each rule inside a workflow record.
RULE_PATHS: Dict[RuleId, Tuple[str, ...]] = {
    RuleId.WITH_REVIEW: ("on_submit", "with_review"),
    RuleId.WITHOUT_REVIEW: ("on_submit", "without_review"),
    RuleId.END_RULE_UPDATE: ("end_rules", "update"),
    RuleId.AUTO_APPROVE: ("auto_approve",),
    RuleId.COUNTED_VOTES: ("counted_votes",),
    RuleId.GROUP_EXCLUSIONS: ("group_exclusions",),
    RuleId.USER_EXCLUSIONS: ("user_exclusions",),
}

RuleToken = Union[Enum, Tuple[str, ...]]


def parse_rule_token(rule_id: RuleId, value: Any) -> RuleToken:
    """Convert a raw record value into the typed token for ``rule_id``."""
    if rule_id.is_list:
        if value is None:
            return ()
        if isinstance(value, str) or not isinstance(value, Sequence):
            raise WorkflowValidationError(
                f"Rule [{rule_id.value}] must be a list", context={"rule_id": rule_id.value}
            )
        return tuple(dict.fromkeys(str(v) for v in value))
    token_type = RULE_TOKENS[rule_id]
    try:
        return token_type(value)
    except ValueError:
        raise WorkflowValidationError(
            f"Unknown value [{value}] for rule [{rule_id.value}]",
            context={"rule_id": rule_id.value, "value": str(value)},
        ) from None


def token_value(token: Optional[RuleToken]) -> Any:
    """Plain (serializable) form of a rule token."""
    if token is None:
        return None
    if isinstance(token, Enum):
        return token.value
    return list(token)


@dataclass(frozen=True)
class RuleValue:
    """One policy field: its token and how the global workflow applies it."""

    rule: RuleToken
    mode: RuleMode = RuleMode.DEFAULT

    def to_dict(self) -> Dict[str, Any]:
        return {"rule": token_value(self.rule), "mode": self.mode.value}


class TestEvent(str, Enum):
    __test__ = False

    ON_SUBMIT = "onSubmit"
    ON_UPDATE = "onUpdate"
    ON_DEMAND = "onDemand"


BLOCKS_NOTHING = "nothing"


@dataclass(frozen=True)
class WorkflowTest:
    """A test definition attached to a workflow."""

    __test__ = False

    id: str
    event: TestEvent = TestEvent.ON_UPDATE
    blocks: str = BLOCKS_NOTHING

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "WorkflowTest":
        try:
            event = TestEvent(data.get("event") or TestEvent.ON_UPDATE.value)
        except ValueError:
            raise WorkflowValidationError(
                f"Unknown test event [{data.get('event')}]", context={"test": str(data.get("id"))}
            ) from None
        return cls(id=str(data["id"]), event=event, blocks=str(data.get("blocks") or BLOCKS_NOTHING))

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "event": self.event.value, "blocks": self.blocks}


@dataclass(frozen=True)
class Workflow:
    """A named bundle of policy rules.

    ``rules`` holds only the fields the record actually declares; a missing
    field on a non-global workflow expresses no opinion.
    """

    id: str
    name: str = ""
    description: str = ""
    owners: Tuple[str, ...] = ()
    shared: bool = False
    rules: Mapping[RuleId, RuleValue] = field(default_factory=dict)
    tests: Tuple[WorkflowTest, ...] = ()

    @property
    def is_global(self) -> bool:
        return self.id == GLOBAL_WORKFLOW_ID

    def rule(self, rule_id: RuleId) -> Optional[RuleValue]:
        return self.rules.get(RuleId.parse(rule_id))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Workflow":
        """Build a workflow from its record mapping.

        Raises:
            WorkflowValidationError: malformed record, unknown token, or a
                non-global workflow declaring ``policy`` mode.
        """
        if "id" not in data or data["id"] is None or str(data["id"]) == "":
            raise WorkflowValidationError("Workflow record has no id")
        workflow_id = str(data["id"])

        rules: Dict[RuleId, RuleValue] = {}
        for rule_id, path in RULE_PATHS.items():
            node: Any = data
            for key in path:
                node = node.get(key) if isinstance(node, Mapping) else None
            if not isinstance(node, Mapping) or "rule" not in node:
                continue
            mode = RuleMode.parse(node.get("mode"))
            if mode is RuleMode.POLICY and workflow_id != GLOBAL_WORKFLOW_ID:
                raise WorkflowValidationError(
                    f"Workflow [{workflow_id}] declares policy mode for [{rule_id.value}]; "
                    "only the global workflow may use policy mode",
                    context={"workflow": workflow_id, "rule_id": rule_id.value},
                )
            rules[rule_id] = RuleValue(parse_rule_token(rule_id, node.get("rule")), mode)

        return cls(
            id=workflow_id,
            name=str(data.get("name") or ""),
            description=str(data.get("description") or ""),
            owners=tuple(str(o) for o in (data.get("owners") or [])),
            shared=bool(data.get("shared", False)),
            rules=rules,
            tests=tuple(WorkflowTest.from_dict(t) for t in (data.get("tests") or [])),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.id}
        if self.name:
            out["name"] = self.name
        if self.description:
            out["description"] = self.description
        if self.owners:
            out["owners"] = list(self.owners)
        if self.shared:
            out["shared"] = True
        for rule_id, path in RULE_PATHS.items():
            value = self.rules.get(rule_id)
            if value is None:
                continue
            node = out
            for key in path[:-1]:
                node = node.setdefault(key, {})
            node[path[-1]] = value.to_dict()
        if self.tests:
            out["tests"] = [t.to_dict() for t in self.tests]
        return out


@dataclass(frozen=True)
class Branch:
    id: str
    name: str = ""
    workflow_id: Optional[str] = None


@dataclass(frozen=True)
class Project:
    id: str
    name: str = ""
    workflow_id: Optional[str] = None
    branches: Tuple[Branch, ...] = ()

    def workflow_for(self, branch_id: Optional[str]) -> Optional[str]:
        """Effective workflow id for a branch; unknown branches use the project workflow."""
        if branch_id is not None:
            for branch in self.branches:
                if branch.id == branch_id:
                    return branch.workflow_id or self.workflow_id
        return self.workflow_id

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Project":
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            workflow_id=_optional_id(data.get("workflow")),
            branches=tuple(
                Branch(
                    id=str(b["id"]),
                    name=str(b.get("name") or ""),
                    workflow_id=_optional_id(b.get("workflow")),
                )
                for b in (data.get("branches") or [])
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.id}
        if self.name:
            out["name"] = self.name
        if self.workflow_id:
            out["workflow"] = self.workflow_id
        if self.branches:
            branches = []
            for branch in self.branches:
                entry: Dict[str, Any] = {"id": branch.id}
                if branch.name:
                    entry["name"] = branch.name
                if branch.workflow_id:
                    entry["workflow"] = branch.workflow_id
                branches.append(entry)
            out["branches"] = branches
        return out


@dataclass(frozen=True)
class Change:
    id: str
    description: str = ""
    user: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Change":
        return cls(
            id=str(data["id"]),
            description=str(data.get("description") or ""),
            user=_optional_id(data.get("user")),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.id, "description": self.description}
        if self.user:
            out["user"] = self.user
        return out


REVIEW_STATE_NEEDS_REVIEW = "needsReview"
REVIEW_STATE_NEEDS_REVISION = "needsRevision"
REVIEW_STATE_APPROVED = "approved"
REVIEW_STATE_APPROVED_COMMIT = "approved:commit"
REVIEW_STATE_REJECTED = "rejected"
REVIEW_STATE_ARCHIVED = "archived"


@dataclass(frozen=True)
class Review:
    id: str
    state: str = REVIEW_STATE_NEEDS_REVIEW
    changes: Tuple[str, ...] = ()
    commits: Tuple[str, ...] = ()
    commit_status: Mapping[str, Any] = field(default_factory=dict)
    head_change: Optional[str] = None
    projects: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    test_runs: Tuple[str, ...] = ()

    @property
    def commit_in_progress(self) -> bool:
        return self.commit_status.get("status") == "Committing"

    def affected_projects(self) -> AffectedProjects:
        return {pid: list(branches) for pid, branches in self.projects.items()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Review":
        changes = tuple(str(c) for c in (data.get("changes") or []))
        return cls(
            id=str(data["id"]),
            state=str(data.get("state") or REVIEW_STATE_NEEDS_REVIEW),
            changes=changes,
            commits=tuple(str(c) for c in (data.get("commits") or [])),
            commit_status=dict(data.get("commitStatus") or {}),
            head_change=_optional_id(data.get("headChange")) or (changes[-1] if changes else None),
            projects={
                str(pid): tuple(str(b) for b in (branches or []))
                for pid, branches in (data.get("projects") or {}).items()
            },
            test_runs=tuple(str(t) for t in (data.get("testRuns") or [])),
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "id": self.id,
            "state": self.state,
            "changes": list(self.changes),
            "commits": list(self.commits),
            "commitStatus": dict(self.commit_status),
            "projects": self.affected_projects(),
            "testRuns": list(self.test_runs),
        }
        if self.head_change is not None:
            out["headChange"] = self.head_change
        return out


@dataclass(frozen=True)
class TestRun:
    __test__ = False

    id: str
    test: str
    status: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TestRun":
        return cls(id=str(data["id"]), test=str(data["test"]), status=str(data["status"]))

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "test": self.test, "status": self.status}


TEST_RUN_PASS = "pass"


@dataclass(frozen=True)
class MergedWorkflow:
    """Effective rule set after merging; plain values without modes.

    A field is ``None`` only when no workflow (including the global one)
    supplied a value for it.
    """

    with_review: Optional[WithReviewRule] = None
    without_review: Optional[WithoutReviewRule] = None
    end_rule_update: Optional[EndRuleUpdate] = None
    auto_approve: Optional[AutoApproveRule] = None
    counted_votes: Optional[CountedVotesRule] = None
    group_exclusions: Tuple[str, ...] = ()
    user_exclusions: Tuple[str, ...] = ()

    def get(self, rule_id: RuleId) -> Any:
        return getattr(self, RuleId.parse(rule_id).value)

    def to_dict(self) -> Dict[str, Any]:
        """Nested record shape (without modes) for policy inspection."""
        out: Dict[str, Any] = {}
        for rule_id, path in RULE_PATHS.items():
            node = out
            for key in path[:-1]:
                node = node.setdefault(key, {})
            node[path[-1]] = {"rule": token_value(self.get(rule_id))}
        return out


class EnforcementStatus(str, Enum):
    OK = "OK"
    BAD_CHANGE = "BAD_CHANGE"
    NO_REVIEW = "NO_REVIEW"
    NO_APPROVED_REVIEW = "NO_APPROVED_REVIEW"
    NOT_SAME_CONTENT = "NOT_SAME_CONTENT"
    NO_REVISION = "NO_REVISION"
    CREATED_REVIEW = "CREATED_REVIEW"
    LINKED_REVIEW = "LINKED_REVIEW"
    WORK_IN_PROGRESS_CHANGE = "WORK_IN_PROGRESS_CHANGE"


_PASSING_STATUSES = frozenset(
    {EnforcementStatus.OK, EnforcementStatus.CREATED_REVIEW, EnforcementStatus.LINKED_REVIEW}
)


@dataclass(frozen=True)
class EnforcementResult:
    status: EnforcementStatus
    messages: Tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        """Whether the gated operation may proceed."""
        return self.status in _PASSING_STATUSES

    @classmethod
    def build(cls, status: EnforcementStatus, message: Optional[str] = None) -> "EnforcementResult":
        return cls(status=status, messages=(message,) if message else ())

    def to_dict(self) -> Dict[str, Any]:
        return {"status": self.status.value, "messages": list(self.messages)}


def _optional_id(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value)


__all__ = [
    "GLOBAL_WORKFLOW_ID",
    "AffectedProjects",
    "RuleMode",
    "RuleId",
    "WithReviewRule",
    "WithoutReviewRule",
    "EndRuleUpdate",
    "AutoApproveRule",
    "CountedVotesRule",
    "RULE_TOKENS",
    "RULE_PATHS",
    "RuleToken",
    "parse_rule_token",
    "token_value",
    "RuleValue",
    "TestEvent",
    "BLOCKS_NOTHING",
    "WorkflowTest",
    "Workflow",
    "Branch",
    "Project",
    "Change",
    "Review",
    "TestRun",
    "TEST_RUN_PASS",
    "REVIEW_STATE_NEEDS_REVIEW",
    "REVIEW_STATE_NEEDS_REVISION",
    "REVIEW_STATE_APPROVED",
    "REVIEW_STATE_APPROVED_COMMIT",
    "REVIEW_STATE_REJECTED",
    "REVIEW_STATE_ARCHIVED",
    "MergedWorkflow",
    "EnforcementStatus",
    "EnforcementResult",
]
