"""Per-field merge rules for workflow policy values.

Ordinal fields keep the stricter of two values (unset is least strict),
``counted_votes`` lets ``members`` win once observed, and the exclusion lists
are merged as an order-preserving, de-duplicated union. All functions are
pure; :class:`MergeAccumulator` is the only mutable state and lives for one
resolution call.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple

from reviewflow.core.exceptions import UnsupportedRuleError

from .models import (
    AutoApproveRule,
    CountedVotesRule,
    EndRuleUpdate,
    MergedWorkflow,
    RuleId,
    WithoutReviewRule,
    WithReviewRule,
    Workflow,
)

# Permissiveness order, least strict first.
ORDINAL_ORDER: Dict[RuleId, Tuple[Enum, ...]] = {
    RuleId.WITH_REVIEW: (
        WithReviewRule.NO_CHECKING,
        WithReviewRule.APPROVED,
        WithReviewRule.STRICT,
    ),
    RuleId.WITHOUT_REVIEW: (
        WithoutReviewRule.NO_CHECKING,
        WithoutReviewRule.AUTO_CREATE,
        WithoutReviewRule.REJECT,
    ),
    RuleId.END_RULE_UPDATE: (
        EndRuleUpdate.NO_CHECKING,
        EndRuleUpdate.NO_REVISION,
    ),
    RuleId.AUTO_APPROVE: (
        AutoApproveRule.VOTES,
        AutoApproveRule.NEVER,
    ),
}


def merge_ordinal(rule_id: RuleId, current: Optional[Enum], candidate: Optional[Enum]) -> Optional[Enum]:
    """Return the stricter of ``current`` and ``candidate``."""
    if candidate is None:
        return current
    if current is None:
        return candidate
    order = ORDINAL_ORDER[rule_id]
    return candidate if order.index(candidate) > order.index(current) else current


def merge_counted_votes(
    current: Optional[CountedVotesRule], candidate: Optional[CountedVotesRule]
) -> Optional[CountedVotesRule]:
    if candidate is None:
        return current
    if candidate is CountedVotesRule.MEMBERS or current is None:
        return candidate
    return current


def merge_union(
    current: Optional[Iterable[str]], candidate: Optional[Iterable[str]]
) -> Optional[Tuple[str, ...]]:
    """De-duplicated union keeping first-seen order."""
    if candidate is None:
        return tuple(current) if current is not None else None
    if current is None:
        return tuple(dict.fromkeys(candidate))
    return tuple(dict.fromkeys((*current, *candidate)))


def merge_rule(rule_id: Any, current: Any, candidate: Any) -> Any:
    """Merge one field value, dispatching on the rule id.

    Raises:
        UnsupportedRuleError: if ``rule_id`` is not a known rule.
    """
    rid = RuleId.parse(rule_id)
    if rid in ORDINAL_ORDER:
        return merge_ordinal(rid, current, candidate)
    if rid is RuleId.COUNTED_VOTES:
        return merge_counted_votes(current, candidate)
    if rid.is_list:
        return merge_union(current, candidate)
    raise UnsupportedRuleError(rule_id)


@dataclass
class MergeAccumulator:
    """Working state for one merge; every field starts unset (``None``)."""

    with_review: Optional[WithReviewRule] = None
    without_review: Optional[WithoutReviewRule] = None
    end_rule_update: Optional[EndRuleUpdate] = None
    auto_approve: Optional[AutoApproveRule] = None
    counted_votes: Optional[CountedVotesRule] = None
    group_exclusions: Optional[Tuple[str, ...]] = None
    user_exclusions: Optional[Tuple[str, ...]] = None

    def get(self, rule_id: RuleId) -> Any:
        return getattr(self, RuleId.parse(rule_id).value)

    def set(self, rule_id: RuleId, value: Any) -> None:
        rid = RuleId.parse(rule_id)
        if rid.is_list and value is not None:
            value = tuple(dict.fromkeys(value))
        setattr(self, rid.value, value)

    def is_unset(self, rule_id: RuleId) -> bool:
        return self.get(rule_id) is None

    def merge(self, rule_id: RuleId, candidate: Any) -> None:
        rid = RuleId.parse(rule_id)
        setattr(self, rid.value, merge_rule(rid, self.get(rid), candidate))

    def merge_workflow(self, workflow: Workflow) -> None:
        """Fold every field the workflow declares into this accumulator."""
        for rule_id in RuleId:
            value = workflow.rules.get(rule_id)
            if value is not None:
                self.merge(rule_id, value.rule)

    def to_merged(self) -> MergedWorkflow:
        return MergedWorkflow(
            with_review=self.with_review,
            without_review=self.without_review,
            end_rule_update=self.end_rule_update,
            auto_approve=self.auto_approve,
            counted_votes=self.counted_votes,
            group_exclusions=self.group_exclusions or (),
            user_exclusions=self.user_exclusions or (),
        )


def merge_workflows(workflows: Iterable[Workflow]) -> MergeAccumulator:
    acc = MergeAccumulator()
    for workflow in workflows:
        acc.merge_workflow(workflow)
    return acc


__all__ = [
    "ORDINAL_ORDER",
    "merge_ordinal",
    "merge_counted_votes",
    "merge_union",
    "merge_rule",
    "MergeAccumulator",
    "merge_workflows",
]
