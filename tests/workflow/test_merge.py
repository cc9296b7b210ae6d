from __future__ import annotations

import itertools

import pytest

from reviewflow.core.exceptions import UnsupportedRuleError
from reviewflow.core.workflow.merge import (
    ORDINAL_ORDER,
    MergeAccumulator,
    merge_counted_votes,
    merge_rule,
    merge_union,
    merge_workflows,
)
from reviewflow.core.workflow.models import (
    CountedVotesRule,
    EndRuleUpdate,
    RuleId,
    WithoutReviewRule,
    WithReviewRule,
)
from helpers.records import workflow


@pytest.mark.parametrize("rule_id", list(ORDINAL_ORDER))
def test_ordinal_merge_keeps_stricter_value(rule_id: RuleId) -> None:
    order = ORDINAL_ORDER[rule_id]
    for a, b in itertools.product(order, repeat=2):
        expected = a if order.index(a) >= order.index(b) else b
        assert merge_rule(rule_id, a, b) is expected
        # Commutative and idempotent
        assert merge_rule(rule_id, b, a) is expected
        assert merge_rule(rule_id, a, a) is a


@pytest.mark.parametrize("rule_id", list(ORDINAL_ORDER))
def test_ordinal_merge_is_associative(rule_id: RuleId) -> None:
    order = ORDINAL_ORDER[rule_id]
    for a, b, c in itertools.product(order, repeat=3):
        left = merge_rule(rule_id, merge_rule(rule_id, a, b), c)
        right = merge_rule(rule_id, a, merge_rule(rule_id, b, c))
        assert left is right


@pytest.mark.parametrize("rule_id", list(RuleId))
def test_merge_with_unset_returns_other_side(rule_id: RuleId) -> None:
    if rule_id.is_list:
        value = ("a", "b")
        assert merge_rule(rule_id, None, value) == value
        assert merge_rule(rule_id, value, None) == value
    elif rule_id is RuleId.COUNTED_VOTES:
        for value in CountedVotesRule:
            assert merge_rule(rule_id, None, value) is value
            assert merge_rule(rule_id, value, None) is value
    else:
        for value in ORDINAL_ORDER[rule_id]:
            assert merge_rule(rule_id, None, value) is value
            assert merge_rule(rule_id, value, None) is value


def test_counted_votes_members_wins_once_observed() -> None:
    anyone, members = CountedVotesRule.ANYONE, CountedVotesRule.MEMBERS
    assert merge_counted_votes(anyone, members) is members
    assert merge_counted_votes(members, anyone) is members
    assert merge_counted_votes(None, anyone) is anyone
    assert merge_counted_votes(anyone, anyone) is anyone


def test_union_is_deduplicated_and_order_preserving() -> None:
    assert merge_union(("b", "a"), ("a", "c", "c")) == ("b", "a", "c")
    assert merge_union(None, None) is None


def test_union_is_monotone() -> None:
    current = ("x", "y")
    merged = merge_union(current, ("z",))
    assert set(current) <= set(merged)
    assert merge_union(merged, current) == merged


def test_merge_rule_rejects_unknown_rule() -> None:
    with pytest.raises(UnsupportedRuleError):
        merge_rule("auto_merge", None, None)


def test_end_rule_accepts_update_alias() -> None:
    assert merge_rule("update", EndRuleUpdate.NO_CHECKING, EndRuleUpdate.NO_REVISION) is EndRuleUpdate.NO_REVISION


def test_accumulator_starts_unset_and_folds_declared_fields_only() -> None:
    acc = MergeAccumulator()
    assert all(acc.is_unset(rule_id) for rule_id in RuleId)

    acc.merge_workflow(workflow("1", with_review="approved", user_exclusions=["ann"]))
    acc.merge_workflow(workflow("2", with_review="no_checking", without_review="reject", user_exclusions=["bob", "ann"]))

    assert acc.with_review is WithReviewRule.APPROVED
    assert acc.without_review is WithoutReviewRule.REJECT
    assert acc.is_unset(RuleId.END_RULE_UPDATE)
    assert acc.user_exclusions == ("ann", "bob")

    merged = acc.to_merged()
    assert merged.end_rule_update is None
    assert merged.group_exclusions == ()


def test_merge_workflows_is_order_independent_for_ordinal_fields() -> None:
    flows = [
        workflow("1", with_review="strict", counted_votes="anyone"),
        workflow("2", with_review="approved", counted_votes="members"),
        workflow("3", end_rule="no_revision"),
    ]
    forward = merge_workflows(flows).to_merged()
    backward = merge_workflows(reversed(flows)).to_merged()
    assert forward == backward
    assert forward.with_review is WithReviewRule.STRICT
    assert forward.counted_votes is CountedVotesRule.MEMBERS
    assert forward.end_rule_update is EndRuleUpdate.NO_REVISION
