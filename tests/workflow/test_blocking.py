from __future__ import annotations

from reviewflow.core.repository import MemoryRecordStore
from reviewflow.core.workflow import BlockingTestQuery, GlobalWorkflowCache, WorkflowResolver
from reviewflow.core.workflow.models import TestRun as Run
from helpers.records import permissive_global, project, review, workflow


def _query(test_runs=()) -> BlockingTestQuery:
    store = MemoryRecordStore(
        workflows=[
            permissive_global(tests=[{"id": "lint", "event": "onSubmit", "blocks": "approved"}]),
            workflow(
                "1",
                tests=[
                    {"id": "unit", "event": "onUpdate", "blocks": "approved"},
                    {"id": "docs", "event": "onDemand"},
                ],
            ),
            workflow("2", tests=[{"id": "e2e", "event": "onUpdate", "blocks": "approved:commit"}]),
        ],
        projects=[project("p", "1", branches=["main", ("release", "2")])],
        test_runs=test_runs,
    )
    resolver = WorkflowResolver(store, store, GlobalWorkflowCache(store))
    return BlockingTestQuery(resolver, store)


def test_failing_runs_of_blocking_tests_block_the_state() -> None:
    query = _query(
        [Run("r1", "unit", "fail"), Run("r2", "lint", "pass"), Run("r3", "docs", "fail")]
    )
    rev = review("10", changes=["2"], testRuns=["r1", "r2", "r3"], projects={"p": ["main"]})

    assert query.get_blocking_tests(rev, rev.affected_projects(), "approved") == {"unit"}
    assert query.is_blocked_by_tests(rev, rev.affected_projects(), "approved")


def test_global_workflow_tests_are_included() -> None:
    query = _query([Run("r1", "lint", "running")])
    rev = review("10", testRuns=["r1"])

    assert query.get_blocking_tests(rev, {}, "approved") == {"lint"}


def test_no_blocking_tests_for_state() -> None:
    query = _query([Run("r1", "unit", "fail")])
    rev = review("10", testRuns=["r1"], projects={"p": ["main"]})

    assert query.get_blocking_tests(rev, rev.affected_projects(), "rejected") == set()
    assert not query.is_blocked_by_tests(rev, rev.affected_projects(), "rejected")


def test_branch_workflow_replaces_project_workflow_tests() -> None:
    query = _query([Run("r1", "unit", "fail"), Run("r2", "e2e", "fail")])
    rev = review("10", testRuns=["r1", "r2"], projects={"p": ["release"]})

    assert query.get_blocking_tests(rev, rev.affected_projects(), "approved") == set()
    assert query.get_blocking_tests(rev, rev.affected_projects(), "approved:commit") == {"e2e"}


def test_tests_for_workflows_grouped_by_event() -> None:
    query = _query()

    assert query.get_tests_for_workflows(["1", "0"]) == {
        "onUpdate": ["unit"],
        "onDemand": ["docs"],
        "onSubmit": ["lint"],
    }
    assert query.get_tests_for_workflows(["1", "2"], events=["onUpdate"]) == {"onUpdate": ["unit", "e2e"]}


def test_blocking_tests_by_state() -> None:
    query = _query()

    assert query.get_blocking_tests_by_state(["1", "2"]) == {
        "approved": ["unit"],
        "nothing": ["docs"],
        "approved:commit": ["e2e"],
    }
