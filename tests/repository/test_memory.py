from __future__ import annotations

import pytest

from reviewflow.core.exceptions import (
    ChangeNotFoundError,
    GroupNotFoundError,
    InvalidChangeIdError,
    ProjectNotFoundError,
    ReviewNotFoundError,
    WorkflowNotFoundError,
)
from reviewflow.core.repository import (
    AffectedProjectsFinder,
    ChangeRepository,
    ContentComparer,
    GroupRepository,
    MemoryRecordStore,
    ProjectRepository,
    ReviewRepository,
    TestRunRepository as RunRepository,
    WorkflowRepository,
)
from helpers.records import change, review, workflow


@pytest.fixture
def store() -> MemoryRecordStore:
    return MemoryRecordStore(
        workflows=[workflow("1", with_review="approved")],
        changes=[change("3", "Fix"), change("12")],
        reviews=[review("10", changes=["12"])],
        groups={"admins": ["root"]},
        affected={"3": {"p": ["main"]}},
        affected_submitted={"3": {"q": []}},
    )


def test_store_satisfies_every_protocol(store) -> None:
    for protocol in (
        ChangeRepository,
        ProjectRepository,
        WorkflowRepository,
        ReviewRepository,
        GroupRepository,
        AffectedProjectsFinder,
        ContentComparer,
        RunRepository,
    ):
        assert isinstance(store, protocol)


def test_fetch_change_validates_ids(store) -> None:
    assert store.fetch_change(" 3 ").id == "3"
    assert store.fetch_change(12).id == "12"
    for bad in ("", "x1", "-4", "007", None):
        with pytest.raises(InvalidChangeIdError):
            store.fetch_change(bad)
    with pytest.raises(ChangeNotFoundError):
        store.fetch_change("99")


def test_missing_records_raise(store) -> None:
    with pytest.raises(ProjectNotFoundError):
        store.fetch_project("p")
    with pytest.raises(WorkflowNotFoundError):
        store.fetch_workflow("2")
    with pytest.raises(ReviewNotFoundError):
        store.fetch_review("11")
    with pytest.raises(GroupNotFoundError):
        store.is_member("root", "ghosts")


def test_fetch_workflows_skips_missing_and_duplicates(store) -> None:
    assert [w.id for w in store.fetch_workflows(["1", "2", "1"])] == ["1"]


def test_create_from_change(store) -> None:
    created = store.create_from_change(store.fetch_change("3"))

    assert created.id == "13"
    assert created.changes == ("3",)
    assert created.head_change == "3"
    assert created.projects == {"p": ("main",)}
    assert store.find_by_change("3") is created


def test_affected_listings_are_copies(store) -> None:
    c = store.fetch_change("3")
    listing = store.find_affected_projects(c)
    listing["p"].append("dev")

    assert store.find_affected_projects(c) == {"p": ["main"]}
    assert store.find_affected_projects(c, submitted=True) == {"q": []}
    assert store.find_affected_projects(store.fetch_change("12")) == {}
