from __future__ import annotations

import pytest

from reviewflow.core.config import ReviewsConfig
from reviewflow.core.workflow import ReviewKeywords, WorkInProgressTag


@pytest.fixture
def keywords(config_dict) -> ReviewKeywords:
    return ReviewKeywords.from_config(ReviewsConfig(config=config_dict))


@pytest.mark.parametrize(
    "description, review_id",
    [
        ("Fix parser #review-12", "12"),
        ("[review-7] tidy imports", "7"),
        ("tidy imports [append-8]", "8"),
        ("Fix (#replace-3).", "3"),
        ("Fix parser #review", None),
        ("Fix parser", None),
        ("", None),
        ("review-12 without a marker", None),
    ],
)
def test_review_id_from_description(keywords, description: str, review_id) -> None:
    assert keywords.review_id(description) == review_id


def test_first_matching_pattern_wins() -> None:
    keywords = ReviewKeywords({"first": r"#(?P<keyword>review)-(?P<id>\d+)", "second": r"(?P<keyword>review)-(?P<id>\d+)"})

    match = keywords.get_matches("see #review-4 and review-5")

    assert match.pattern == "first"
    assert match.keyword == "review"
    assert match.id == "4"


def test_keyword_is_lowercased(keywords) -> None:
    match = keywords.get_matches("#REVIEW-2 urgent")
    assert match.keyword == "review"


@pytest.mark.parametrize(
    "description, expected",
    [
        ("Draft #wip", True),
        ("#WIP: parser", False),
        ("#wip parser", True),
        ("no tag here", False),
        ("wip#wip", False),
    ],
)
def test_work_in_progress_tag(config_dict, description: str, expected: bool) -> None:
    tag = WorkInProgressTag.from_config(ReviewsConfig(config=config_dict))
    assert tag.has_matches(description) is expected
