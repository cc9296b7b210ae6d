"""Change description keyword matching.

``#review-123``, ``[review-123]``, ``#append-5`` and ``#replace-7`` in a
change description reference an existing review; ``#wip`` marks a change as
work in progress. Patterns come from the ``reviews`` configuration section.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Mapping, Optional, Pattern

from reviewflow.core.config.domains.reviews import ReviewsConfig


@dataclass(frozen=True)
class KeywordMatch:
    pattern: str
    keyword: str
    id: Optional[str] = None


class ReviewKeywords:
    """Ordered set of review keyword patterns; the first match wins."""

    def __init__(self, patterns: Mapping[str, str]) -> None:
        self._patterns: dict[str, Pattern[str]] = {
            name: re.compile(expr) for name, expr in patterns.items()
        }

    @classmethod
    def from_config(cls, config: ReviewsConfig) -> "ReviewKeywords":
        return cls(config.patterns)

    def get_matches(self, description: Optional[str]) -> Optional[KeywordMatch]:
        if not description:
            return None
        for name, pattern in self._patterns.items():
            found = pattern.search(description)
            if found is None:
                continue
            groups = found.groupdict()
            return KeywordMatch(
                pattern=name,
                keyword=(groups.get("keyword") or "").lower(),
                id=groups.get("id") or None,
            )
        return None

    def review_id(self, description: Optional[str]) -> Optional[str]:
        """Referenced review id, or None when absent or without an id."""
        match = self.get_matches(description)
        return match.id if match else None


class WorkInProgressTag:
    def __init__(self, pattern: str) -> None:
        self._pattern = re.compile(pattern)

    @classmethod
    def from_config(cls, config: ReviewsConfig) -> "WorkInProgressTag":
        return cls(config.work_in_progress)

    def has_matches(self, description: Optional[str]) -> bool:
        return bool(description) and self._pattern.search(description) is not None


__all__ = ["KeywordMatch", "ReviewKeywords", "WorkInProgressTag"]
