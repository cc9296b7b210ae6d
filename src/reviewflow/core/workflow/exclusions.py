"""User and group exclusion checks for a merged workflow."""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, Optional

from reviewflow.core.exceptions import GroupNotFoundError

from .models import MergedWorkflow

if TYPE_CHECKING:
    from reviewflow.core.repository.protocols import GroupRepository

logger = logging.getLogger(__name__)


def user_matches(user_id: str, candidates: Iterable[str], *, case_sensitive: bool = True) -> bool:
    if case_sensitive:
        return user_id in candidates
    folded = user_id.casefold()
    return any(folded == c.casefold() for c in candidates)


class ExclusionEvaluator:
    """Decide whether an acting user is outside workflow enforcement."""

    def __init__(self, groups: "GroupRepository", *, case_sensitive: bool = True) -> None:
        self.groups = groups
        self.case_sensitive = case_sensitive

    def is_excluded(self, workflow: MergedWorkflow, user_id: Optional[str]) -> bool:
        """True when ``user_id`` is listed directly or belongs to an excluded group.

        Unknown groups are logged and skipped. A missing user is never excluded.
        """
        excluded = False
        if user_id:
            excluded = user_matches(user_id, workflow.user_exclusions, case_sensitive=self.case_sensitive)
            if not excluded:
                for group_id in workflow.group_exclusions:
                    try:
                        if self.groups.is_member(user_id, group_id):
                            excluded = True
                            break
                    except GroupNotFoundError:
                        logger.warning("Invalid group [%s] in workflow exclusions", group_id)
        logger.debug("User [%s] is %s", user_id, "excluded" if excluded else "not excluded")
        return excluded


__all__ = ["ExclusionEvaluator", "user_matches"]
