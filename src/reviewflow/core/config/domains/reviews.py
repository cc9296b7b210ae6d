"""Domain-specific configuration for reviews.

Covers the review end states consulted by the end-rule check and the
description keyword patterns used to find a referenced review.
"""
from __future__ import annotations

from functools import cached_property
from typing import Dict, List

from ..base import BaseDomainConfig


class ReviewsConfig(BaseDomainConfig):
    def _config_section(self) -> str:
        return "reviews"

    @cached_property
    def end_states(self) -> List[str]:
        raw = self.section.get("endStates") or []
        if not isinstance(raw, list):
            return []
        return [str(s) for s in raw if s is not None and str(s).strip()]

    @cached_property
    def patterns(self) -> Dict[str, str]:
        """Keyword regexes by name, in configuration order."""
        raw = self.section.get("patterns") or {}
        if not isinstance(raw, dict):
            return {}
        return {str(name): str(pattern) for name, pattern in raw.items() if pattern}

    @cached_property
    def work_in_progress(self) -> str:
        return str(self.section.get("workInProgress") or r"(?i)(^|\s)+#wip($|\s)+")


__all__ = ["ReviewsConfig"]
