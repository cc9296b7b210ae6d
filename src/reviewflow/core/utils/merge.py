"""Layer merging for reviewflow configuration.

Configuration is assembled from bundled defaults, ``.reviewflow/config``,
``.reviewflow/config.local`` and environment overrides, each layer merged on
top of the previous one. Mappings merge key by key. A list in a higher layer
replaces the lower list unless its first item is a marker:

- ``"+"`` appends the remaining items (``endStates: ["+", "archived"]``)
- ``"="`` replaces, the same as giving no marker
"""
from __future__ import annotations

from typing import Any, Dict, List

APPEND_MARKER = "+"
REPLACE_MARKER = "="


def merge_arrays(base: List[Any], override: List[Any]) -> List[Any]:
    """List from a higher layer applied to ``base``.

    >>> merge_arrays(["approved"], ["+", "archived"])
    ['approved', 'archived']
    """
    if override and override[0] == APPEND_MARKER:
        return [*base, *override[1:]]
    if override and override[0] == REPLACE_MARKER:
        return list(override[1:])
    return list(override)


def _merge_value(lower: Any, higher: Any) -> Any:
    if isinstance(lower, dict) and isinstance(higher, dict):
        return deep_merge(lower, higher)
    if isinstance(lower, list) and isinstance(higher, list):
        return merge_arrays(lower, higher)
    return higher


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """New mapping with ``override`` layered on ``base``; neither input is changed."""
    merged: Dict[str, Any] = dict(base)
    for key, value in (override or {}).items():
        merged[key] = _merge_value(merged[key], value) if key in merged else value
    return merged


__all__ = ["APPEND_MARKER", "REPLACE_MARKER", "deep_merge", "merge_arrays"]
