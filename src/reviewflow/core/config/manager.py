"""
reviewflow configuration management (YAML layers plus environment overrides).
"""
from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from reviewflow.core.utils.io import merge_yaml_directory, read_yaml
from reviewflow.core.utils.merge import deep_merge as _deep_merge
from reviewflow.core.utils.paths import get_project_config_dir, resolve_project_root
from reviewflow.data import get_data_path

logger = logging.getLogger(__name__)

ENV_PREFIX = "REVIEWFLOW_"
CONFIG_SCHEMA = "config.schema.yaml"

PathSegment = Union[str, int, object]


class ConfigManager:
    """Load, merge, and validate reviewflow configuration.

    Configuration sources (highest to lowest priority):
    1. Environment variables: REVIEWFLOW_*
    2. Project-local config: <repo>/.reviewflow/config.local/*.yaml (alphabetical order, uncommitted)
    3. Project config: <repo>/.reviewflow/config/*.yaml (alphabetical order)
    4. Bundled defaults: reviewflow.data/config/*.yaml (alphabetical order)

    Environment keys use ``__`` to separate path segments, e.g.
    ``REVIEWFLOW_WORKFLOW__ENABLED=false`` or
    ``REVIEWFLOW_REVIEWS__ENDSTATES__APPEND=archived``. Values are coerced to
    bool, int, float or JSON where they parse as such.
    """

    ARRAY_APPEND_MARKER = object()

    def __init__(self, repo_root: Optional[Path] = None) -> None:
        self.repo_root = Path(repo_root) if repo_root is not None else resolve_project_root()

        project_root_dir = get_project_config_dir(self.repo_root)

        # Bundled defaults from reviewflow.data package (always available)
        self.core_config_dir = get_data_path("config")
        self.project_config_dir = project_root_dir / "config"
        self.project_local_config_dir = project_root_dir / "config.local"

    def deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge dictionaries. Delegates to shared implementation."""
        return _deep_merge(base, override)

    def load_yaml(self, path: Path) -> Dict[str, Any]:
        # Configuration must never silently ignore invalid YAML.
        return read_yaml(path, default={}, raise_on_error=True)

    def validate_schema(self, config: Dict[str, Any], schema_name: str = CONFIG_SCHEMA) -> None:
        from reviewflow.core.schemas.validation import validate_payload

        validate_payload(config, schema_name)

    # ========== Environment overrides ==========

    def _as_bool(self, v: str) -> Optional[bool]:
        low = v.strip().lower()
        if low in {"true", "false"}:
            return low == "true"
        return None

    def _as_int(self, v: str) -> Optional[int]:
        if re.fullmatch(r"[-+]?\d+", v.strip() or " "):
            return int(v)
        return None

    def _as_float(self, v: str) -> Optional[float]:
        s = v.strip()
        if re.fullmatch(r"[-+]?\d*\.\d+", s) or re.fullmatch(r"[-+]?\d+\.\d*", s):
            return float(s)
        return None

    def _as_json(self, v: str) -> Optional[Any]:
        s = v.strip()
        if (s.startswith("{") and s.endswith("}")) or (s.startswith("[") and s.endswith("]")):
            try:
                return json.loads(s)
            except json.JSONDecodeError:
                return None
        return None

    def _coerce_type(self, value: str) -> Any:
        for caster in (self._as_bool, self._as_int, self._as_float, self._as_json):
            result = caster(value)
            if result is not None:
                return result
        return value.strip()

    def _parse_env_key(self, raw: str, *, strict: bool) -> List[PathSegment]:
        if not raw:
            return []
        segs = raw.split("__") if "__" in raw else raw.split("_")
        processed: List[PathSegment] = []
        for seg in segs:
            if seg == "":
                if strict:
                    raise ValueError(f"Malformed {ENV_PREFIX}* key: empty segment in '{raw}'.")
                return []
            if seg.isdigit():
                processed.append(int(seg))
            elif seg.upper() == "APPEND":
                processed.append(self.ARRAY_APPEND_MARKER)
            else:
                processed.append(seg.lower())
        return processed

    def _iter_env_overrides(self, *, strict: bool) -> Iterator[Tuple[List[PathSegment], Any, str]]:
        for key in sorted(os.environ.keys()):
            if not key.startswith(ENV_PREFIX):
                continue
            raw = key[len(ENV_PREFIX):]
            # Root discovery variable, not a configuration key.
            if raw == "PROJECT_ROOT":
                continue
            if not raw:
                if strict:
                    raise ValueError(f"Malformed {ENV_PREFIX}* key")
                continue
            path = self._parse_env_key(raw, strict=strict)
            if not path:
                continue
            yield path, self._coerce_type(os.environ[key]), raw

    def _set_nested(self, root: Dict[str, Any], path: List[PathSegment], value: Any) -> None:
        if not path:
            return

        cur: Any = root
        for i, part in enumerate(path[:-1]):
            nxt = path[i + 1]
            if isinstance(part, int) or part is self.ARRAY_APPEND_MARKER:
                raise ValueError("Invalid path: list index/APPEND may only appear at leaf")
            if not isinstance(cur, dict):
                raise ValueError("Path traverses non-dict container")
            key_candidates = {k.lower(): k for k in cur.keys() if isinstance(k, str)}
            key_to_use = key_candidates.get(str(part).lower(), part)
            if key_to_use not in cur or cur[key_to_use] is None:
                cur[key_to_use] = [] if (isinstance(nxt, int) or nxt is self.ARRAY_APPEND_MARKER) else {}
            cur = cur[key_to_use]

        leaf = path[-1]
        if leaf is self.ARRAY_APPEND_MARKER:
            if not isinstance(cur, list):
                raise ValueError("APPEND requires list")
            cur.append(value)
            return
        if isinstance(leaf, int):
            if not isinstance(cur, list):
                raise ValueError("Index assignment requires list")
            while len(cur) <= leaf:
                cur.append(None)
            cur[leaf] = value
            return
        if not isinstance(cur, dict):
            raise ValueError("Key assignment requires dict")
        lower_map = {k.lower(): k for k in cur.keys() if isinstance(k, str)}
        cur[lower_map.get(str(leaf).lower(), leaf)] = value

    def apply_env_overrides(self, cfg: Dict[str, Any], *, strict: bool) -> None:
        for path, typed_value, raw in self._iter_env_overrides(strict=strict):
            logger.debug("Applying environment override %s%s", ENV_PREFIX, raw)
            self._set_nested(cfg, path, typed_value)

    # ========== Loading ==========

    def _load_directory(self, directory: Path, cfg: Dict[str, Any]) -> Dict[str, Any]:
        return merge_yaml_directory(cfg, directory)

    def _load_config_uncached(self, validate: bool = True) -> Dict[str, Any]:
        """Load and merge configuration from every layer (UNCACHED)."""
        cfg: Dict[str, Any] = {}
        cfg = self._load_directory(self.core_config_dir, cfg)
        cfg = self._load_directory(self.project_config_dir, cfg)
        cfg = self._load_directory(self.project_local_config_dir, cfg)
        self.apply_env_overrides(cfg, strict=validate)

        if validate:
            self.validate_schema(cfg)
        return cfg

    def load_config(self, validate: bool = True) -> Dict[str, Any]:
        """Load configuration using the centralized cache.

        Notes:
        - ``validate=True`` validates the (cached) config before returning.
        - Returned dict should be treated as immutable.
        """
        defaults = {
            "core_config_dir": get_data_path("config"),
            "project_config_dir": get_project_config_dir(self.repo_root) / "config",
            "project_local_config_dir": get_project_config_dir(self.repo_root) / "config.local",
        }
        # Directory attributes patched on this instance bypass the shared cache.
        overridden = any(getattr(self, key) != val for key, val in defaults.items())

        if overridden:
            cfg = self._load_config_uncached(validate=False)
        else:
            from reviewflow.core.config.cache import get_cached_config

            cfg = get_cached_config(repo_root=self.repo_root, validate=False)
        if validate:
            _ = list(self._iter_env_overrides(strict=True))
            self.validate_schema(cfg)
        return cfg

    # ========== Accessor Methods ==========

    def get_all(self) -> Dict[str, Any]:
        """Get full merged configuration without validation."""
        return self.load_config(validate=False)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a config value by dot-notation key.

        Example:
            >>> manager.get('workflow.enabled')
            True
            >>> manager.get('nonexistent.key', 'fallback')
            'fallback'
        """
        current: Any = self.load_config(validate=False)
        for part in key.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current


__all__ = ["ConfigManager", "ENV_PREFIX", "CONFIG_SCHEMA"]
