"""stdlib logging setup for the reviewflow CLI.

Library modules only create ``logging.getLogger(__name__)`` loggers; handlers
are installed here, once per process, by the command line entry point.
"""
from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

from reviewflow.core.utils.io import ensure_directory

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_CONFIGURED_TARGET: str | None = None
_REVIEWFLOW_HANDLER: logging.Handler | None = None
_JSON_MODE_NULL_HANDLER_INSTALLED: bool = False


def _level_from_name(name: str) -> int:
    level = logging.getLevelName(str(name).upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level: str = "INFO", log_path: Optional[Path] = None) -> None:
    """Install one reviewflow handler on the root logger.

    Logs go to ``log_path`` when given, otherwise to stderr. Idempotent
    per-process: calling again with the same target only updates the level.
    """
    global _CONFIGURED_TARGET, _REVIEWFLOW_HANDLER

    numeric = _level_from_name(level)
    target = str(Path(log_path).resolve()) if log_path is not None else "<stderr>"

    root = logging.getLogger()
    root.setLevel(numeric)

    if _CONFIGURED_TARGET == target and _REVIEWFLOW_HANDLER is not None:
        _REVIEWFLOW_HANDLER.setLevel(numeric)
        return

    # Replace the previously installed handler when switching targets.
    if _REVIEWFLOW_HANDLER is not None:
        root.removeHandler(_REVIEWFLOW_HANDLER)
        _REVIEWFLOW_HANDLER.close()
        _REVIEWFLOW_HANDLER = None

    handler: logging.Handler
    if log_path is not None:
        ensure_directory(Path(target).parent)
        handler = logging.FileHandler(target, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(numeric)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)

    _REVIEWFLOW_HANDLER = handler
    _CONFIGURED_TARGET = target


def suppress_lastresort_in_json_mode() -> None:
    """Keep the implicit ``lastResort`` stderr handler quiet for ``--json`` output."""
    global _JSON_MODE_NULL_HANDLER_INSTALLED

    root = logging.getLogger()
    if root.handlers or _JSON_MODE_NULL_HANDLER_INSTALLED:
        return
    root.addHandler(logging.NullHandler())
    _JSON_MODE_NULL_HANDLER_INSTALLED = True


def reset_logging_for_tests() -> None:
    """Test-only: remove the handler installed by ``configure_logging``."""
    global _CONFIGURED_TARGET, _REVIEWFLOW_HANDLER
    if _REVIEWFLOW_HANDLER is not None:
        logging.getLogger().removeHandler(_REVIEWFLOW_HANDLER)
        _REVIEWFLOW_HANDLER.close()
    _CONFIGURED_TARGET = None
    _REVIEWFLOW_HANDLER = None


__all__ = [
    "LOG_FORMAT",
    "configure_logging",
    "suppress_lastresort_in_json_mode",
    "reset_logging_for_tests",
]
