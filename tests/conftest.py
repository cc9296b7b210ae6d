import copy
import os
import sys
from pathlib import Path

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'reviewflow' and tests/ importable for helpers
for p in (SRC_ROOT, TESTS_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))

from reviewflow.core.config import clear_all_caches, get_cached_config
from reviewflow.core.logging_setup import reset_logging_for_tests


@pytest.fixture(autouse=True)
def _isolate_environment(tmp_path, monkeypatch):
    """Drop leaked REVIEWFLOW_* variables and pin the project root to tmp_path."""
    for key in list(os.environ):
        if key.startswith("REVIEWFLOW_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("REVIEWFLOW_PROJECT_ROOT", str(tmp_path))
    clear_all_caches()
    yield
    clear_all_caches()
    reset_logging_for_tests()


@pytest.fixture
def repo_root(tmp_path) -> Path:
    return tmp_path


@pytest.fixture
def config_dict(repo_root):
    """Bundled defaults as a private, mutable mapping."""
    return copy.deepcopy(get_cached_config(repo_root))
