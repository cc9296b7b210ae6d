from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from reviewflow.core.utils import (
    deep_merge,
    iter_yaml_files,
    merge_arrays,
    merge_yaml_directory,
    read_yaml,
    resolve_project_root,
    write_yaml,
)
from reviewflow.core.utils.paths import ProjectRootError


def test_merge_arrays_semantics() -> None:
    assert merge_arrays(["approved"], ["+", "archived"]) == ["approved", "archived"]
    assert merge_arrays(["approved"], ["=", "rejected"]) == ["rejected"]
    assert merge_arrays(["approved"], ["rejected"]) == ["rejected"]
    assert merge_arrays(["approved"], []) == []


def test_deep_merge_does_not_mutate_inputs() -> None:
    base = {"a": {"b": 1}}
    override = {"a": {"c": 2}}
    merged = deep_merge(base, override)

    assert merged == {"a": {"b": 1, "c": 2}}
    assert base == {"a": {"b": 1}}


def test_deep_merge_layers_review_settings() -> None:
    bundled = {
        "reviews": {"endStates": ["archived"], "patterns": {"octothorpe": "#review"}},
        "workflow": {"enabled": True},
    }
    project = {"reviews": {"endStates": ["+", "approved:commit"], "patterns": {"custom": "\\[rev\\]"}}}
    local = {"workflow": {"enabled": False}, "reviews": {"endStates": ["rejected", "+"]}}

    merged = deep_merge(deep_merge(bundled, project), local)

    assert merged["workflow"] == {"enabled": False}
    assert merged["reviews"]["patterns"] == {"octothorpe": "#review", "custom": "\\[rev\\]"}
    # A marker only counts as the first item.
    assert merged["reviews"]["endStates"] == ["rejected", "+"]
    assert deep_merge(bundled, project)["reviews"]["endStates"] == ["archived", "approved:commit"]


def test_write_yaml_replaces_file_atomically(tmp_path: Path) -> None:
    target = tmp_path / "out" / "records.yaml"
    write_yaml(target, {"reviews": [{"id": "9", "changes": ["8"]}]})
    write_yaml(target, {"reviews": []})

    assert read_yaml(target) == {"reviews": []}
    assert [p.name for p in target.parent.iterdir()] == ["records.yaml"]


def test_read_yaml_default_and_errors(tmp_path: Path) -> None:
    missing = tmp_path / "missing.yaml"
    assert read_yaml(missing, default={"x": 1}) == {"x": 1}
    with pytest.raises(FileNotFoundError):
        read_yaml(missing, raise_on_error=True)

    broken = tmp_path / "broken.yaml"
    broken.write_text("a: [1, 2\n", encoding="utf-8")
    assert read_yaml(broken, default=None) is None
    with pytest.raises(yaml.YAMLError):
        read_yaml(broken, raise_on_error=True)


def test_iter_yaml_files_prefers_yaml_extension(tmp_path: Path) -> None:
    (tmp_path / "b.yml").write_text("b: 1\n", encoding="utf-8")
    (tmp_path / "a.yml").write_text("a: old\n", encoding="utf-8")
    (tmp_path / "a.yaml").write_text("a: new\n", encoding="utf-8")

    assert [p.name for p in iter_yaml_files(tmp_path)] == ["a.yaml", "b.yml"]
    assert merge_yaml_directory({"c": 3}, tmp_path) == {"a": "new", "b": 1, "c": 3}
    assert merge_yaml_directory({"c": 3}, tmp_path / "nope") == {"c": 3}


def test_project_root_from_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("REVIEWFLOW_PROJECT_ROOT", str(tmp_path))
    assert resolve_project_root() == tmp_path.resolve()


def test_project_root_rejects_config_directory(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    config_dir = tmp_path / ".reviewflow"
    config_dir.mkdir()
    monkeypatch.setenv("REVIEWFLOW_PROJECT_ROOT", str(config_dir))

    with pytest.raises(ProjectRootError):
        resolve_project_root()


def test_project_root_from_marker_directory(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / ".reviewflow").mkdir()
    nested = tmp_path / "src" / "pkg"
    nested.mkdir(parents=True)
    monkeypatch.delenv("REVIEWFLOW_PROJECT_ROOT")
    monkeypatch.chdir(nested)

    assert resolve_project_root() == tmp_path.resolve()
