from __future__ import annotations

import pytest

from reviewflow.core.config import LockingConfig, LoggingConfig, ReviewsConfig, WorkflowConfig


def test_workflow_config_defaults(repo_root) -> None:
    cfg = WorkflowConfig(repo_root)

    assert cfg.enabled is True
    assert cfg.global_workflow_name == "Global Workflow"
    assert cfg.case_sensitive_users is True
    assert cfg.rules["end_rules"]["update"]["rule"] == "no_checking"


def test_workflow_rules_are_copied(config_dict) -> None:
    cfg = WorkflowConfig(config=config_dict)
    cfg.rules["auto_approve"]["rule"] = "votes"

    assert WorkflowConfig(config=config_dict).rules["auto_approve"]["rule"] == "never"


def test_workflow_rules_must_be_mapping(config_dict) -> None:
    config_dict["workflow"]["rules"] = ["nope"]
    with pytest.raises(RuntimeError):
        WorkflowConfig(config=config_dict).rules


def test_reviews_config(config_dict) -> None:
    config_dict["reviews"]["endStates"] = ["rejected", "", None, "approved:commit"]
    cfg = ReviewsConfig(config=config_dict)

    assert cfg.end_states == ["rejected", "approved:commit"]
    assert list(cfg.patterns) == ["octothorpe", "leading-square", "trailing-square"]
    assert "#wip" in cfg.work_in_progress


def test_locking_config_resolves_relative_directory(repo_root) -> None:
    cfg = LockingConfig(repo_root)

    assert cfg.directory == repo_root / ".reviewflow" / "_locks"
    assert cfg.timeout_seconds == 30.0
    assert cfg.poll_interval_seconds == 0.1


def test_logging_config(repo_root, config_dict) -> None:
    assert LoggingConfig(repo_root).level == "INFO"
    assert LoggingConfig(repo_root).path is None

    config_dict["logging"] = {"level": "debug", "path": "logs/reviewflow.log"}
    cfg = LoggingConfig(repo_root, config=config_dict)

    assert cfg.level == "DEBUG"
    assert cfg.path == repo_root / "logs" / "reviewflow.log"


def test_missing_section_reads_as_empty(repo_root) -> None:
    cfg = LockingConfig(repo_root, config={})
    assert cfg.section == {}
    assert cfg.timeout_seconds == 30.0
