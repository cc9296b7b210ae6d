"""Workflow rule resolution and submit/commit/shelve enforcement.

Usage:
    from reviewflow.core.repository import load_record_file
    from reviewflow.core.workflow import WorkflowManager, WorkflowServices

    store = load_record_file(Path("records.yaml"))
    manager = WorkflowManager(WorkflowServices.from_store(store))
    result = manager.check_enforced("42", "bruno")
"""
from __future__ import annotations

from .blocking import BlockingTestQuery
from .checker import GlobalWorkflowCache, WorkflowChecker
from .exclusions import ExclusionEvaluator, user_matches
from .keywords import KeywordMatch, ReviewKeywords, WorkInProgressTag
from .locking import FileChangeLock, InProcessChangeLock
from .manager import MESSAGES, WorkflowManager
from .merge import MergeAccumulator, merge_rule, merge_workflows
from .models import (
    GLOBAL_WORKFLOW_ID,
    Change,
    EnforcementResult,
    EnforcementStatus,
    MergedWorkflow,
    Project,
    Review,
    RuleId,
    RuleMode,
    RuleValue,
    Workflow,
)
from .resolver import GLOBAL_FALLBACK_RULES, WorkflowResolver
from .services import WorkflowServices

__all__ = [
    "WorkflowManager",
    "WorkflowServices",
    "WorkflowResolver",
    "WorkflowChecker",
    "GlobalWorkflowCache",
    "ExclusionEvaluator",
    "user_matches",
    "BlockingTestQuery",
    "ReviewKeywords",
    "KeywordMatch",
    "WorkInProgressTag",
    "InProcessChangeLock",
    "FileChangeLock",
    "MergeAccumulator",
    "merge_rule",
    "merge_workflows",
    "MESSAGES",
    "GLOBAL_FALLBACK_RULES",
    "GLOBAL_WORKFLOW_ID",
    "Change",
    "EnforcementResult",
    "EnforcementStatus",
    "MergedWorkflow",
    "Project",
    "Review",
    "RuleId",
    "RuleMode",
    "RuleValue",
    "Workflow",
]
