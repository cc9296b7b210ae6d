"""Workflow resolution for the projects and branches a change touches.

The resolver walks ``{project_id: [branch_id, ...]}``, picks each branch's
effective workflow id (branch override, else project workflow), folds every
distinct workflow once through the rule merger, then overlays the global
workflow field by field according to its mode.

Missing projects and workflows are soft failures: they are logged and the
walk continues.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Mapping, Optional, Tuple

from reviewflow.core.exceptions import ProjectNotFoundError, WorkflowNotFoundError

from .merge import MergeAccumulator, merge_rule, merge_union
from .models import (
    AffectedProjects,
    AutoApproveRule,
    CountedVotesRule,
    EndRuleUpdate,
    MergedWorkflow,
    Project,
    RuleId,
    RuleMode,
    RuleValue,
    WithoutReviewRule,
    WithReviewRule,
    Workflow,
)

if TYPE_CHECKING:
    from reviewflow.core.repository.protocols import ProjectRepository, WorkflowRepository

    from .checker import GlobalWorkflowCache

logger = logging.getLogger(__name__)

# Used for any field the global workflow record does not declare.
GLOBAL_FALLBACK_RULES: Dict[RuleId, RuleValue] = {
    RuleId.WITH_REVIEW: RuleValue(WithReviewRule.NO_CHECKING),
    RuleId.WITHOUT_REVIEW: RuleValue(WithoutReviewRule.NO_CHECKING),
    RuleId.END_RULE_UPDATE: RuleValue(EndRuleUpdate.NO_CHECKING),
    RuleId.AUTO_APPROVE: RuleValue(AutoApproveRule.NEVER),
    RuleId.COUNTED_VOTES: RuleValue(CountedVotesRule.ANYONE),
    RuleId.GROUP_EXCLUSIONS: RuleValue((), RuleMode.POLICY),
    RuleId.USER_EXCLUSIONS: RuleValue((), RuleMode.POLICY),
}

PreloadedProjects = Optional[Mapping[str, Project]]


class WorkflowResolver:
    """Merge project/branch workflows and apply the global workflow."""

    def __init__(
        self,
        projects: "ProjectRepository",
        workflows: "WorkflowRepository",
        global_workflow: "GlobalWorkflowCache",
    ) -> None:
        self.projects = projects
        self.workflows = workflows
        self.global_workflow = global_workflow

    # ----- walking -----

    def _fetch_project(self, project_id: str, preloaded: PreloadedProjects) -> Optional[Project]:
        if preloaded and project_id in preloaded:
            return preloaded[project_id]
        try:
            return self.projects.fetch_project(project_id)
        except ProjectNotFoundError:
            logger.info("Project [%s] is not found, falling back to defaults.", project_id)
            return None

    def _iter_workflow_ids(
        self, affected: AffectedProjects, preloaded: PreloadedProjects
    ) -> Iterator[Tuple[str, str, Optional[str]]]:
        """Yield ``(workflow_id, project_id, branch_id)`` for every branch carrying a workflow.

        A project listed without branches contributes its own workflow.
        """
        for project_id, branches in (affected or {}).items():
            project = self._fetch_project(str(project_id), preloaded)
            if project is None:
                continue
            for branch_id in (list(branches or []) or [None]):
                workflow_id = project.workflow_for(None if branch_id is None else str(branch_id))
                if workflow_id:
                    yield workflow_id, project.id, branch_id

    def fold_for_projects(
        self, affected: AffectedProjects, projects: PreloadedProjects = None
    ) -> Optional[MergeAccumulator]:
        """Merge the specific workflows only (no global overlay).

        Returns None when no project or branch carried a workflow id.
        """
        acc = MergeAccumulator()
        carried = False
        merged_ids: List[str] = []
        for workflow_id, project_id, branch_id in self._iter_workflow_ids(affected, projects):
            carried = True
            if workflow_id in merged_ids:
                logger.debug(
                    "Skipping workflow [%s] for project [%s] branch [%s], already merged",
                    workflow_id,
                    project_id,
                    branch_id,
                )
                continue
            merged_ids.append(workflow_id)
            try:
                workflow = self.workflows.fetch_workflow(workflow_id)
            except WorkflowNotFoundError:
                logger.warning(
                    "Workflow %s for project %s branch %s not found", workflow_id, project_id, branch_id
                )
                continue
            logger.debug("Merging workflow %s for project %s branch %s", workflow_id, project_id, branch_id)
            acc.merge_workflow(workflow)
        return acc if carried else None

    # ----- global overlay -----

    def global_rule(self, rule_id: RuleId) -> RuleValue:
        rid = RuleId.parse(rule_id)
        return self.global_workflow.get().rule(rid) or GLOBAL_FALLBACK_RULES[rid]

    def overlay_value(self, rule_id: RuleId, current: Any) -> Any:
        """Apply the global workflow's value for one field to ``current``.

        ``policy``: merged with the field's own merge function (exclusion lists
        are replaced). ``default``: fills an unset field (exclusion lists are
        unioned).
        """
        rid = RuleId.parse(rule_id)
        global_value = self.global_rule(rid)
        if rid.is_list:
            if global_value.mode is RuleMode.POLICY:
                return tuple(global_value.rule)
            return merge_union(current, global_value.rule)
        if global_value.mode is RuleMode.POLICY:
            return merge_rule(rid, current, global_value.rule)
        return current if current is not None else global_value.rule

    def _overlay(self, acc: MergeAccumulator) -> MergedWorkflow:
        for rule_id in RuleId:
            acc.set(rule_id, self.overlay_value(rule_id, acc.get(rule_id)))
        return acc.to_merged()

    def global_values(self) -> MergedWorkflow:
        """The global workflow's own values with modes dropped."""
        acc = MergeAccumulator()
        for rule_id in RuleId:
            acc.set(rule_id, self.global_rule(rule_id).rule)
        return acc.to_merged()

    # ----- public operations -----

    def resolve_for_projects(
        self, affected: AffectedProjects, projects: PreloadedProjects = None
    ) -> Optional[MergedWorkflow]:
        """Merged specific workflows with the global overlay applied.

        Returns None when no project or branch carried a workflow id, which
        tells "no opinion" apart from "permissive defaults".
        """
        acc = self.fold_for_projects(affected, projects)
        if acc is None:
            return None
        return self._overlay(acc)

    def merged_workflow(
        self, affected: AffectedProjects, projects: PreloadedProjects = None
    ) -> MergedWorkflow:
        """Like :meth:`resolve_for_projects` but falls back to the global values."""
        merged = self.resolve_for_projects(affected, projects)
        if merged is None:
            logger.debug("No specific workflow for %s, using global workflow", dict(affected or {}))
            return self.global_values()
        return merged

    def resolve_single_rule(
        self, rule_id: Any, project_branches: AffectedProjects, projects: PreloadedProjects = None
    ) -> Any:
        """Net value of one rule for the given projects/branches after the overlay.

        Raises:
            UnsupportedRuleError: if ``rule_id`` is unknown.
        """
        rid = RuleId.parse(rule_id)
        logger.info("Getting '%s' rule for %s", rid.value, dict(project_branches or {}))
        ids = list(dict.fromkeys(wid for wid, _, _ in self._iter_workflow_ids(project_branches, projects)))
        value: Any = None
        workflows = self.workflows.fetch_workflows(ids)
        found = {w.id for w in workflows}
        for missing in (wid for wid in ids if wid not in found):
            logger.warning("Workflow %s not found, skipping it for rule %s", missing, rid.value)
        for workflow in workflows:
            logger.debug("Processing %s", workflow.id)
            declared = workflow.rule(rid)
            if declared is not None:
                value = merge_rule(rid, value, declared.rule)
        return self.overlay_value(rid, value)

    def workflow_ids_for_affected(self, affected: AffectedProjects) -> List[str]:
        """Workflow ids governing the affected projects, for test lookups.

        Branch workflows that differ from their project's workflow replace
        it; the project workflow is used only when none of its listed
        branches carries a different one.
        """
        ids: List[str] = []
        for project_id, branches in (affected or {}).items():
            project = self._fetch_project(str(project_id), None)
            if project is None:
                continue
            has_branch_workflow = False
            for branch_id in branches or []:
                branch_workflow = project.workflow_for(str(branch_id))
                if branch_workflow and branch_workflow != project.workflow_id:
                    has_branch_workflow = True
                    ids.append(branch_workflow)
            if project.workflow_id and not has_branch_workflow:
                ids.append(project.workflow_id)
        return list(dict.fromkeys(ids))

    def fetch_workflows(self, workflow_ids: List[str]) -> List[Workflow]:
        return self.workflows.fetch_workflows(workflow_ids)


__all__ = ["WorkflowResolver", "GLOBAL_FALLBACK_RULES"]
