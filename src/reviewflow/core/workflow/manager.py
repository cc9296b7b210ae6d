"""Workflow enforcement for submit, commit and shelve events.

``check_enforced`` runs at submit time, ``check_strict`` at commit time (it
also compares the change content with the review head), and ``check_shelve``
when a change is shelved. Each returns an :class:`EnforcementResult`; policy
violations are reported as statuses, never raised.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from reviewflow.core.config.domains.reviews import ReviewsConfig
from reviewflow.core.config.domains.workflow import WorkflowConfig
from reviewflow.core.exceptions import (
    ChangeNotFoundError,
    InvalidChangeIdError,
    ReviewNotFoundError,
    WorkflowDisabledError,
)

from .blocking import BlockingTestQuery
from .checker import GlobalWorkflowCache, WorkflowChecker
from .exclusions import ExclusionEvaluator
from .keywords import ReviewKeywords, WorkInProgressTag
from .models import (
    REVIEW_STATE_APPROVED,
    REVIEW_STATE_APPROVED_COMMIT,
    AffectedProjects,
    Change,
    EndRuleUpdate,
    EnforcementResult,
    EnforcementStatus,
    MergedWorkflow,
    Project,
    Review,
    RuleId,
    WithoutReviewRule,
    WithReviewRule,
    Workflow,
)
from .resolver import WorkflowResolver
from .services import WorkflowServices

logger = logging.getLogger(__name__)

MESSAGES: Dict[EnforcementStatus, str] = {
    EnforcementStatus.NO_REVIEW: "Change [%s] must be associated with a review",
    EnforcementStatus.NO_APPROVED_REVIEW: "Review [%s] must be approved",
    EnforcementStatus.CREATED_REVIEW: "Review [%s] created for change [%s]",
    EnforcementStatus.LINKED_REVIEW: "Review [%s] linked to change [%s]",
    EnforcementStatus.NO_REVISION: "Review [%s] is in state [%s] and cannot be updated",
    EnforcementStatus.NOT_SAME_CONTENT: "Change [%s] content is different from Review [%s]",
    EnforcementStatus.WORK_IN_PROGRESS_CHANGE: (
        "Change [%s] contains the Work in Progress tag, review will not be created"
    ),
}

Gate = Callable[[Any, Optional[str]], EnforcementResult]


def _result(status: EnforcementStatus, *args: Any) -> EnforcementResult:
    template = MESSAGES.get(status)
    return EnforcementResult.build(status, template % args if template and args else None)


class WorkflowManager:
    """Entry points for workflow enforcement and policy queries.

    One instance serves one request: the global workflow is fetched on first
    use and cached for the instance's lifetime.

    Args:
        services: Collaborator repositories (and an optional change lock).
        workflow_config: ``workflow`` section accessor; loaded from
            ``config``/``repo_root`` when omitted.
        reviews_config: ``reviews`` section accessor; same fallback.
        consume_disabled: When workflows are disabled, gates return ``OK``
            carrying the reason. Pass False to get ``WorkflowDisabledError``.
        config: Already loaded configuration mapping.
        repo_root: Project root used to load configuration.
    """

    def __init__(
        self,
        services: WorkflowServices,
        *,
        workflow_config: Optional[WorkflowConfig] = None,
        reviews_config: Optional[ReviewsConfig] = None,
        consume_disabled: bool = True,
        config: Optional[Mapping[str, Any]] = None,
        repo_root: Optional[Path] = None,
    ) -> None:
        self.services = services
        self.workflow_config = workflow_config or WorkflowConfig(repo_root, config=config)
        self.reviews_config = reviews_config or ReviewsConfig(repo_root, config=config)
        self.consume_disabled = consume_disabled

        self.checker = WorkflowChecker(services.workflows, self.workflow_config)
        self.global_workflow = GlobalWorkflowCache(services.workflows)
        self.resolver = WorkflowResolver(services.projects, services.workflows, self.global_workflow)
        self.exclusions = ExclusionEvaluator(
            services.groups, case_sensitive=self.workflow_config.case_sensitive_users
        )
        self.keywords = ReviewKeywords.from_config(self.reviews_config)
        self.wip_tag = WorkInProgressTag.from_config(self.reviews_config)
        self.blocking = BlockingTestQuery(self.resolver, services.test_runs)

    # ========== Gates ==========

    def check_strict(self, change_id: Any, user: Optional[str] = None) -> EnforcementResult:
        """Commit-time gate: enforced checks plus a content comparison for ``strict``."""
        return self._check_workflow(self.consume_disabled) or self._process_enforced_or_strict(
            change_id, user, check_content=True
        )

    def check_enforced(self, change_id: Any, user: Optional[str] = None) -> EnforcementResult:
        """Submit-time gate."""
        return self._check_workflow(self.consume_disabled) or self._process_enforced_or_strict(
            change_id, user, check_content=False
        )

    def check_shelve(self, change_id: Any, user: Optional[str] = None) -> EnforcementResult:
        """Shelve gate: only the end rules of an associated review apply."""
        return self._check_workflow(self.consume_disabled) or self._process_shelve(change_id, user)

    def guarded(self, gate: Gate, change_id: Any, user: Optional[str] = None) -> EnforcementResult:
        """Run ``gate`` while holding the change lock (when one is configured)."""
        lock = self.services.lock
        if lock is None:
            return gate(change_id, user)
        with lock.acquire(str(change_id)):
            return gate(change_id, user)

    def _check_workflow(self, consume: bool = True) -> Optional[EnforcementResult]:
        try:
            self.checker.check()
            self.global_workflow.get()
        except WorkflowDisabledError as exc:
            logger.info(str(exc))
            if consume:
                return EnforcementResult.build(EnforcementStatus.OK, str(exc))
            raise
        return None

    # ========== Processing ==========

    def _validate_change(self, change_id: Any) -> Tuple[Optional[Change], Optional[EnforcementResult]]:
        try:
            return self.services.changes.fetch_change(change_id), None
        except (ChangeNotFoundError, InvalidChangeIdError) as exc:
            return None, EnforcementResult.build(EnforcementStatus.BAD_CHANGE, str(exc))

    def _find_review(self, change: Change) -> Optional[Review]:
        review = self.services.reviews.find_by_change(change.id)
        if review is None:
            # A keyword in the description may be about to link the change.
            review = self.get_linked_review(change)
        logger.debug("Review for change %s is %s", change.id, review.id if review else "not found")
        return review

    def _merged_for(self, change: Change, review: Optional[Review]) -> MergedWorkflow:
        if review is not None:
            return self.get_merged_workflow(affected=review.affected_projects())
        return self.get_merged_workflow(change=change)

    def _process_shelve(self, change_id: Any, user: Optional[str]) -> EnforcementResult:
        logger.debug("Process workflow for change (shelve) %r", change_id)
        change, bad = self._validate_change(change_id)
        if change is None:
            return bad  # type: ignore[return-value]

        review = self._find_review(change)
        if review is None:
            return EnforcementResult.build(EnforcementStatus.OK)
        workflow = self._merged_for(change, review)
        logger.debug("Merged workflow in process shelve %s", workflow.to_dict())
        if self.is_excluded(workflow, user):
            return EnforcementResult.build(EnforcementStatus.OK)
        return self.check_end_rules(review, workflow)

    def _process_enforced_or_strict(
        self, change_id: Any, user: Optional[str], *, check_content: bool
    ) -> EnforcementResult:
        logger.debug("Process workflow for change (%s) %r", "strict" if check_content else "enforced", change_id)
        change, bad = self._validate_change(change_id)
        if change is None:
            return bad  # type: ignore[return-value]

        review = self._find_review(change)
        workflow = self._merged_for(change, review)
        if self.is_excluded(workflow, user):
            return EnforcementResult.build(EnforcementStatus.OK)
        logger.debug("Merged workflow in process rule %s", workflow.to_dict())

        if review is not None:
            rule = workflow.with_review
            logger.debug("Rule is %s", rule)
            if rule in (WithReviewRule.APPROVED, WithReviewRule.STRICT):
                result = self.check_end_rules(review, workflow)
                if result.status is EnforcementStatus.OK:
                    if check_content and rule is WithReviewRule.STRICT:
                        result = self._check_content(review, change)
                    else:
                        result = self._require_approved(review)
                return result
            return self.check_end_rules(review, workflow)

        rule = workflow.without_review
        logger.debug("Rule is %s", rule)
        if rule is WithoutReviewRule.AUTO_CREATE:
            return self.auto_create_review(change)
        if rule is WithoutReviewRule.REJECT:
            return _result(EnforcementStatus.NO_REVIEW, change.id)
        return EnforcementResult.build(EnforcementStatus.OK)

    def _check_content(self, review: Review, change: Change) -> EnforcementResult:
        if self.services.content.has_content_changed(review, change.id):
            return _result(EnforcementStatus.NOT_SAME_CONTENT, change.id, review.id)
        return EnforcementResult.build(EnforcementStatus.OK)

    def _require_approved(self, review: Review) -> EnforcementResult:
        logger.debug("In require approved, review state is %s", review.state)
        if review.state == REVIEW_STATE_APPROVED:
            return EnforcementResult.build(EnforcementStatus.OK)
        return _result(EnforcementStatus.NO_APPROVED_REVIEW, review.id)

    def auto_create_review(self, change: Change) -> EnforcementResult:
        """Link the change to the review its description names, or create one.

        A change tagged work in progress gets no review.
        """
        review = self.get_linked_review(change)
        if review is not None:
            return _result(EnforcementStatus.LINKED_REVIEW, review.id, change.id)
        if self.wip_tag.has_matches(change.description):
            return _result(EnforcementStatus.WORK_IN_PROGRESS_CHANGE, change.id)
        review = self.services.reviews.create_from_change(change)
        return _result(EnforcementStatus.CREATED_REVIEW, review.id, change.id)

    def get_linked_review(self, change: Change) -> Optional[Review]:
        """Review referenced by a keyword in the change description, if it exists."""
        review_id = self.keywords.review_id(change.description)
        if not review_id:
            return None
        try:
            return self.services.reviews.fetch_review(review_id)
        except ReviewNotFoundError:
            logger.debug("Review %s named in change %s description was not found", review_id, change.id)
            return None

    def check_end_rules(self, review: Review, workflow: Optional[MergedWorkflow] = None) -> EnforcementResult:
        """Refuse updates to a review in an end state when the end rule is ``no_revision``.

        An ``approved`` review is still allowed while a commit is in progress,
        and when ``approved:commit`` (but not ``approved``) is an end state and
        the review has no commits yet.
        """
        if workflow is None:
            workflow = self.get_merged_workflow(affected=review.affected_projects())
        if workflow.end_rule_update is not EndRuleUpdate.NO_REVISION:
            return EnforcementResult.build(EnforcementStatus.OK)

        end_states: List[str] = self.reviews_config.end_states
        state = review.state
        logger.debug("Check end rules, review state [%s], commit count [%d]", state, len(review.commits))
        invalid = state in end_states
        if invalid or state in [entry.split(":", 1)[0] for entry in end_states]:
            if state == REVIEW_STATE_APPROVED and review.commit_in_progress:
                return EnforcementResult.build(EnforcementStatus.OK)
            if (
                invalid
                or REVIEW_STATE_APPROVED_COMMIT not in end_states
                or state != REVIEW_STATE_APPROVED
                or review.commits
            ):
                return _result(EnforcementStatus.NO_REVISION, review.id, state)
        return EnforcementResult.build(EnforcementStatus.OK)

    # ========== Policy queries ==========

    def is_excluded(self, workflow: MergedWorkflow, user_id: Optional[str]) -> bool:
        return self.exclusions.is_excluded(workflow, user_id)

    def find_affected_projects(self, change: Change) -> AffectedProjects:
        """Projects touched by the shelved files, else by the submitted files."""
        affected = self.services.affected.find_affected_projects(change)
        if not affected:
            affected = self.services.affected.find_affected_projects(change, submitted=True)
        return affected

    def get_merged_workflow(
        self,
        change: Optional[Change] = None,
        affected: Optional[AffectedProjects] = None,
        projects: Optional[Mapping[str, Project]] = None,
    ) -> MergedWorkflow:
        """Effective workflow for ``affected`` (or the projects ``change`` touches).

        Raises:
            WorkflowDisabledError: when workflows are disabled.
        """
        self._check_workflow(consume=False)
        if affected is None:
            if change is None:
                raise ValueError("Either a change or affected projects are required")
            affected = self.find_affected_projects(change)
        return self.resolver.merged_workflow(affected, projects)

    def get_global_workflow(self) -> Workflow:
        """Raises WorkflowDisabledError when workflows are disabled."""
        self._check_workflow(consume=False)
        return self.global_workflow.get()

    def get_branch_rule(
        self,
        rule_id: Any,
        project_branches: AffectedProjects,
        projects: Optional[Mapping[str, Project]] = None,
    ) -> Any:
        """Net value of one rule for the given projects/branches.

        Returns None when workflows are disabled. Unknown rule ids raise
        ``UnsupportedRuleError``.
        """
        rid = RuleId.parse(rule_id)
        try:
            self._check_workflow(consume=False)
        except WorkflowDisabledError as exc:
            logger.debug("get_branch_rule disregarding project workflow: %s", exc)
            return None
        return self.resolver.resolve_single_rule(rid, project_branches, projects)

    # ========== Tests ==========

    def get_blocking_tests(self, review: Review, affected: AffectedProjects, state: str) -> Set[str]:
        return self.blocking.get_blocking_tests(review, affected, state)

    def is_blocked_by_tests(self, review: Review, affected: AffectedProjects, state: str) -> bool:
        return self.blocking.is_blocked_by_tests(review, affected, state)

    def get_tests_for_workflows(
        self, workflow_ids: Iterable[str], events: Optional[Iterable[str]] = None
    ) -> Dict[str, List[str]]:
        return self.blocking.get_tests_for_workflows(workflow_ids, events)

    def get_tests_for_affected(
        self, affected: AffectedProjects, events: Optional[Iterable[str]] = None
    ) -> Dict[str, List[str]]:
        """Tests by event for the affected projects' workflows and the global workflow."""
        return self.blocking.get_tests_for_workflows(self.blocking.workflow_ids(affected), events)


__all__ = ["WorkflowManager", "MESSAGES"]
