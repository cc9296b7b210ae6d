from __future__ import annotations

from typing import Any, Dict, Mapping


class ReviewflowError(Exception):
    """Base exception for reviewflow."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            # Store a shallow copy to avoid accidental mutation.
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class WorkflowDisabledError(ReviewflowError):
    """Raised when the workflow feature is switched off in configuration."""

    def __init__(self, message: str = "Workflows are not enabled", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message, context=context)


class RecordNotFoundError(ReviewflowError, LookupError):
    """Raised when a record cannot be found by id."""

    record_type = "record"

    def __init__(
        self,
        message: str = "",
        *,
        record_id: Any = None,
        context: Mapping[str, Any] | None = None,
    ) -> None:
        ctx = dict(context or {})
        if record_id is not None:
            ctx["id"] = str(record_id)
        if not message:
            message = f"Cannot fetch {self.record_type} {record_id}. Record does not exist."
        ReviewflowError.__init__(self, message, context=ctx)
        self.record_id = record_id


class ChangeNotFoundError(RecordNotFoundError):
    """Raised when a change cannot be found."""

    record_type = "change"


class ProjectNotFoundError(RecordNotFoundError):
    """Raised when a project cannot be found."""

    record_type = "project"


class WorkflowNotFoundError(RecordNotFoundError):
    """Raised when a workflow cannot be found."""

    record_type = "workflow"


class ReviewNotFoundError(RecordNotFoundError):
    """Raised when a review cannot be found."""

    record_type = "review"


class GroupNotFoundError(RecordNotFoundError):
    """Raised when a group named in an exclusion list does not exist."""

    record_type = "group"


class InvalidChangeIdError(ReviewflowError, ValueError):
    """Raised when a change id is not well formed."""

    def __init__(self, message: str = "Must supply a valid id to fetch.", *, context: Mapping[str, Any] | None = None) -> None:
        ReviewflowError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class UnsupportedRuleError(ReviewflowError, ValueError):
    """Raised when an unknown rule id is passed to the merge functions."""

    def __init__(self, rule_id: Any) -> None:
        message = f"Unsupported rule id [{rule_id}]"
        ReviewflowError.__init__(self, message, context={"rule_id": str(rule_id)})
        ValueError.__init__(self, message)


class WorkflowValidationError(ReviewflowError, ValueError):
    """Raised when a workflow or project record is malformed."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        ReviewflowError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class LockTimeoutError(ReviewflowError, TimeoutError):
    """Raised when a change lock cannot be acquired within the timeout."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        ReviewflowError.__init__(self, message, context=context)
        TimeoutError.__init__(self, message)


__all__ = [
    "ReviewflowError",
    "WorkflowDisabledError",
    "RecordNotFoundError",
    "ChangeNotFoundError",
    "ProjectNotFoundError",
    "WorkflowNotFoundError",
    "ReviewNotFoundError",
    "GroupNotFoundError",
    "InvalidChangeIdError",
    "UnsupportedRuleError",
    "WorkflowValidationError",
    "LockTimeoutError",
]
