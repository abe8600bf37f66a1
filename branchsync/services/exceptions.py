"""Errors raised by the branch sync and publish steps.

Every error names the step that failed and the identifiers (refs, SHAs,
pull request number) needed to inspect or repair the remote state by hand.
"""

from typing import Any, Dict, Optional

from branchsync.models import AnnotationResult, PullRequestRef


class WorkflowError(Exception):
    def __init__(
        self,
        message: str,
        step: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.step = step
        self.context = context or {}

    def __str__(self) -> str:
        if not self.context:
            return f"[{self.step}] {self.message}"
        details = ", ".join(f"{key}={value}" for key, value in self.context.items())
        return f"[{self.step}] {self.message} ({details})"


class BaseBranchNotFoundError(WorkflowError):
    pass


class BranchAlreadyExistsError(WorkflowError):
    pass


class NonFastForwardError(WorkflowError):
    pass


class ReferenceReadError(WorkflowError):
    pass


class ContentWriteError(WorkflowError):
    pass


class DuplicatePullRequestError(WorkflowError):
    pass


class PullRequestCreationError(WorkflowError):
    pass


class AnnotationError(WorkflowError):
    pass


class PartialAnnotationError(WorkflowError):
    """The pull request exists but some annotations could not be applied."""

    def __init__(self, pull_request: PullRequestRef, annotations: AnnotationResult):
        self.pull_request = pull_request
        self.annotations = annotations
        self.failures = annotations.failures()
        super().__init__(
            f"Failed to apply {', '.join(sorted(self.failures))} to pull request",
            step="annotate_pull_request",
            context={"pull_request": pull_request.number, "url": pull_request.url},
        )
