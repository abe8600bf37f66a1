"""Open the pull request and annotate it."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from branchsync.github_exceptions import GithubValidationError
from branchsync.models import (
    AnnotationResult,
    AnnotationStatus,
    FieldAnnotation,
    PullRequestMetadata,
    PullRequestRef,
)
from branchsync.services.context import SyncContext
from branchsync.services.exceptions import (
    AnnotationError,
    DuplicatePullRequestError,
    PartialAnnotationError,
    PullRequestCreationError,
    WorkflowError,
)
from branchsync.services.steps import StepRecorder

logger = logging.getLogger(__name__)


def _is_duplicate_pull_request(exc: GithubValidationError) -> bool:
    return "pull request already exists" in exc.message.lower()


class PullRequestPublisher:
    def __init__(
        self,
        context: SyncContext,
        base_branch: str,
        target_branch: str,
        metadata: PullRequestMetadata,
        steps: Optional[StepRecorder] = None,
    ) -> None:
        self.context = context
        self.client = context.client
        self.base_branch = base_branch
        self.target_branch = target_branch
        self.metadata = metadata
        self.steps = steps or StepRecorder()

    def publish(self) -> tuple[PullRequestRef, AnnotationResult]:
        """Create the pull request, then apply reviewers, assignee and label.

        Annotation failures never undo the pull request: they are raised
        together as a ``PartialAnnotationError`` that carries the reference.
        """
        pull_request = self.create_pull_request()
        annotations = self.annotate(pull_request)
        if annotations.failures():
            raise PartialAnnotationError(pull_request, annotations)
        return pull_request, annotations

    def create_pull_request(self) -> PullRequestRef:
        owner, repo = self.context.owner, self.context.repo
        with self.steps.step(
            "create_pull_request",
            error_cls=PullRequestCreationError,
            head=self.target_branch,
            base=self.base_branch,
        ):
            try:
                payload = self.client.create_pull_request(
                    owner,
                    repo,
                    title=self.metadata.title,
                    head=self.target_branch,
                    base=self.base_branch,
                    body=self.metadata.body,
                )
            except GithubValidationError as exc:
                if not _is_duplicate_pull_request(exc):
                    raise
                raise DuplicatePullRequestError(
                    "An open pull request already exists for this head and base",
                    step="create_pull_request",
                    context={
                        "repository": self.context.full_name,
                        "head": self.target_branch,
                        "base": self.base_branch,
                    },
                ) from exc
        pull_request = PullRequestRef.from_api(payload)
        logger.info(
            "Opened pull request",
            extra={"pull_request": pull_request.number, "url": pull_request.url},
        )
        return pull_request

    def annotate(self, pull_request: PullRequestRef) -> AnnotationResult:
        owner, repo = self.context.owner, self.context.repo
        number = pull_request.number
        meta = self.metadata

        return AnnotationResult(
            reviewers=self._apply(
                "request_reviewers",
                bool(meta.reviewers),
                lambda: self.client.request_reviewers(owner, repo, number, meta.reviewers),
                number,
            ),
            assignee=self._apply(
                "add_assignee",
                bool(meta.assignee),
                lambda: self.client.add_assignees(owner, repo, number, [meta.assignee]),
                number,
            ),
            label=self._apply(
                "add_label",
                bool(meta.label),
                lambda: self.client.add_labels(owner, repo, number, [meta.label]),
                number,
            ),
        )

    def _apply(
        self,
        step: str,
        configured: bool,
        call: Callable[[], object],
        number: int,
    ) -> FieldAnnotation:
        if not configured:
            return FieldAnnotation(status=AnnotationStatus.SKIPPED)
        try:
            with self.steps.step(step, error_cls=AnnotationError, pull_request=number):
                call()
        except WorkflowError as exc:
            return self._failed(step, number, exc)
        return FieldAnnotation(status=AnnotationStatus.APPLIED)

    @staticmethod
    def _failed(step: str, number: int, exc: Exception) -> FieldAnnotation:
        logger.warning(
            "Pull request annotation failed",
            extra={"step": step, "pull_request": number, "error": str(exc)},
        )
        return FieldAnnotation(status=AnnotationStatus.FAILED, error=str(exc))
