"""Branch sync followed by pull request publication, as one linear run."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional

from branchsync.models import (
    AnnotationResult,
    ContentChange,
    PullRequestMetadata,
    PullRequestRef,
)
from branchsync.services.branch_sync import BranchSynchronizer, SyncResult
from branchsync.services.context import SyncContext
from branchsync.services.exceptions import PartialAnnotationError, WorkflowError
from branchsync.services.publish import PullRequestPublisher
from branchsync.services.steps import StepRecorder

logger = logging.getLogger(__name__)


@dataclass
class WorkflowOutcome:
    sync: Optional[SyncResult] = None
    pull_request: Optional[PullRequestRef] = None
    annotations: Optional[AnnotationResult] = None
    completed_steps: List[str] = field(default_factory=list)
    error: Optional[WorkflowError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def last_completed_step(self) -> Optional[str]:
        return self.completed_steps[-1] if self.completed_steps else None

    @property
    def partial(self) -> bool:
        """Pull request exists but at least one annotation failed."""
        return isinstance(self.error, PartialAnnotationError)


class SyncAndPublishWorkflow:
    def __init__(
        self,
        context: SyncContext,
        base_branch: str,
        target_branch: str,
        change: ContentChange,
        pr_meta: PullRequestMetadata,
    ) -> None:
        self.context = context
        self.base_branch = base_branch
        self.target_branch = target_branch
        self.change = change
        self.pr_meta = pr_meta
        self.steps = StepRecorder()

    def run(self) -> WorkflowOutcome:
        outcome = WorkflowOutcome(completed_steps=self.steps.completed)
        synchronizer = BranchSynchronizer(
            self.context, self.base_branch, self.target_branch, self.change, self.steps
        )
        publisher = PullRequestPublisher(
            self.context, self.base_branch, self.target_branch, self.pr_meta, self.steps
        )

        try:
            outcome.sync = synchronizer.sync()
            outcome.pull_request, outcome.annotations = publisher.publish()
        except PartialAnnotationError as exc:
            outcome.pull_request = exc.pull_request
            outcome.annotations = exc.annotations
            outcome.error = exc
        except WorkflowError as exc:
            outcome.error = exc

        if outcome.ok:
            logger.info(
                "Workflow completed",
                extra={
                    "repository": self.context.full_name,
                    "branch_created": outcome.sync.branch_created,
                    "commit_sha": outcome.sync.commit_sha,
                    "pull_request": outcome.pull_request.number,
                },
            )
        else:
            logger.error(
                "Workflow stopped",
                extra={
                    "repository": self.context.full_name,
                    "failed_step": outcome.error.step,
                    "last_completed_step": outcome.last_completed_step,
                    "error": str(outcome.error),
                },
            )
        return outcome


def sync_and_publish(
    context: SyncContext,
    base_branch: str,
    target_branch: str,
    change: ContentChange,
    pr_meta: PullRequestMetadata,
) -> WorkflowOutcome:
    return SyncAndPublishWorkflow(
        context, base_branch, target_branch, change, pr_meta
    ).run()
