from .branch_sync import BranchSynchronizer, SyncResult
from .context import SyncContext
from .exceptions import (
    AnnotationError,
    BaseBranchNotFoundError,
    BranchAlreadyExistsError,
    ContentWriteError,
    DuplicatePullRequestError,
    NonFastForwardError,
    PartialAnnotationError,
    PullRequestCreationError,
    ReferenceReadError,
    WorkflowError,
)
from .publish import PullRequestPublisher
from .steps import StepRecorder
from .workflow import SyncAndPublishWorkflow, WorkflowOutcome, sync_and_publish

__all__ = [
    "BranchSynchronizer",
    "SyncResult",
    "SyncContext",
    "PullRequestPublisher",
    "StepRecorder",
    "SyncAndPublishWorkflow",
    "WorkflowOutcome",
    "sync_and_publish",
    "WorkflowError",
    "BaseBranchNotFoundError",
    "BranchAlreadyExistsError",
    "NonFastForwardError",
    "ContentWriteError",
    "DuplicatePullRequestError",
    "PullRequestCreationError",
    "PartialAnnotationError",
    "ReferenceReadError",
    "AnnotationError",
]
