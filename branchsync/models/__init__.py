"""Value objects shared by the token exchange and the sync workflow"""

from .git_objects import BranchReference, ContentChange, TreeEntry, branch_ref
from .github_installation import (
    AppAssertion,
    ApplicationIdentity,
    Installation,
    InstallationToken,
)
from .pull_request import (
    AnnotationResult,
    AnnotationStatus,
    FieldAnnotation,
    PullRequestMetadata,
    PullRequestRef,
)

__all__ = [
    "AppAssertion",
    "ApplicationIdentity",
    "Installation",
    "InstallationToken",
    "BranchReference",
    "ContentChange",
    "TreeEntry",
    "branch_ref",
    "PullRequestMetadata",
    "PullRequestRef",
    "AnnotationResult",
    "FieldAnnotation",
    # Enums
    "AnnotationStatus",
]
