"""Ensure the target branch exists and carries the requested content."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from branchsync.github_exceptions import (
    GithubConflictError,
    GithubValidationError,
)
from branchsync.models import BranchReference, ContentChange, TreeEntry, branch_ref
from branchsync.services.context import SyncContext
from branchsync.services.exceptions import (
    BaseBranchNotFoundError,
    BranchAlreadyExistsError,
    NonFastForwardError,
    ReferenceReadError,
)
from branchsync.services.steps import StepRecorder

logger = logging.getLogger(__name__)

# A race on either ref write is retried once after re-reading the remote ref
MAX_REF_ATTEMPTS = 2


@dataclass
class SyncResult:
    ref: str
    branch_created: bool
    commit_sha: Optional[str]
    attempts: int = 1


def _find_reference(
    references: Iterable[BranchReference], ref: str
) -> Optional[BranchReference]:
    return next((reference for reference in references if reference.ref == ref), None)


def _is_reference_exists(exc: Exception) -> bool:
    if isinstance(exc, GithubConflictError):
        return True
    return isinstance(exc, GithubValidationError) and "already exists" in exc.message.lower()


def _is_non_fast_forward(exc: Exception) -> bool:
    if isinstance(exc, GithubConflictError):
        return True
    return isinstance(exc, GithubValidationError) and "fast forward" in exc.message.lower()


class BranchSynchronizer:
    """
    Two-state branch update.

    Target absent: branch it off the base tip and write the file through the
    contents endpoint. Target present: append one commit built from a blob
    and a tree layered on the current tip's tree, then fast-forward the ref.
    """

    def __init__(
        self,
        context: SyncContext,
        base_branch: str,
        target_branch: str,
        change: ContentChange,
        steps: Optional[StepRecorder] = None,
    ) -> None:
        self.context = context
        self.client = context.client
        self.base_ref = branch_ref(base_branch)
        self.target_ref = branch_ref(target_branch)
        self.target_branch = target_branch
        self.change = change
        self.steps = steps or StepRecorder()

    def sync(self) -> SyncResult:
        references = self.list_references()
        if _find_reference(references, self.target_ref) is None:
            base = _find_reference(references, self.base_ref)
            if base is None:
                raise BaseBranchNotFoundError(
                    "Base branch does not exist",
                    step="list_references",
                    context={"repository": self.context.full_name, "ref": self.base_ref},
                )
            try:
                self.create_branch(base)
            except BranchAlreadyExistsError:
                # Someone created the branch after our check; fall back to appending
                if _find_reference(self.list_references(), self.target_ref) is None:
                    raise
                logger.warning(
                    "Target branch appeared concurrently, appending a commit instead",
                    extra={"ref": self.target_ref},
                )
            else:
                commit_sha = self.write_initial_content()
                return SyncResult(
                    ref=self.target_ref, branch_created=True, commit_sha=commit_sha
                )
        return self.append_commit()

    def list_references(self) -> list[BranchReference]:
        owner, repo = self.context.owner, self.context.repo
        with self.steps.step(
            "list_references",
            error_cls=ReferenceReadError,
            repository=self.context.full_name,
        ):
            try:
                payload = self.client.list_references(owner, repo)
            except GithubConflictError:
                # GitHub answers 409 for a repository without any commits
                payload = []
        return [BranchReference.from_api(item) for item in payload]

    def create_branch(self, base: BranchReference) -> BranchReference:
        owner, repo = self.context.owner, self.context.repo
        with self.steps.step("create_branch", ref=self.target_ref, sha=base.sha):
            try:
                payload = self.client.create_reference(owner, repo, self.target_ref, base.sha)
            except (GithubValidationError, GithubConflictError) as exc:
                if not _is_reference_exists(exc):
                    raise
                raise BranchAlreadyExistsError(
                    "Target branch already exists",
                    step="create_branch",
                    context={"ref": self.target_ref, "base_sha": base.sha},
                ) from exc
        return BranchReference.from_api(payload)

    def write_initial_content(self) -> Optional[str]:
        owner, repo = self.context.owner, self.context.repo
        with self.steps.step(
            "write_initial_content", path=self.change.path, ref=self.target_ref
        ):
            payload = self.client.create_file(
                owner,
                repo,
                path=self.change.path,
                message=self.change.bootstrap_message,
                content=self.change.bootstrap_content,
                branch=self.target_branch,
            )
        return (payload.get("commit") or {}).get("sha")

    def append_commit(self) -> SyncResult:
        owner, repo = self.context.owner, self.context.repo
        blob_sha: Optional[str] = None

        attempt = 0
        while True:
            attempt += 1
            with self.steps.step(
                "get_target_reference", error_cls=ReferenceReadError, ref=self.target_ref
            ):
                tip = BranchReference.from_api(
                    self.client.get_reference(owner, repo, self.target_ref)
                )
            with self.steps.step("get_commit", error_cls=ReferenceReadError, sha=tip.sha):
                tip_commit = self.client.get_commit(owner, repo, tip.sha)

            if blob_sha is None:
                with self.steps.step("create_blob", path=self.change.path):
                    blob_sha = self.client.create_blob(
                        owner, repo, self.change.content, encoding="utf-8"
                    )["sha"]

            entry = TreeEntry(path=self.change.path, sha=blob_sha, mode=self.change.mode)
            base_tree = tip_commit["tree"]["sha"]
            with self.steps.step("create_tree", base_tree=base_tree):
                tree_sha = self.client.create_tree(
                    owner, repo, [entry.model_dump()], base_tree=base_tree
                )["sha"]

            with self.steps.step("create_commit", tree=tree_sha, parent=tip.sha):
                commit_sha = self.client.create_commit(
                    owner, repo, self.change.message, tree_sha, [tip.sha]
                )["sha"]

            try:
                self.update_reference(tip, commit_sha)
            except NonFastForwardError:
                if attempt >= MAX_REF_ATTEMPTS:
                    raise
                logger.warning(
                    "Target branch moved during update, rebuilding commit on new tip",
                    extra={"ref": self.target_ref, "expected_sha": tip.sha},
                )
                continue
            return SyncResult(
                ref=self.target_ref,
                branch_created=False,
                commit_sha=commit_sha,
                attempts=attempt,
            )

    def update_reference(self, expected: BranchReference, commit_sha: str) -> None:
        owner, repo = self.context.owner, self.context.repo
        with self.steps.step(
            "update_reference", ref=self.target_ref, sha=commit_sha, expected_sha=expected.sha
        ):
            try:
                self.client.update_reference(
                    owner, repo, self.target_ref, commit_sha, force=False
                )
            except (GithubValidationError, GithubConflictError) as exc:
                if not _is_non_fast_forward(exc):
                    raise
                raise NonFastForwardError(
                    "Target branch moved since it was read",
                    step="update_reference",
                    context={
                        "ref": self.target_ref,
                        "expected_sha": expected.sha,
                        "commit_sha": commit_sha,
                    },
                ) from exc
