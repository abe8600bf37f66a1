"""Run-to-completion entrypoint: authenticate, sync the branch, open the PR."""

from __future__ import annotations

import logging
from typing import Optional

import httpx
from pydantic import ValidationError

from branchsync.core.config import Settings, get_settings
from branchsync.core.logging import setup_logging
from branchsync.github_auth import authenticate_with_restart
from branchsync.github_client import GitHubClient
from branchsync.github_exceptions import AuthError, GithubConfigurationError
from branchsync.services import SyncContext, WorkflowOutcome, sync_and_publish

logger = logging.getLogger("branchsync")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_PARTIAL = 2


def run(settings: Settings, transport: httpx.BaseTransport | None = None) -> WorkflowOutcome:
    """Execute the full job against already validated settings."""
    token = authenticate_with_restart(
        settings.identity(),
        settings.installation_account,
        api_url=settings.github.api_url,
        expires_in=settings.github.jwt_expiration_seconds,
        timeout=settings.github.timeout_seconds,
        transport=transport,
    )
    with GitHubClient(
        token=token.bearer(),
        api_url=settings.github.api_url,
        timeout=settings.github.timeout_seconds,
        transport=transport,
    ) as client:
        context = SyncContext(
            client=client,
            owner=settings.repository.owner,
            repo=settings.repository.name,
        )
        return sync_and_publish(
            context,
            base_branch=settings.repository.base_branch,
            target_branch=settings.repository.target_branch,
            change=settings.content_change(),
            pr_meta=settings.pull_request_metadata(),
        )


def exit_code(outcome: WorkflowOutcome) -> int:
    if outcome.ok:
        return EXIT_OK
    if outcome.partial:
        return EXIT_PARTIAL
    return EXIT_FAILED


def main(settings: Optional[Settings] = None) -> int:
    try:
        settings = settings or get_settings()
    except (ValidationError, ValueError, GithubConfigurationError) as exc:
        setup_logging()
        logger.error("Invalid configuration", extra={"error": str(exc)})
        return EXIT_FAILED

    setup_logging(settings.logging.level)
    try:
        settings.validate_required()
    except GithubConfigurationError as exc:
        logger.error("Invalid configuration", extra={"error": str(exc)})
        return EXIT_FAILED

    try:
        outcome = run(settings)
    except AuthError as exc:
        logger.error(
            "GitHub App authentication failed",
            extra={"error": str(exc), "status_code": exc.status_code},
        )
        return EXIT_FAILED
    except GithubConfigurationError as exc:
        logger.error("Invalid GitHub App credentials", extra={"error": str(exc)})
        return EXIT_FAILED

    if outcome.pull_request is not None:
        logger.info(
            "Pull request available",
            extra={"pull_request": outcome.pull_request.number, "url": outcome.pull_request.url},
        )
    if not outcome.ok:
        logger.error(
            "Run finished with errors",
            extra={
                "last_completed_step": outcome.last_completed_step,
                "error_type": type(outcome.error).__name__,
            },
        )
    return exit_code(outcome)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
