"""Step bookkeeping shared by the sync and publish phases."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional, Type

from opentelemetry import trace

from branchsync.github_exceptions import GithubApiError, GithubError
from branchsync.services.exceptions import ContentWriteError, WorkflowError

logger = logging.getLogger(__name__)
tracer = trace.get_tracer("branchsync.workflow")


class StepRecorder:
    """Runs each workflow step in its own span and remembers which ones finished."""

    def __init__(self) -> None:
        self.completed: List[str] = []

    @property
    def last_completed(self) -> Optional[str]:
        return self.completed[-1] if self.completed else None

    @contextmanager
    def step(
        self,
        name: str,
        error_cls: Type[WorkflowError] = ContentWriteError,
        **context: Any,
    ) -> Iterator[trace.Span]:
        with tracer.start_as_current_span(name) as span:
            for key, value in context.items():
                span.set_attribute(f"branchsync.{key}", str(value))
            logger.debug("Starting step", extra={"step": name, **context})
            try:
                yield span
            except WorkflowError:
                raise
            except GithubError as exc:
                # Typed API failures become workflow errors tagged with this step
                if isinstance(exc, GithubApiError):
                    context = {**context, "status_code": exc.status_code}
                raise error_cls(str(exc), step=name, context=context) from exc
        self.completed.append(name)
        logger.info("Completed step", extra={"step": name, **context})
