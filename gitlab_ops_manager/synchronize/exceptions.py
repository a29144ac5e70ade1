"""Exceptions raised by synchronization operations."""

from contextlib import contextmanager
from typing import Any, Iterator

import structlog

from gitlab_ops_manager.gitlab.exceptions import GitLabError, GitLabOpsError, GitLabPreconditionError

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class SyncError(GitLabOpsError):
    """Raised when a step of a synchronization fails. Earlier steps are not rolled back."""

    def __init__(self, step: str, message: str) -> None:
        """Initialize the error with the failed step and the underlying message."""
        super().__init__(f"{step} failed: {message}")
        self.step = step
        self.message = message


class ForkImportTimeoutError(SyncError):
    """Raised when a fork's import did not finish within the polling policy."""

    pass


class ForkImportFailedError(SyncError):
    """Raised when GitLab reports that a fork's import failed."""

    pass


class SyncCancelledError(SyncError):
    """Raised when a synchronization is cancelled through its cancel event."""

    pass


@contextmanager
def sync_step(step: str, **context: Any) -> Iterator[None]:
    """Turn a GitLab error raised inside the block into a SyncError naming the step.

    Precondition errors are raised unchanged: they describe a bad call, not a failed step.
    """
    try:
        yield
    except GitLabPreconditionError:
        raise
    except GitLabError as exc:
        logger.error(f"{step} failed", error=exc.message, error_type=type(exc).__name__, **context)
        raise SyncError(step, exc.message) from exc
