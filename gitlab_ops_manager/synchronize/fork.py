"""Orchestrates deep forks: fork a project, wait for the fork's import, then copy its content."""

import asyncio
from dataclasses import dataclass
from enum import Enum

import structlog

from gitlab_ops_manager.configuration.env import Settings
from gitlab_ops_manager.gitlab.adapter import GitLabAdapter
from gitlab_ops_manager.schemas.gitlab import Project
from gitlab_ops_manager.synchronize.exceptions import ForkImportFailedError, ForkImportTimeoutError, SyncCancelledError, sync_step
from gitlab_ops_manager.synchronize.issues import sync_issues

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

IMPORT_COMPLETE_STATUSES = frozenset({"finished", "none"})
IMPORT_FAILED_STATUSES = frozenset({"failed"})


class ForkState(str, Enum):
    """Stages of a deep fork."""

    LOOKUP_SOURCE = "lookup_source"
    CREATE_FORK = "create_fork"
    POLL_IMPORT = "poll_import"
    SYNC = "sync"
    DONE = "done"


@dataclass(frozen=True)
class PollPolicy:
    """How often, and for how long, to poll a fork's import status."""

    max_attempts: int = 60
    initial_delay: float = 1.0
    backoff_factor: float = 2.0
    max_delay: float = 30.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "PollPolicy":
        """Build a policy from the application settings."""
        return cls(
            max_attempts=settings.FORK_POLL_MAX_ATTEMPTS,
            initial_delay=settings.FORK_POLL_INITIAL_DELAY,
            max_delay=settings.FORK_POLL_MAX_DELAY,
        )


async def _wait(delay: float, cancel_event: asyncio.Event | None) -> None:
    """Sleep for ``delay`` seconds, waking up early if the cancel event is set."""
    if cancel_event is None:
        await asyncio.sleep(delay)
        return
    try:
        await asyncio.wait_for(cancel_event.wait(), timeout=delay)
    except asyncio.TimeoutError:
        return
    raise SyncCancelledError("Fork import polling", "cancelled while waiting for the import to finish")


async def wait_for_import(
    adapter: GitLabAdapter,
    project_id: int,
    poll_policy: PollPolicy | None = None,
    cancel_event: asyncio.Event | None = None,
) -> Project:
    """Poll a project until its import status is ``finished`` or ``none``.

    Raises:
        ForkImportFailedError: If GitLab reports the import failed.
        ForkImportTimeoutError: If the import is still running after the policy's last attempt.
        SyncCancelledError: If ``cancel_event`` is set.
    """
    policy = poll_policy or PollPolicy()
    delay = policy.initial_delay
    status = None
    for attempt in range(1, policy.max_attempts + 1):
        if cancel_event is not None and cancel_event.is_set():
            raise SyncCancelledError("Fork import polling", "cancelled before the import finished")
        with sync_step("Fork import status lookup", project_id=project_id):
            project = await adapter.get_project(project_id)
        status = project.import_status or "none"
        logger.info("Polled fork import status", project_id=project_id, import_status=status, attempt=attempt, max_attempts=policy.max_attempts)
        if status in IMPORT_COMPLETE_STATUSES:
            return project
        if status in IMPORT_FAILED_STATUSES:
            raise ForkImportFailedError("Fork import", f"import of project {project_id} failed")
        if attempt < policy.max_attempts:
            await _wait(delay, cancel_event)
            delay = min(delay * policy.backoff_factor, policy.max_delay)

    logger.error("Fork import did not finish in time", project_id=project_id, import_status=status, attempts=policy.max_attempts)
    raise ForkImportTimeoutError("Fork import", f"import of project {project_id} still '{status}' after {policy.max_attempts} polls")


async def deep_fork(
    adapter: GitLabAdapter,
    source_project_id: int | str,
    namespace: int | str | None = None,
    do_sync: bool = True,
    autosudo: bool = False,
    poll_policy: PollPolicy | None = None,
    cancel_event: asyncio.Event | None = None,
) -> int:
    """Fork a project and copy its open issues, labels, milestones and comments into the fork.

    The fork goes into ``namespace``, or the acting user's namespace when omitted.
    With ``autosudo`` issues and comments are created as their original authors,
    who must have access to the fork.

    Returns:
        The ID of the new project.
    """
    logger.info("Deep fork", state=ForkState.LOOKUP_SOURCE.value, source_project_id=source_project_id)
    with sync_step("Project lookup", project_id=source_project_id):
        source = await adapter.get_project(source_project_id)

    logger.info("Deep fork", state=ForkState.CREATE_FORK.value, source_project_id=source.id, namespace=namespace)
    with sync_step("Project fork", project_id=source.id):
        fork = await adapter.fork_project(source.id, namespace)

    logger.info("Deep fork", state=ForkState.POLL_IMPORT.value, project_id=fork.id)
    await wait_for_import(adapter, fork.id, poll_policy, cancel_event)

    if do_sync:
        logger.info("Deep fork", state=ForkState.SYNC.value, source_project_id=source.id, project_id=fork.id, autosudo=autosudo)
        await sync_issues(adapter, source.id, fork.id, autosudo=autosudo)

    logger.info("Deep fork", state=ForkState.DONE.value, source_project_id=source.id, project_id=fork.id)
    return fork.id
