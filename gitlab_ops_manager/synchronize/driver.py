"""Orchestrates GitLab synchronization workflows from application settings."""

import asyncio
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog

from gitlab_ops_manager.configuration.env import settings
from gitlab_ops_manager.configuration.models import GitLabConnectionConfig
from gitlab_ops_manager.configuration.reconcile import reconcile_connection_configuration
from gitlab_ops_manager.gitlab.adapter import GitLabAdapter
from gitlab_ops_manager.synchronize.fork import PollPolicy, deep_fork
from gitlab_ops_manager.synchronize.members import DesiredMembers, sync_group_members, sync_project_members
from gitlab_ops_manager.synchronize.results import MembershipSynchronizationResult

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


@asynccontextmanager
async def open_adapter(config: GitLabConnectionConfig | None = None) -> AsyncIterator[GitLabAdapter]:
    """Open an adapter with its own transport, closing it on exit.

    Each workflow gets its own transport because the acting identity is transport state.
    """
    if config is None:
        config = await reconcile_connection_configuration(settings)
    adapter = await GitLabAdapter.create(config)
    try:
        yield adapter
    finally:
        await adapter.transport.aclose()


async def run_deep_fork_workflow(
    source_project_id: int | str,
    namespace: int | str | None = None,
    do_sync: bool = True,
    autosudo: bool = False,
    config: GitLabConnectionConfig | None = None,
    cancel_event: asyncio.Event | None = None,
) -> int:
    """Run a deep fork against the configured GitLab instance and return the new project's ID."""
    start_time = time.time()
    logger.info("Running deep fork", source_project_id=source_project_id, namespace=namespace, do_sync=do_sync, start_time=start_time)
    async with open_adapter(config) as adapter:
        project_id = await deep_fork(
            adapter,
            source_project_id,
            namespace,
            do_sync=do_sync,
            autosudo=autosudo,
            poll_policy=PollPolicy.from_settings(settings),
            cancel_event=cancel_event,
        )
    end_time = time.time()
    logger.info("Ran deep fork", source_project_id=source_project_id, project_id=project_id, duration=round(end_time - start_time, 2))
    return project_id


async def run_sync_members_workflow(
    desired: DesiredMembers,
    project_id: int | str | None = None,
    group_id: int | str | None = None,
    remove: bool = False,
    config: GitLabConnectionConfig | None = None,
) -> MembershipSynchronizationResult:
    """Reconcile the members of exactly one project or group against the configured GitLab instance."""
    if (project_id is None) == (group_id is None):
        raise ValueError("Exactly one of project_id and group_id must be given.")
    start_time = time.time()
    async with open_adapter(config) as adapter:
        if project_id is not None:
            result = await sync_project_members(adapter, project_id, desired, remove=remove)
        else:
            result = await sync_group_members(adapter, group_id, desired, remove=remove)  # type: ignore[arg-type]
    logger.info(
        "Synchronized members",
        project_id=project_id,
        group_id=group_id,
        added=len(result.added),
        updated=len(result.updated),
        removed=len(result.removed),
        duration=round(time.time() - start_time, 2),
    )
    return result
