"""Contains convenience operations on GitLab projects."""

import structlog

from gitlab_ops_manager.gitlab.adapter import GitLabAdapter
from gitlab_ops_manager.schemas.gitlab import Project
from gitlab_ops_manager.synchronize.exceptions import SyncError, sync_step

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


async def move_project(adapter: GitLabAdapter, project_id: int | str, group_name: str) -> None:
    """Move a project into the first group matching ``group_name``."""
    with sync_step("Group lookup", group_name=group_name):
        groups = await adapter.list_groups(search=group_name)
    if not groups:
        logger.error("Group lookup failed", group_name=group_name)
        raise SyncError("Group lookup", f"no group matches '{group_name}'")

    group = groups[0]
    with sync_step("Project transfer", project_id=project_id, group_id=group.id):
        await adapter.transfer_project_to_group(group.id, project_id)
    logger.info("Moved project", project_id=project_id, group_id=group.id, group_name=group.name)


async def rename_project(adapter: GitLabAdapter, project_id: int | str, name: str) -> Project:
    """Rename a project, changing both its name and its path."""
    with sync_step("Project rename", project_id=project_id, name=name):
        project = await adapter.edit_project(project_id, name=name, path=name)
    logger.info("Renamed project", project_id=project_id, name=name)
    return project
