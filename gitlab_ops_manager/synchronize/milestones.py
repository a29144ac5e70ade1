"""Contains synchronization logic for GitLab milestones."""

import structlog

from gitlab_ops_manager.gitlab.adapter import GitLabAdapter
from gitlab_ops_manager.schemas.gitlab import Milestone
from gitlab_ops_manager.synchronize.exceptions import sync_step
from gitlab_ops_manager.synchronize.identity import map_milestones
from gitlab_ops_manager.synchronize.results import MilestoneSynchronizationResult

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


async def sync_milestones(adapter: GitLabAdapter, source_id: int | str, destination_id: int | str) -> MilestoneSynchronizationResult:
    """Copy milestones defined in the source project but not in the destination.

    Key is milestone title. The returned identity map covers every source
    milestone, matched or newly created, so issues can be linked to the
    destination milestones.
    """
    with sync_step("Source milestone lookup", project_id=source_id):
        source_milestones = await adapter.list_milestones(source_id)
    with sync_step("Destination milestone lookup", project_id=destination_id):
        destination_milestones = await adapter.list_milestones(destination_id)

    identity_map, pending = map_milestones(source_milestones, destination_milestones)
    logger.info(
        "Computed milestone differences",
        source_project_id=source_id,
        destination_project_id=destination_id,
        matched_milestone_count=len(identity_map),
        missing_milestone_count=len(pending),
    )

    created: list[Milestone] = []
    for milestone in pending:
        with sync_step("Milestone creation", project_id=destination_id, milestone_title=milestone.title):
            new_milestone = await adapter.create_milestone(
                destination_id,
                title=milestone.title,
                description=milestone.description,
                due_date=milestone.due_date,
            )
        created.append(new_milestone)
        # Duplicate titles in the source all map to the one copy
        for source_milestone in source_milestones:
            if source_milestone.title == milestone.title:
                identity_map.record(source_milestone.id, new_milestone.id)
        logger.info("Created milestone", project_id=destination_id, milestone_title=milestone.title, milestone_id=new_milestone.id)
    return MilestoneSynchronizationResult(created, identity_map)
