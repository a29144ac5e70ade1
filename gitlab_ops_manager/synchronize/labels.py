"""Contains synchronization logic for GitLab labels."""

import structlog

from gitlab_ops_manager.gitlab.adapter import GitLabAdapter
from gitlab_ops_manager.schemas.gitlab import Label
from gitlab_ops_manager.synchronize.diff import chronological, compute_diff
from gitlab_ops_manager.synchronize.exceptions import sync_step
from gitlab_ops_manager.synchronize.results import LabelSynchronizationResult

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


async def sync_labels(adapter: GitLabAdapter, source_id: int | str, destination_id: int | str) -> LabelSynchronizationResult:
    """Copy labels defined in the source project but not in the destination.

    Key is label name. Labels already in the destination keep their colour even
    when it differs from the source. Labels carry no author, so no sudo is needed.
    """
    with sync_step("Source label lookup", project_id=source_id):
        source_labels = await adapter.list_labels(source_id)
    with sync_step("Destination label lookup", project_id=destination_id):
        destination_labels = await adapter.list_labels(destination_id)

    diff = compute_diff(chronological(source_labels), destination_labels, key=lambda label: label.name)
    logger.info(
        "Computed label differences",
        source_project_id=source_id,
        destination_project_id=destination_id,
        source_label_count=len(source_labels),
        missing_label_count=len(diff.to_create),
    )

    created: list[Label] = []
    for label in diff.to_create:
        with sync_step("Label creation", project_id=destination_id, label_name=label.name):
            created.append(await adapter.create_label(destination_id, name=label.name, color=label.color, description=label.description))
        logger.info("Created label", project_id=destination_id, label_name=label.name, color=label.color)
    return LabelSynchronizationResult(created, destination_labels)
