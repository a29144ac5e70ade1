"""Contains synchronization logic for GitLab issues and their notes."""

import time

import structlog

from gitlab_ops_manager.gitlab.adapter import GitLabAdapter
from gitlab_ops_manager.schemas.gitlab import Issue, Note, UserReference
from gitlab_ops_manager.synchronize.diff import chronological, compute_diff
from gitlab_ops_manager.synchronize.exceptions import sync_step
from gitlab_ops_manager.synchronize.identity import IdentityMap
from gitlab_ops_manager.synchronize.impersonation import acting_identity
from gitlab_ops_manager.synchronize.labels import sync_labels
from gitlab_ops_manager.synchronize.milestones import sync_milestones
from gitlab_ops_manager.synchronize.results import AllIssueSynchronizationResults, IssueSynchronizationResult

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def _author_username(author: UserReference | None, autosudo: bool) -> str | None:
    """The user to impersonate for a write, or None when impersonation is off or the author is unknown."""
    if not autosudo or author is None:
        return None
    return author.username


async def sync_notes(
    adapter: GitLabAdapter,
    source_id: int | str,
    source_issue_iid: int,
    destination_id: int | str,
    destination_issue_iid: int,
    autosudo: bool = False,
) -> list[Note]:
    """Copy the notes on a source issue onto a destination issue, oldest first.

    System notes are generated by GitLab itself and are not copied. With
    ``autosudo`` each note is written as its original author, who must have
    access to the destination project.
    """
    with sync_step("Source note lookup", project_id=source_id, issue_iid=source_issue_iid):
        notes = await adapter.list_issue_notes(source_id, source_issue_iid)

    copied: list[Note] = []
    for note in notes:
        if note.system:
            logger.debug("Skipping system note", project_id=source_id, issue_iid=source_issue_iid, note_id=note.id)
            continue
        with sync_step("Note creation", project_id=destination_id, issue_iid=destination_issue_iid):
            async with acting_identity(adapter.transport, _author_username(note.author, autosudo)):
                copied.append(await adapter.create_issue_note(destination_id, destination_issue_iid, note.body))
    logger.info(
        "Copied issue notes",
        destination_project_id=destination_id,
        destination_issue_iid=destination_issue_iid,
        note_count=len(copied),
    )
    return copied


async def copy_issue(adapter: GitLabAdapter, issue: Issue, destination_id: int | str, milestones: IdentityMap, autosudo: bool = False) -> Issue:
    """Create a copy of a source issue in the destination project.

    Labels are passed by name. The milestone is set only when the source
    milestone has a counterpart in ``milestones``; otherwise the copy has none.
    """
    labels = ",".join(issue.labels) if issue.labels else None
    milestone_id = milestones.resolve(issue.milestone.id if issue.milestone else None)
    with sync_step("Issue creation", project_id=destination_id, issue_title=issue.title):
        async with acting_identity(adapter.transport, _author_username(issue.author, autosudo)):
            new_issue = await adapter.create_issue(
                destination_id,
                title=issue.title,
                description=issue.description,
                labels=labels,
                milestone_id=milestone_id,
            )
    logger.info("Created issue", project_id=destination_id, issue_title=issue.title, issue_iid=new_issue.iid, milestone_id=milestone_id)
    return new_issue


async def sync_issues(
    adapter: GitLabAdapter,
    source_id: int | str,
    destination_id: int | str,
    autosudo: bool = False,
) -> AllIssueSynchronizationResults:
    """Copy open issues of the source project that are missing from the destination, with their notes.

    Key is issue title. Labels and milestones are synchronized first because new
    issues refer to them. Destination issues are matched in every state, so an
    issue that was copied before and has since been closed is not copied again.
    """
    label_results = await sync_labels(adapter, source_id, destination_id)
    milestone_results = await sync_milestones(adapter, source_id, destination_id)

    start_time = time.time()
    logger.info("Fetching issues", source_project_id=source_id, destination_project_id=destination_id, start_time=start_time)
    with sync_step("Source issue lookup", project_id=source_id):
        source_issues = await adapter.list_issues(source_id, state="opened")
    with sync_step("Destination issue lookup", project_id=destination_id):
        destination_issues = await adapter.list_issues(destination_id)
    end_time = time.time()
    logger.info(
        "Fetched issues",
        start_time=start_time,
        end_time=end_time,
        duration=round(end_time - start_time, 2),
        source_issue_count=len(source_issues),
        destination_issue_count=len(destination_issues),
    )

    diff = compute_diff(chronological(source_issues), destination_issues, key=lambda issue: issue.title)
    results: list[IssueSynchronizationResult] = []
    for issue in diff.to_create:
        new_issue = await copy_issue(adapter, issue, destination_id, milestone_results.identity_map, autosudo=autosudo)
        notes = await sync_notes(adapter, source_id, issue.iid, destination_id, new_issue.iid, autosudo=autosudo)
        results.append(IssueSynchronizationResult(issue, new_issue, notes))

    logger.info(
        "Synchronized issues",
        source_project_id=source_id,
        destination_project_id=destination_id,
        created_label_count=len(label_results.created),
        created_milestone_count=len(milestone_results.created),
        created_issue_count=len(results),
    )
    return AllIssueSynchronizationResults(label_results, milestone_results, results)
