"""Contains unit tests for GitLab issue synchronization logic."""

from typing import Any

import pytest

from gitlab_ops_manager.gitlab.adapter import GitLabAdapter
from gitlab_ops_manager.schemas.gitlab import UserReference
from gitlab_ops_manager.synchronize.exceptions import SyncError
from gitlab_ops_manager.synchronize.issues import _author_username, sync_issues, sync_notes
from tests.unit.fakes import DESTINATION_PROJECT_ID, SOURCE_PROJECT_ID, FakeGitLab

LABELS = "/projects/:id/labels"
MILESTONES = "/projects/:id/milestones"
ISSUES = "/projects/:id/issues"
NOTES = "/projects/:id/issues/:issue_iid/notes"


def seed_crash_report(gitlab: FakeGitLab) -> dict[str, Any]:
    """A source project with one open issue that depends on a label and a milestone."""
    gitlab.add_label(SOURCE_PROJECT_ID, "bug", "#f00")
    milestone = gitlab.add_milestone(SOURCE_PROJECT_ID, "v1.0")
    issue = gitlab.add_issue(SOURCE_PROJECT_ID, "Crash on start", "It crashes", ["bug"], milestone["id"], author="alice")
    gitlab.add_note(SOURCE_PROJECT_ID, issue["iid"], "Same here", author="bob")
    gitlab.add_note(SOURCE_PROJECT_ID, issue["iid"], "added ~bug label", author="alice", system=True)
    gitlab.add_note(SOURCE_PROJECT_ID, issue["iid"], "Fixed on main", author="alice")
    return issue


@pytest.mark.parametrize(
    "author, autosudo, expected",
    [
        pytest.param(UserReference(username="alice"), True, "alice", id="author with autosudo"),
        pytest.param(UserReference(username="alice"), False, None, id="author without autosudo"),
        pytest.param(None, True, None, id="unknown author"),
    ],
)
def test_author_username(author: UserReference | None, autosudo: bool, expected: str | None) -> None:
    """Test which user a write is impersonated as."""
    assert _author_username(author, autosudo) == expected


@pytest.mark.asyncio
async def test_sync_issues_creates_dependencies_first(gitlab: FakeGitLab, adapter: GitLabAdapter) -> None:
    """Test that labels and milestones are created before the issue that uses them."""
    seed_crash_report(gitlab)

    await sync_issues(adapter, SOURCE_PROJECT_ID, DESTINATION_PROJECT_ID)

    write_endpoints = [call.endpoint for call in gitlab.writes()]
    assert write_endpoints[:3] == [LABELS, MILESTONES, ISSUES]


@pytest.mark.asyncio
async def test_sync_issues_links_labels_and_destination_milestone(gitlab: FakeGitLab, adapter: GitLabAdapter) -> None:
    """Test that the copy carries the label names and the destination milestone ID."""
    seed_crash_report(gitlab)

    result = await sync_issues(adapter, SOURCE_PROJECT_ID, DESTINATION_PROJECT_ID)

    destination_milestone_id = result.milestones.created[0].id
    create = gitlab.calls_to(ISSUES, "POST")[0]
    assert create.params["labels"] == "bug"
    assert create.params["milestone_id"] == destination_milestone_id
    assert create.params["title"] == "Crash on start"
    assert create.params["description"] == "It crashes"
    assert [issue.title for issue in result.created_issues] == ["Crash on start"]


@pytest.mark.asyncio
async def test_sync_issues_copies_notes_without_system_notes(gitlab: FakeGitLab, adapter: GitLabAdapter) -> None:
    """Test that user notes are copied oldest first and system notes are skipped."""
    seed_crash_report(gitlab)

    result = await sync_issues(adapter, SOURCE_PROJECT_ID, DESTINATION_PROJECT_ID)

    new_iid = result.created_issues[0].iid
    assert [note["body"] for note in gitlab.projects[DESTINATION_PROJECT_ID].notes[new_iid]] == ["Same here", "Fixed on main"]
    assert [note.body for note in result.results[0].notes] == ["Same here", "Fixed on main"]


@pytest.mark.asyncio
async def test_sync_issues_autosudo_writes_as_original_authors(gitlab: FakeGitLab, adapter: GitLabAdapter) -> None:
    """Test that issue and notes are written as their authors and the identity is restored."""
    seed_crash_report(gitlab)

    await sync_issues(adapter, SOURCE_PROJECT_ID, DESTINATION_PROJECT_ID, autosudo=True)

    assert [call.acting_identity for call in gitlab.calls_to(ISSUES, "POST")] == ["alice"]
    assert [call.acting_identity for call in gitlab.calls_to(NOTES, "POST")] == ["bob", "alice"]
    assert all(call.acting_identity is None for call in gitlab.calls_to(LABELS, "POST"))
    assert all(call.acting_identity is None for call in gitlab.calls_to(NOTES, "GET"))
    assert gitlab.acting_identity is None


@pytest.mark.asyncio
async def test_sync_issues_without_autosudo_keeps_identity() -> None:
    """Test that without autosudo every call is made as the configured identity."""
    gitlab = FakeGitLab(sudo="admin")
    gitlab.add_project(SOURCE_PROJECT_ID)
    gitlab.add_project(DESTINATION_PROJECT_ID)
    seed_crash_report(gitlab)

    await sync_issues(GitLabAdapter(gitlab), SOURCE_PROJECT_ID, DESTINATION_PROJECT_ID)

    assert {call.acting_identity for call in gitlab.calls} == {"admin"}


@pytest.mark.asyncio
async def test_sync_issues_skips_closed_source_issues(gitlab: FakeGitLab, adapter: GitLabAdapter) -> None:
    """Test that only open source issues are copied."""
    gitlab.add_issue(SOURCE_PROJECT_ID, "Open one")
    gitlab.add_issue(SOURCE_PROJECT_ID, "Closed one", state="closed")

    result = await sync_issues(adapter, SOURCE_PROJECT_ID, DESTINATION_PROJECT_ID)

    assert [issue.title for issue in result.created_issues] == ["Open one"]
    assert gitlab.calls_to(ISSUES, "GET")[0].params["state"] == "opened"


@pytest.mark.asyncio
async def test_sync_issues_does_not_recreate_closed_destination_issue(gitlab: FakeGitLab, adapter: GitLabAdapter) -> None:
    """Test that an issue copied before and closed in the destination is not copied again."""
    gitlab.add_issue(SOURCE_PROJECT_ID, "Crash on start")
    gitlab.add_issue(DESTINATION_PROJECT_ID, "Crash on start", state="closed")

    result = await sync_issues(adapter, SOURCE_PROJECT_ID, DESTINATION_PROJECT_ID)

    assert result.created_issues == []
    assert gitlab.calls_to(ISSUES, "POST") == []


@pytest.mark.asyncio
async def test_sync_issues_creates_oldest_first(gitlab: FakeGitLab, adapter: GitLabAdapter) -> None:
    """Test that issues are copied in the order they were created in the source."""
    for title in ["First", "Second", "Third"]:
        gitlab.add_issue(SOURCE_PROJECT_ID, title)

    await sync_issues(adapter, SOURCE_PROJECT_ID, DESTINATION_PROJECT_ID)

    assert [call.params["title"] for call in gitlab.calls_to(ISSUES, "POST")] == ["First", "Second", "Third"]


@pytest.mark.asyncio
async def test_sync_issues_unmapped_milestone_is_dropped(gitlab: FakeGitLab, adapter: GitLabAdapter) -> None:
    """Test that an issue whose milestone has no counterpart is created without one."""
    gitlab.add_issue(SOURCE_PROJECT_ID, "Orphan", milestone_id=999999)

    await sync_issues(adapter, SOURCE_PROJECT_ID, DESTINATION_PROJECT_ID)

    assert gitlab.calls_to(ISSUES, "POST")[0].params["milestone_id"] is None


@pytest.mark.asyncio
async def test_sync_issues_is_idempotent(gitlab: FakeGitLab, adapter: GitLabAdapter) -> None:
    """Test that a second run performs no writes."""
    seed_crash_report(gitlab)
    await sync_issues(adapter, SOURCE_PROJECT_ID, DESTINATION_PROJECT_ID)
    writes_after_first_run = len(gitlab.writes())

    result = await sync_issues(adapter, SOURCE_PROJECT_ID, DESTINATION_PROJECT_ID)

    assert len(gitlab.writes()) == writes_after_first_run
    assert result.created_issues == []
    assert result.labels.created == []
    assert result.milestones.created == []


@pytest.mark.asyncio
async def test_sync_issues_stops_at_first_failed_issue(gitlab: FakeGitLab, adapter: GitLabAdapter) -> None:
    """Test that a rejected issue creation aborts the run without touching later issues."""
    for title in ["First", "Second", "Third"]:
        gitlab.add_issue(SOURCE_PROJECT_ID, title)
    gitlab.fail(ISSUES, "POST", when=lambda params: params["title"] == "Second")

    with pytest.raises(SyncError) as exc_info:
        await sync_issues(adapter, SOURCE_PROJECT_ID, DESTINATION_PROJECT_ID)

    assert exc_info.value.step == "Issue creation"
    assert [call.params["title"] for call in gitlab.calls_to(ISSUES, "POST")] == ["First", "Second"]
    assert [issue["title"] for issue in gitlab.projects[DESTINATION_PROJECT_ID].issues] == ["First"]


@pytest.mark.asyncio
async def test_sync_issues_label_failure_aborts_before_issues(gitlab: FakeGitLab, adapter: GitLabAdapter) -> None:
    """Test that a failed label creation prevents any issue from being created."""
    seed_crash_report(gitlab)
    gitlab.fail(LABELS, "POST")

    with pytest.raises(SyncError, match="Label creation failed"):
        await sync_issues(adapter, SOURCE_PROJECT_ID, DESTINATION_PROJECT_ID)

    assert gitlab.calls_to(MILESTONES, "POST") == []
    assert gitlab.calls_to(ISSUES, "POST") == []


@pytest.mark.asyncio
async def test_sync_notes_restores_identity_after_failure(gitlab: FakeGitLab, adapter: GitLabAdapter) -> None:
    """Test that a failed note written as its author leaves the identity restored."""
    issue = seed_crash_report(gitlab)
    copy = gitlab.add_issue(DESTINATION_PROJECT_ID, "Crash on start")
    gitlab.fail(NOTES, "POST")

    with pytest.raises(SyncError, match="Note creation failed"):
        await sync_notes(adapter, SOURCE_PROJECT_ID, issue["iid"], DESTINATION_PROJECT_ID, copy["iid"], autosudo=True)

    assert gitlab.calls_to(NOTES, "POST")[0].acting_identity == "bob"
    assert gitlab.acting_identity is None
