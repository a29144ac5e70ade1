"""Unit tests for the synchronization step error wrapper."""

import pytest

from gitlab_ops_manager.gitlab.exceptions import GitLabPreconditionError, GitLabRequestFailed, InvalidAccessLevelError
from gitlab_ops_manager.synchronize.exceptions import SyncError, sync_step


def test_sync_step_wraps_request_failure() -> None:
    """Test that a rejected request becomes a SyncError naming the step, chained from the cause."""
    cause = GitLabRequestFailed(409, "409 Conflict", "https://gitlab.example.com/api/v4/projects/2/labels", detail="Label already exists")

    with pytest.raises(SyncError) as exc_info:
        with sync_step("Label creation", project_id=2):
            raise cause

    assert exc_info.value.step == "Label creation"
    assert str(exc_info.value) == "Label creation failed: Request failed. Response was: 409 Conflict (Label already exists)"
    assert exc_info.value.__cause__ is cause


@pytest.mark.parametrize(
    "error",
    [
        pytest.param(GitLabPreconditionError("/projects/:id/issues/:issue_iid/notes called without required parameter 'body'"), id="missing parameter"),
        pytest.param(InvalidAccessLevelError("superuser"), id="invalid access level"),
    ],
)
def test_sync_step_passes_precondition_errors_through(error: GitLabPreconditionError) -> None:
    """Test that errors describing a bad call are raised unchanged."""
    with pytest.raises(GitLabPreconditionError) as exc_info:
        with sync_step("Note creation", project_id=2, issue_iid=1):
            raise error

    assert exc_info.value is error
    assert not isinstance(exc_info.value, SyncError)
