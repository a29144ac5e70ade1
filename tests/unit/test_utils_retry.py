"""Unit tests for the transient failure retry decorator."""

from typing import Any, Awaitable, Callable, Iterator
from unittest.mock import AsyncMock, patch

import pytest

from gitlab_ops_manager.gitlab.exceptions import GitLabRequestFailed, GitLabTransportError
from gitlab_ops_manager.utils.retry import retry_on_transient_failure


def failure(status_code: int, retry_after: float | None = None) -> GitLabRequestFailed:
    return GitLabRequestFailed(status_code, f"{status_code} Status", "https://gitlab.example.com/api/v4/projects/1", retry_after=retry_after)


def with_retries(operation: AsyncMock, **options: Any) -> Callable[[], Awaitable[Any]]:
    @retry_on_transient_failure(**options)
    async def request() -> Any:
        return await operation()

    return request


@pytest.fixture
def sleep() -> Iterator[AsyncMock]:
    """Replace the backoff sleep so tests run instantly."""
    with patch("gitlab_ops_manager.utils.retry.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        yield mock_sleep


@pytest.mark.asyncio
async def test_retries_with_exponential_backoff(sleep: AsyncMock) -> None:
    """Test that delays double up to the maximum."""
    operation = AsyncMock(side_effect=[failure(503), failure(503), failure(503), "ok"])
    decorated = with_retries(operation, max_retries=5, initial_delay=1.0, max_delay=3.0)

    assert await decorated() == "ok"
    assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0, 3.0]


@pytest.mark.asyncio
async def test_gives_up_after_max_retries(sleep: AsyncMock) -> None:
    """Test that the last transient failure is raised once retries run out."""
    operation = AsyncMock(side_effect=failure(500))
    decorated = with_retries(operation, max_retries=2)

    with pytest.raises(GitLabRequestFailed):
        await decorated()
    assert operation.await_count == 3


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [400, 404, 409, 422])
async def test_does_not_retry_rejections(sleep: AsyncMock, status_code: int) -> None:
    """Test that requests rejected on their merits are raised immediately."""
    operation = AsyncMock(side_effect=failure(status_code))
    decorated = with_retries(operation)

    with pytest.raises(GitLabRequestFailed):
        await decorated()
    assert operation.await_count == 1
    sleep.assert_not_awaited()


@pytest.mark.asyncio
async def test_retry_after_is_capped(sleep: AsyncMock) -> None:
    """Test that an excessive Retry-After is capped at the maximum delay."""
    operation = AsyncMock(side_effect=[failure(429, retry_after=600.0), "ok"])
    decorated = with_retries(operation, max_delay=10.0)

    assert await decorated() == "ok"
    sleep.assert_awaited_once_with(10.0)


@pytest.mark.asyncio
async def test_transport_errors_are_retried(sleep: AsyncMock) -> None:
    """Test that network level errors are retried."""
    operation = AsyncMock(side_effect=[GitLabTransportError("reset"), "ok"])
    decorated = with_retries(operation)

    assert await decorated() == "ok"
    assert operation.await_count == 2


@pytest.mark.asyncio
async def test_permanent_transport_errors_are_not_retried(sleep: AsyncMock) -> None:
    """Test that a transport error marked as not transient is raised immediately."""
    operation = AsyncMock(side_effect=GitLabTransportError("unsupported protocol", is_transient=False))
    decorated = with_retries(operation)

    with pytest.raises(GitLabTransportError):
        await decorated()
    assert operation.await_count == 1
    sleep.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        pytest.param(failure(503), id="server error"),
        pytest.param(failure(504), id="gateway timeout"),
        pytest.param(GitLabTransportError("read timeout"), id="failed after sending"),
    ],
)
async def test_unsafe_replay_is_not_retried(sleep: AsyncMock, error: Exception) -> None:
    """Test that a request GitLab may have acted on is not repeated when replay is unsafe."""
    operation = AsyncMock(side_effect=[error, "ok"])
    decorated = with_retries(operation, replay_safe=False)

    with pytest.raises(type(error)):
        await decorated()
    assert operation.await_count == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [
        pytest.param(failure(429, retry_after=3.0), id="rate limited"),
        pytest.param(GitLabTransportError("refused", before_send=True), id="never sent"),
    ],
)
async def test_unsafe_replay_retries_requests_gitlab_never_handled(sleep: AsyncMock, error: Exception) -> None:
    """Test that rate limits and unsent requests are retried even when replay is unsafe."""
    operation = AsyncMock(side_effect=[error, "ok"])
    decorated = with_retries(operation, replay_safe=False)

    assert await decorated() == "ok"
    assert operation.await_count == 2


def test_sync_functions_are_refused() -> None:
    """Test that decorating a sync function produces a wrapper that raises."""

    @retry_on_transient_failure()
    def not_async() -> None:
        pass

    with pytest.raises(RuntimeError, match="must be async"):
        not_async()
