"""Retry decorator for handling GitLab API rate limits and transient errors.

Only transient failures are retried: timeouts, network errors, ``429 Too Many Requests``
and ``5xx`` responses. Requests that GitLab rejected on their merits (other ``4xx``
answers such as a duplicate name) are raised immediately.

Requests that are not safe to replay, such as creating a note, are only retried when
GitLab certainly did not act on them: a ``429`` answer, or a connection that failed
before the request was sent.
"""

import asyncio
import functools
from typing import Any, Callable, TypeVar

import structlog

from gitlab_ops_manager.gitlab.exceptions import GitLabRequestFailed, GitLabTransportError

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def retry_on_transient_failure(
    max_retries: int = 5,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    replay_safe: bool = True,
) -> Callable[[F], F]:
    """Decorator for retrying async functions when they encounter transient GitLab failures.

    Args:
        max_retries: Maximum number of retry attempts (default: 5)
        initial_delay: Initial delay in seconds between retries (default: 1.0)
        max_delay: Maximum delay in seconds between retries (default: 60.0)
        exponential_base: Base for exponential backoff calculation (default: 2.0)
        replay_safe: Whether the request may be repeated after GitLab possibly acted on it (default: True)

    Returns:
        Decorated function with retry logic

    Example:
        @retry_on_transient_failure()
        async def send(self, method: str, url: str) -> httpx.Response:
            return await self.client.request(method, url)
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            delay = initial_delay
            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except GitLabRequestFailed as e:
                    if not (e.is_transient if replay_safe else e.status_code == 429):
                        raise
                    if attempt == max_retries:
                        logger.error(
                            "Max retries reached for GitLab request",
                            function=func.__name__,
                            attempt=attempt + 1,
                            status_code=e.status_code,
                            error=str(e),
                        )
                        raise

                    # Honour Retry-After when GitLab supplies it
                    wait_time = min(e.retry_after if e.retry_after is not None else delay, max_delay)
                    logger.warning(
                        f"GitLab answered {e.status_code}, retrying in {wait_time} seconds",
                        function=func.__name__,
                        attempt=attempt + 1,
                        max_retries=max_retries,
                        wait_time=wait_time,
                        status_code=e.status_code,
                    )
                    await asyncio.sleep(wait_time)
                    delay = min(delay * exponential_base, max_delay)
                except GitLabTransportError as e:
                    if not e.is_transient or not (replay_safe or e.before_send):
                        raise
                    if attempt == max_retries:
                        logger.error(
                            "Max retries reached for GitLab transport error",
                            function=func.__name__,
                            attempt=attempt + 1,
                            error=str(e),
                        )
                        raise

                    wait_time = min(delay, max_delay)
                    logger.warning(
                        f"GitLab transport error, retrying in {wait_time} seconds",
                        function=func.__name__,
                        attempt=attempt + 1,
                        max_retries=max_retries,
                        wait_time=wait_time,
                        error=str(e),
                    )
                    await asyncio.sleep(wait_time)
                    delay = min(delay * exponential_base, max_delay)

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
            """Sync version of the retry wrapper - raises error since we only support async."""
            raise RuntimeError(
                f"Function {func.__name__} decorated with @retry_on_transient_failure must be async. This decorator only supports async functions."
            )

        if asyncio.iscoroutinefunction(func):
            return async_wrapper  # type: ignore
        else:
            return sync_wrapper  # type: ignore

    return decorator
