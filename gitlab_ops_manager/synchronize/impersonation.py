"""Scoped switching of the identity GitLab requests are performed as (sudo)."""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, TypeVar

import structlog

from gitlab_ops_manager.gitlab.abc import GitLabTransportBase

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

T = TypeVar("T")


@asynccontextmanager
async def acting_identity(transport: GitLabTransportBase, identity: str | None) -> AsyncIterator[None]:
    """Perform the requests inside the block as another user.

    The previous acting identity is restored when the block exits, whether or not
    it raised. With no identity the transport is left untouched.
    """
    if not identity:
        yield
        return

    previous = transport.acting_identity
    transport.set_acting_identity(identity)
    logger.debug("Switched acting identity", acting_identity=identity, previous_identity=previous)
    try:
        yield
    finally:
        transport.set_acting_identity(previous)
        logger.debug("Restored acting identity", acting_identity=previous)


async def with_acting_identity(transport: GitLabTransportBase, identity: str | None, fn: Callable[[], Awaitable[T]]) -> T:
    """Await ``fn()`` as another user, restoring the previous identity afterwards."""
    async with acting_identity(transport, identity):
        return await fn()
