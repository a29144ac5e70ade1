"""Maps entity IDs of a source project to the IDs of their counterparts in a destination."""

from typing import Iterator

import structlog

from gitlab_ops_manager.schemas.gitlab import Milestone
from gitlab_ops_manager.synchronize.diff import chronological, compute_diff

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class IdentityMap:
    """Source ID to destination ID mapping for one entity kind, for one sync run."""

    def __init__(self, kind: str) -> None:
        """Initialize an empty map for an entity kind such as "milestone"."""
        self.kind = kind
        self._mapping: dict[int, int] = {}

    def record(self, source_id: int, destination_id: int) -> None:
        """Record that a source entity corresponds to a destination entity."""
        self._mapping[source_id] = destination_id

    def resolve(self, source_id: int | None) -> int | None:
        """Return the destination ID for a source ID, or None when it is not mapped."""
        if source_id is None:
            return None
        return self._mapping.get(source_id)

    def as_dict(self) -> dict[int, int]:
        """Return a copy of the mapping."""
        return dict(self._mapping)

    def __contains__(self, source_id: object) -> bool:
        return source_id in self._mapping

    def __len__(self) -> int:
        return len(self._mapping)

    def __iter__(self) -> Iterator[int]:
        return iter(self._mapping)

    def __repr__(self) -> str:
        return f"IdentityMap(kind={self.kind!r}, mapping={self._mapping!r})"


def map_milestones(source: list[Milestone], destination: list[Milestone]) -> tuple[IdentityMap, list[Milestone]]:
    """Match source milestones to destination milestones by exact title.

    Returns:
        The map of every matched source milestone, and the source milestones that
        have to be created in the destination, oldest first.
    """
    identity_map = IdentityMap("milestone")
    destination_by_title = {milestone.title: milestone for milestone in destination}
    for milestone in source:
        match = destination_by_title.get(milestone.title)
        if match is not None:
            identity_map.record(milestone.id, match.id)

    pending = compute_diff(chronological(source), destination, key=lambda milestone: milestone.title).to_create
    logger.debug("Mapped milestones", matched=len(identity_map), pending=len(pending))
    return identity_map, pending
