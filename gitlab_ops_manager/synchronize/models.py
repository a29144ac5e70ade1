"""Data models shared by the synchronization logic."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class MembershipProvenance(str, Enum):
    """Where a membership grant comes from."""

    DIRECT = "direct"
    INHERITED = "inherited"


@dataclass(frozen=True)
class MembershipRecord:
    """A subject's access to a project or group."""

    user_id: int
    access_level: int
    provenance: MembershipProvenance = MembershipProvenance.DIRECT
    username: str | None = None

    @property
    def is_inherited(self) -> bool:
        """Inherited grants belong to an ancestor group and are never reconciled here."""
        return self.provenance is MembershipProvenance.INHERITED


@dataclass
class DiffResult(Generic[T]):
    """Items to create, update and remove to bring a destination in line with a source.

    ``to_update`` holds ``(source, destination)`` pairs. No natural key appears
    in more than one list, or more than once in a list.
    """

    to_create: list[T] = field(default_factory=list)
    to_update: list[tuple[T, T]] = field(default_factory=list)
    to_remove: list[T] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """True when the destination already matches the source."""
        return not (self.to_create or self.to_update or self.to_remove)
