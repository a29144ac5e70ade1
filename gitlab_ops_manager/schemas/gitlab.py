"""Pydantic models for the GitLab entities this package reads and writes.

Only the fields the synchronization logic consumes are declared; anything else
GitLab returns is ignored.
"""

from enum import IntEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from gitlab_ops_manager.gitlab.exceptions import InvalidAccessLevelError


class AccessLevel(IntEnum):
    """GitLab membership access levels."""

    NO_ACCESS = 0
    MINIMAL_ACCESS = 5
    GUEST = 10
    PLANNER = 15
    REPORTER = 20
    DEVELOPER = 30
    MAINTAINER = 40
    OWNER = 50

    @classmethod
    def parse(cls, value: Any) -> "AccessLevel":
        """Convert a level name ("developer", "master", ...) or number into an AccessLevel."""
        if isinstance(value, AccessLevel):
            return value
        if isinstance(value, str):
            name = value.strip().lower()
            if name == "master":
                return cls.MAINTAINER
            if name.isdigit():
                value = int(name)
            else:
                try:
                    return cls[name.upper()]
                except KeyError:
                    raise InvalidAccessLevelError(value) from None
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return cls(value)
            except ValueError:
                raise InvalidAccessLevelError(value) from None
        raise InvalidAccessLevelError(value)


class GitLabModel(BaseModel):
    """Base model ignoring fields this package does not use."""

    model_config = ConfigDict(extra="ignore")


class UserReference(GitLabModel):
    """A user embedded in another entity (issue or note author)."""

    id: int | None = None
    username: str | None = None


class MilestoneReference(GitLabModel):
    """A milestone embedded in an issue."""

    id: int | None = None
    title: str | None = None


class User(GitLabModel):
    """A GitLab user."""

    id: int
    username: str | None = None
    email: str | None = None


class Project(GitLabModel):
    """A GitLab project."""

    id: int
    name: str | None = None
    path: str | None = None
    path_with_namespace: str | None = None
    import_status: str | None = None
    forked_from_project: dict[str, Any] | None = None


class Group(GitLabModel):
    """A GitLab group."""

    id: int
    name: str | None = None
    path: str | None = None
    full_path: str | None = None


class Label(GitLabModel):
    """A project label, keyed by name."""

    id: int | None = None
    name: str
    color: str
    description: str | None = None


class Milestone(GitLabModel):
    """A project milestone, keyed by title."""

    id: int
    iid: int | None = None
    title: str
    description: str | None = None
    due_date: str | None = None
    created_at: str | None = None


class Issue(GitLabModel):
    """A project issue, keyed by title."""

    id: int
    iid: int
    title: str
    description: str | None = None
    state: str | None = None
    labels: list[str] = Field(default_factory=list)
    milestone: MilestoneReference | None = None
    author: UserReference | None = None
    created_at: str | None = None

    @field_validator("labels", mode="before")
    @classmethod
    def _label_names(cls, value: Any) -> Any:
        # with_labels_details=true returns label objects instead of names
        if value is None:
            return []
        return [label["name"] if isinstance(label, dict) else label for label in value]


class Note(GitLabModel):
    """A comment on an issue."""

    id: int | None = None
    body: str
    author: UserReference | None = None
    system: bool = False
    created_at: str | None = None


class Member(GitLabModel):
    """A project or group member."""

    id: int
    username: str | None = None
    access_level: int
