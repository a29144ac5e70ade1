"""Typed GitLab operations on top of a GitLab transport."""

from functools import wraps
from typing import Any, Awaitable, Callable, Self, TypeVar

import structlog

from gitlab_ops_manager.configuration.models import GitLabConnectionConfig
from gitlab_ops_manager.gitlab.exceptions import GitLabRequestFailed, GitLabResponseDecodeError
from gitlab_ops_manager.schemas.gitlab import AccessLevel, Group, Issue, Label, Member, Milestone, Note, Project, User

from .abc import GitLabTransportBase
from .transport import GitLabTransport

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def handle_gitlab_rejection(func: F) -> F:
    """Decorator logging GitLab rejections of a write (4xx other than 429) with request details."""

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except GitLabRequestFailed as exc:
            if not exc.is_transient:
                logger.error(
                    "GitLab rejected request",
                    function=func.__name__,
                    status_code=exc.status_code,
                    message=exc.detail,
                    url=exc.url,
                )
            raise

    return wrapper  # type: ignore


class GitLabAdapter:
    """GitLab operations with explicit parameters, returning parsed models."""

    def __init__(self, transport: GitLabTransportBase, per_page: int = 100) -> None:
        """Initialize the adapter with an already-initialized transport."""
        self.transport = transport
        self.per_page = per_page

    @classmethod
    async def create(cls, config: GitLabConnectionConfig) -> Self:
        """Create a new adapter with its own transport from a connection configuration."""
        logger.info("Creating client for GitLab instance", gitlab_api_url=config.gitlab_api_url, sudo=config.gitlab_sudo)
        transport = await GitLabTransport.create(
            gitlab_api_url=config.gitlab_api_url,
            gitlab_private_token=config.gitlab_private_token,
            gitlab_sudo=config.gitlab_sudo,
            request_timeout=config.request_timeout,
        )
        return cls(transport, per_page=config.per_page)

    async def _list(self, endpoint: str, **params: Any) -> list[Any]:
        """Fetch every page of a list endpoint, following the transport's next-page links."""
        page = await self.transport.call(endpoint, "GET", {**params, "per_page": self.per_page})
        if not isinstance(page, list):
            raise GitLabResponseDecodeError(f"Expected a list from {endpoint}, got {type(page).__name__}")
        results: list[Any] = list(page)
        pages = 1
        while (next_url := self.transport.next_page_url()) is not None:
            page = await self.transport.call_url(next_url)
            if not isinstance(page, list):
                raise GitLabResponseDecodeError(f"Expected a list from {next_url}, got {type(page).__name__}")
            results.extend(page)
            pages += 1
        logger.debug("Fetched list", endpoint=endpoint, pages=pages, item_count=len(results))
        return results

    # Projects
    async def get_project(self, project_id: int | str) -> Project:
        """Get a single project."""
        return Project.model_validate(await self.transport.call("/projects/:id", "GET", {"id": project_id}))

    @handle_gitlab_rejection
    async def fork_project(self, project_id: int | str, namespace: int | str | None = None) -> Project:
        """Fork a project into a namespace (the acting user's namespace if omitted)."""
        params: dict[str, Any] = {"id": project_id}
        if isinstance(namespace, int):
            params["namespace_id"] = namespace
        elif namespace:
            params["namespace_path"] = namespace
        return Project.model_validate(await self.transport.call("/projects/:id/fork", "POST", params))

    @handle_gitlab_rejection
    async def edit_project(self, project_id: int | str, name: str | None = None, path: str | None = None, **kwargs: Any) -> Project:
        """Edit a project's attributes."""
        params = {"id": project_id, "name": name, "path": path, **kwargs}
        return Project.model_validate(await self.transport.call("/projects/:id", "PUT", params))

    async def list_user_projects(self, user_id: int | str) -> list[Project]:
        """List every project owned by a user."""
        return [Project.model_validate(item) for item in await self._list("/users/:user_id/projects", user_id=user_id)]

    # Groups
    async def list_groups(self, search: str | None = None) -> list[Group]:
        """List groups visible to the acting user, optionally filtered by a search string."""
        return [Group.model_validate(item) for item in await self._list("/groups", search=search)]

    async def list_group_projects(self, group_id: int | str) -> list[Project]:
        """List every project in a group."""
        return [Project.model_validate(item) for item in await self._list("/groups/:id/projects", id=group_id)]

    @handle_gitlab_rejection
    async def transfer_project_to_group(self, group_id: int | str, project_id: int | str) -> Any:
        """Move a project into a group."""
        return await self.transport.call("/groups/:id/projects/:project_id", "POST", {"id": group_id, "project_id": project_id})

    # Labels
    async def list_labels(self, project_id: int | str) -> list[Label]:
        """List the labels of a project."""
        return [Label.model_validate(item) for item in await self._list("/projects/:id/labels", id=project_id)]

    @handle_gitlab_rejection
    async def create_label(self, project_id: int | str, name: str, color: str, description: str | None = None) -> Label:
        """Create a label in a project."""
        params = {"id": project_id, "name": name, "color": color, "description": description}
        return Label.model_validate(await self.transport.call("/projects/:id/labels", "POST", params))

    # Milestones
    async def list_milestones(self, project_id: int | str) -> list[Milestone]:
        """List the milestones of a project."""
        return [Milestone.model_validate(item) for item in await self._list("/projects/:id/milestones", id=project_id)]

    @handle_gitlab_rejection
    async def create_milestone(
        self,
        project_id: int | str,
        title: str,
        description: str | None = None,
        due_date: str | None = None,
    ) -> Milestone:
        """Create a milestone in a project."""
        params = {"id": project_id, "title": title, "description": description, "due_date": due_date}
        return Milestone.model_validate(await self.transport.call("/projects/:id/milestones", "POST", params))

    # Issues
    async def list_issues(self, project_id: int | str, state: str | None = None) -> list[Issue]:
        """List the issues of a project, in every state unless one is given."""
        return [Issue.model_validate(item) for item in await self._list("/projects/:id/issues", id=project_id, state=state)]

    @handle_gitlab_rejection
    async def create_issue(
        self,
        project_id: int | str,
        title: str,
        description: str | None = None,
        labels: str | None = None,
        milestone_id: int | None = None,
    ) -> Issue:
        """Create an issue. Labels are given as a comma-separated list of names."""
        params = {"id": project_id, "title": title, "description": description, "labels": labels, "milestone_id": milestone_id}
        return Issue.model_validate(await self.transport.call("/projects/:id/issues", "POST", params))

    # Notes
    async def list_issue_notes(self, project_id: int | str, issue_iid: int) -> list[Note]:
        """List the notes on an issue, oldest first."""
        items = await self._list("/projects/:id/issues/:issue_iid/notes", id=project_id, issue_iid=issue_iid, sort="asc", order_by="created_at")
        return [Note.model_validate(item) for item in items]

    @handle_gitlab_rejection
    async def create_issue_note(self, project_id: int | str, issue_iid: int, body: str) -> Note:
        """Add a note to an issue."""
        params = {"id": project_id, "issue_iid": issue_iid, "body": body}
        return Note.model_validate(await self.transport.call("/projects/:id/issues/:issue_iid/notes", "POST", params))

    # Project members
    async def list_project_members(self, project_id: int | str) -> list[Member]:
        """List the direct members of a project."""
        return [Member.model_validate(item) for item in await self._list("/projects/:id/members", id=project_id)]

    async def list_all_project_members(self, project_id: int | str) -> list[Member]:
        """List the members of a project including those inherited from ancestor groups."""
        return [Member.model_validate(item) for item in await self._list("/projects/:id/members/all", id=project_id)]

    @handle_gitlab_rejection
    async def add_project_member(self, project_id: int | str, user_id: int, access_level: AccessLevel) -> Member:
        """Add a user to a project at an access level."""
        params = {"id": project_id, "user_id": user_id, "access_level": int(access_level)}
        return Member.model_validate(await self.transport.call("/projects/:id/members", "POST", params))

    @handle_gitlab_rejection
    async def edit_project_member(self, project_id: int | str, user_id: int, access_level: AccessLevel) -> Member:
        """Change the access level of a project member."""
        params = {"id": project_id, "user_id": user_id, "access_level": int(access_level)}
        return Member.model_validate(await self.transport.call("/projects/:id/members/:user_id", "PUT", params))

    @handle_gitlab_rejection
    async def remove_project_member(self, project_id: int | str, user_id: int) -> None:
        """Remove a direct member from a project."""
        await self.transport.call("/projects/:id/members/:user_id", "DELETE", {"id": project_id, "user_id": user_id})

    # Group members
    async def list_group_members(self, group_id: int | str) -> list[Member]:
        """List the direct members of a group."""
        return [Member.model_validate(item) for item in await self._list("/groups/:id/members", id=group_id)]

    @handle_gitlab_rejection
    async def add_group_member(self, group_id: int | str, user_id: int, access_level: AccessLevel) -> Member:
        """Add a user to a group at an access level."""
        params = {"id": group_id, "user_id": user_id, "access_level": int(access_level)}
        return Member.model_validate(await self.transport.call("/groups/:id/members", "POST", params))

    @handle_gitlab_rejection
    async def edit_group_member(self, group_id: int | str, user_id: int, access_level: AccessLevel) -> Member:
        """Change the access level of a group member."""
        params = {"id": group_id, "user_id": user_id, "access_level": int(access_level)}
        return Member.model_validate(await self.transport.call("/groups/:id/members/:user_id", "PUT", params))

    @handle_gitlab_rejection
    async def remove_group_member(self, group_id: int | str, user_id: int) -> None:
        """Remove a direct member from a group."""
        await self.transport.call("/groups/:id/members/:user_id", "DELETE", {"id": group_id, "user_id": user_id})

    # Users
    async def search_users(self, search: str) -> list[User]:
        """Search users by name, username or email."""
        response = await self.transport.call("/users", "GET", {"search": search})
        return [User.model_validate(item) for item in response]
