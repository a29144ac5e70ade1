"""Catalog of the GitLab API v4 endpoints used by this package.

Each endpoint template maps HTTP methods to an ``EndpointDescriptor`` listing the
parameters the transport accepts for that call. Parameters not listed are dropped
before dispatch, and required parameters must be present and non-empty.
"""

from dataclasses import dataclass, field
from typing import Literal

HTTPMethod = Literal["GET", "POST", "PUT", "DELETE"]

API_PREFIX = "/api/v4"

LIST_PARAMETERS = frozenset({"page", "per_page"})


@dataclass(frozen=True)
class EndpointDescriptor:
    """Describes one method of one endpoint template."""

    path: str
    method: HTTPMethod
    title: str
    required: frozenset[str] = field(default_factory=frozenset)
    optional: frozenset[str] = field(default_factory=frozenset)

    @property
    def accepted(self) -> frozenset[str]:
        """All parameter names this call will forward."""
        return self.required | self.optional


def _endpoint(path: str, method: HTTPMethod, title: str, required: tuple[str, ...] = (), optional: tuple[str, ...] = ()) -> EndpointDescriptor:
    extra = LIST_PARAMETERS if method == "GET" else frozenset()
    return EndpointDescriptor(path, method, title, frozenset(required), frozenset(optional) | extra)


_DESCRIPTORS: tuple[EndpointDescriptor, ...] = (
    # Groups
    _endpoint("/groups", "GET", "List groups", optional=("search", "owned", "all_available")),
    _endpoint("/groups/:id", "GET", "Details of a group", required=("id",)),
    _endpoint("/groups/:id/projects", "GET", "List a group's projects", required=("id",), optional=("archived", "include_subgroups")),
    _endpoint("/groups/:id/projects/:project_id", "POST", "Transfer project to group", required=("id", "project_id")),
    _endpoint("/groups/:id/members", "GET", "List group members", required=("id",), optional=("query",)),
    _endpoint("/groups/:id/members", "POST", "Add group member", required=("id", "user_id", "access_level"), optional=("expires_at",)),
    _endpoint("/groups/:id/members/:user_id", "PUT", "Edit group member", required=("id", "user_id", "access_level"), optional=("expires_at",)),
    _endpoint("/groups/:id/members/:user_id", "DELETE", "Remove group member", required=("id", "user_id")),
    # Projects
    _endpoint("/projects/:id", "GET", "Get single project", required=("id",)),
    _endpoint("/projects/:id", "PUT", "Edit project", required=("id",), optional=("name", "path", "description", "default_branch", "visibility")),
    _endpoint("/projects/:id/fork", "POST", "Fork project", required=("id",), optional=("namespace", "namespace_id", "namespace_path", "name", "path")),
    _endpoint("/users/:user_id/projects", "GET", "List user projects", required=("user_id",), optional=("archived", "owned", "search")),
    # Labels
    _endpoint("/projects/:id/labels", "GET", "List labels", required=("id",)),
    _endpoint("/projects/:id/labels", "POST", "Create a new label", required=("id", "name", "color"), optional=("description", "priority")),
    # Milestones
    _endpoint("/projects/:id/milestones", "GET", "List project milestones", required=("id",), optional=("state", "search", "title")),
    _endpoint("/projects/:id/milestones", "POST", "Create new milestone", required=("id", "title"), optional=("description", "due_date", "start_date")),
    # Issues
    _endpoint("/projects/:id/issues", "GET", "List project issues", required=("id",), optional=("state", "labels", "milestone", "order_by", "sort")),
    _endpoint(
        "/projects/:id/issues",
        "POST",
        "New issue",
        required=("id", "title"),
        optional=("description", "labels", "milestone_id", "assignee_ids", "confidential", "created_at", "due_date"),
    ),
    # Notes
    _endpoint("/projects/:id/issues/:issue_iid/notes", "GET", "List project issue notes", required=("id", "issue_iid"), optional=("sort", "order_by")),
    _endpoint("/projects/:id/issues/:issue_iid/notes", "POST", "Create new issue note", required=("id", "issue_iid", "body"), optional=("created_at",)),
    # Project members
    _endpoint("/projects/:id/members", "GET", "List project members", required=("id",), optional=("query",)),
    _endpoint("/projects/:id/members/all", "GET", "List project members including inherited", required=("id",), optional=("query",)),
    _endpoint("/projects/:id/members", "POST", "Add project member", required=("id", "user_id", "access_level"), optional=("expires_at",)),
    _endpoint("/projects/:id/members/:user_id", "PUT", "Edit project member", required=("id", "user_id", "access_level"), optional=("expires_at",)),
    _endpoint("/projects/:id/members/:user_id", "DELETE", "Remove project member", required=("id", "user_id")),
    # Users
    _endpoint("/users", "GET", "List users", optional=("search", "username", "active")),
)

ENDPOINTS: dict[str, dict[str, EndpointDescriptor]] = {}
for _descriptor in _DESCRIPTORS:
    ENDPOINTS.setdefault(_descriptor.path, {})[_descriptor.method] = _descriptor


def lookup_endpoint(path: str, method: str) -> EndpointDescriptor | None:
    """Return the descriptor for a path template and method, or None when unknown."""
    return ENDPOINTS.get(path, {}).get(method.upper())
