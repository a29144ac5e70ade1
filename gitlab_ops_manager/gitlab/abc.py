"""Base ABC for GitLab transports."""

from abc import ABC, abstractmethod
from typing import Any, Mapping

from gitlab_ops_manager.gitlab.endpoints import HTTPMethod


class GitLabTransportBase(ABC):
    """Base ABC for GitLab transports.

    A transport issues one HTTP request per call. It owns the acting-identity
    override, so a single instance must only be used by one top-level operation
    at a time.
    """

    @abstractmethod
    async def call(self, endpoint: str, method: HTTPMethod, params: Mapping[str, Any] | None = None) -> Any:
        """Call an endpoint template with parameters and return the decoded JSON body."""
        pass

    @abstractmethod
    async def call_url(self, url: str) -> Any:
        """GET an absolute URL (such as a pagination link) and return the decoded JSON body."""
        pass

    @abstractmethod
    def next_page_url(self) -> str | None:
        """Return the URL of the next page of the last response, if there is one."""
        pass

    @property
    @abstractmethod
    def acting_identity(self) -> str | None:
        """The user requests are currently performed as, or None for the token owner."""
        pass

    @abstractmethod
    def set_acting_identity(self, user: str | None) -> None:
        """Set (or clear with None) the user requests are performed as."""
        pass

    async def aclose(self) -> None:
        """Release any resources held by the transport."""
        return None
