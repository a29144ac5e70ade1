"""GitLab REST transport built on httpx."""

from typing import Any, Mapping, Self

import httpx
import structlog

from gitlab_ops_manager.gitlab.endpoints import API_PREFIX, HTTPMethod, lookup_endpoint
from gitlab_ops_manager.gitlab.exceptions import (
    GitLabPreconditionError,
    GitLabRequestFailed,
    GitLabResponseDecodeError,
    GitLabTransportError,
)
from gitlab_ops_manager.utils.gitlab import join_url, parameter_is_set, substitute_path_placeholders
from gitlab_ops_manager.utils.retry import retry_on_transient_failure

from .abc import GitLabTransportBase
from .client import get_gitlab_client

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

SUDO_HEADER = "Sudo"

TRANSIENT_HTTP_ERRORS = (httpx.TimeoutException, httpx.NetworkError)
# Raised before any byte of the request left the client
UNSENT_HTTP_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout, httpx.PoolTimeout)


def _request_failed_from_response(response: httpx.Response) -> GitLabRequestFailed:
    """Build a GitLabRequestFailed from a non-2xx response."""
    detail: Any = None
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        detail = body.get("message") or body.get("error")
    retry_after: float | None = None
    if "retry-after" in response.headers:
        try:
            retry_after = float(response.headers["retry-after"])
        except ValueError:
            logger.warning("Invalid retry-after header value", retry_after=response.headers["retry-after"])
    return GitLabRequestFailed(
        status_code=response.status_code,
        status_line=f"{response.status_code} {response.reason_phrase}",
        url=str(response.url),
        detail=detail,
        retry_after=retry_after,
    )


class GitLabTransport(GitLabTransportBase):
    """Issues GitLab API requests described by the endpoint catalog.

    Not safe for concurrent use: the acting identity is instance state, so give
    each concurrent top-level operation its own transport.
    """

    def __init__(self, client: httpx.AsyncClient, sudo: str | None = None) -> None:
        """Initialize the transport with an already-initialized httpx client."""
        self.client = client
        self._acting_identity: str | None = sudo or None
        self._next_page_url: str | None = None

    @classmethod
    async def create(
        cls,
        gitlab_api_url: str,
        gitlab_private_token: str,
        gitlab_sudo: str | None = None,
        request_timeout: float = 30.0,
    ) -> Self:
        """Create a transport with its own authenticated httpx client."""
        client = await get_gitlab_client(gitlab_api_url, gitlab_private_token, request_timeout)
        return cls(client, sudo=gitlab_sudo)

    async def aclose(self) -> None:
        """Close the underlying httpx client."""
        await self.client.aclose()

    @property
    def acting_identity(self) -> str | None:
        """The user requests are currently performed as, or None for the token owner."""
        return self._acting_identity

    def set_acting_identity(self, user: str | None) -> None:
        """Set (or clear with None or an empty string) the user requests are performed as."""
        self._acting_identity = user or None

    def next_page_url(self) -> str | None:
        """Return the ``rel="next"`` link of the last response, if there is one."""
        return self._next_page_url

    async def call(self, endpoint: str, method: HTTPMethod, params: Mapping[str, Any] | None = None) -> Any:
        """Call an endpoint template from the catalog.

        Required parameters must be supplied, optional ones are forwarded when set,
        and anything else is dropped. Path placeholders are filled from the
        parameters and removed from the query string or body.
        """
        method = method.upper()  # type: ignore[assignment]
        descriptor = lookup_endpoint(endpoint, method)
        if descriptor is None:
            raise GitLabPreconditionError(f"Attempt to perform '{method}' of operation '{endpoint}': bad method/operation specified")

        supplied = params or {}
        use_params: dict[str, Any] = {}
        for name in sorted(descriptor.required):
            if not parameter_is_set(supplied.get(name)):
                raise GitLabPreconditionError(f"{endpoint} called without required parameter '{name}'")
            use_params[name] = supplied[name]
        for name in sorted(descriptor.optional):
            if parameter_is_set(supplied.get(name)):
                use_params[name] = supplied[name]

        path, remaining = substitute_path_placeholders(endpoint, use_params)
        url = join_url(API_PREFIX, path)
        if method == "GET":
            return await self._read(url, params=remaining)
        return await self._write(method, url, data=remaining)

    async def call_url(self, url: str) -> Any:
        """GET an absolute URL, typically a pagination link from a previous response."""
        return await self._read(url)

    @retry_on_transient_failure()
    async def _read(self, url: str, params: dict[str, Any] | None = None) -> Any:
        return await self._send("GET", url, params=params)

    # Writes are not replayed once GitLab may have stored them
    @retry_on_transient_failure(replay_safe=False)
    async def _write(self, method: str, url: str, data: dict[str, Any] | None = None) -> Any:
        return await self._send(method, url, data=data)

    async def _send(self, method: str, url: str, params: dict[str, Any] | None = None, data: dict[str, Any] | None = None) -> Any:
        self._next_page_url = None
        headers = {SUDO_HEADER: self._acting_identity} if self._acting_identity else {}
        logger.debug("Sending GitLab request", method=method, url=url, acting_identity=self._acting_identity)
        try:
            response = await self.client.request(method, url, params=params or None, data=data or None, headers=headers)
        except httpx.HTTPError as exc:
            raise GitLabTransportError(
                f"Request {method} {url} failed: {exc}",
                is_transient=isinstance(exc, TRANSIENT_HTTP_ERRORS),
                before_send=isinstance(exc, UNSENT_HTTP_ERRORS),
            ) from exc

        if not response.is_success:
            raise _request_failed_from_response(response)

        next_link = response.links.get("next")
        self._next_page_url = next_link.get("url") if next_link else None

        # A successful response with no body is okay
        if not response.content:
            return {"status": "success"}
        try:
            return response.json()
        except ValueError as exc:
            raise GitLabResponseDecodeError(f"Request succeeded, but JSON parsing failed: {exc}") from exc
