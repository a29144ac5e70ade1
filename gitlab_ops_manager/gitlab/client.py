"""Sets up the authenticated httpx client used to talk to GitLab."""

import httpx

from gitlab_ops_manager.version import __version__

USER_AGENT = f"gitlab-ops-manager/{__version__}"


async def get_gitlab_client(gitlab_api_url: str, gitlab_private_token: str, request_timeout: float = 30.0) -> httpx.AsyncClient:
    """Returns an httpx client authenticated against a GitLab instance with a private token.

    The token is sent on every request in the ``PRIVATE-TOKEN`` header. The acting
    identity (``Sudo``) is not part of the client; the transport adds it per request.
    Raises RuntimeError if the token or URL is missing.
    """
    if not gitlab_api_url:
        raise RuntimeError("GitLab authentication requires gitlab_api_url in config.")
    if not gitlab_private_token:
        raise RuntimeError("GitLab authentication requires gitlab_private_token in config.")
    return httpx.AsyncClient(
        base_url=gitlab_api_url,
        headers={"PRIVATE-TOKEN": gitlab_private_token, "User-Agent": USER_AGENT},
        timeout=httpx.Timeout(request_timeout),
        follow_redirects=True,
    )
