"""Reconcile GitLab connection configuration."""

from gitlab_ops_manager.configuration.env import Settings
from gitlab_ops_manager.configuration.exceptions import RequiredConfigurationElementError
from gitlab_ops_manager.configuration.models import GitLabConnectionConfig


async def validate_gitlab_connection_configuration(
    gitlab_api_url: str | None,
    gitlab_private_token: str | None,
) -> None:
    """Validates the GitLab connection configuration.

    Args:
        gitlab_api_url (str | None): Base URL of the GitLab instance.
        gitlab_private_token (str | None): The private (or personal access) token used to authenticate.

    Raises:
        RequiredConfigurationElementError: If the URL or the token is missing.
    """
    if not gitlab_api_url:
        raise RequiredConfigurationElementError("GitLab API URL", "GITLAB_API_URL")
    if not gitlab_private_token:
        raise RequiredConfigurationElementError("GitLab private token", "GITLAB_PRIVATE_TOKEN")


async def reconcile_connection_configuration(settings: Settings) -> GitLabConnectionConfig:
    """Build a validated connection configuration from environment settings."""
    await validate_gitlab_connection_configuration(settings.GITLAB_API_URL, settings.GITLAB_PRIVATE_TOKEN)
    return GitLabConnectionConfig(
        gitlab_api_url=settings.GITLAB_API_URL,
        gitlab_private_token=settings.GITLAB_PRIVATE_TOKEN,  # type: ignore[arg-type]
        gitlab_sudo=settings.GITLAB_SUDO or None,
        request_timeout=settings.GITLAB_REQUEST_TIMEOUT,
        per_page=settings.GITLAB_PER_PAGE,
    )
