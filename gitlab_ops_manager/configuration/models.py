"""Models for GitLab connection configuration."""

from dataclasses import dataclass


@dataclass
class GitLabConnectionConfig:
    """Configuration needed to open a connection to a GitLab instance."""

    gitlab_api_url: str
    gitlab_private_token: str
    gitlab_sudo: str | None = None
    request_timeout: float = 30.0
    per_page: int = 100
