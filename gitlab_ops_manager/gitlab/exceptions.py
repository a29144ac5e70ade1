"""Exceptions raised by the GitLab transport and adapter."""

from typing import Any


class GitLabOpsError(Exception):
    """Base class for every error raised by this package."""

    pass


class GitLabError(GitLabOpsError):
    """Base class for errors raised while talking to the GitLab API."""

    def __init__(self, message: str) -> None:
        """Initialize the error with a human-readable message."""
        super().__init__(message)
        self.message = message


class GitLabTransportError(GitLabError):
    """Raised when a request could not be delivered or its response could not be read."""

    def __init__(self, message: str, is_transient: bool = True, before_send: bool = False) -> None:
        """Initialize the error.

        Args:
            message: Human-readable description of the failure.
            is_transient: Whether repeating the request may succeed (timeouts, network errors).
            before_send: Whether the failure happened before any of the request reached GitLab.
        """
        super().__init__(message)
        self.is_transient = is_transient
        self.before_send = before_send


class GitLabRequestFailed(GitLabError):
    """Raised when GitLab answers with a non-2xx status."""

    def __init__(self, status_code: int, status_line: str, url: str, detail: Any = None, retry_after: float | None = None) -> None:
        """Initialize the error with the status of the failed response."""
        message = f"Request failed. Response was: {status_line}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.status_code = status_code
        self.status_line = status_line
        self.url = url
        self.detail = detail
        self.retry_after = retry_after

    @property
    def is_transient(self) -> bool:
        """Rate limiting and server-side failures may succeed when repeated."""
        return self.status_code == 429 or self.status_code >= 500


class GitLabResponseDecodeError(GitLabError):
    """Raised when a successful response carries a body that is not valid JSON."""

    pass


class GitLabPreconditionError(GitLabError):
    """Raised before dispatch when a request cannot be built from the given parameters."""

    pass


class InvalidAccessLevelError(GitLabPreconditionError):
    """Raised when an access level is neither a known name nor a known numeric level."""

    def __init__(self, level: Any) -> None:
        """Initialize the error with the offending level."""
        super().__init__(f"Invalid access level: {level!r}")
        self.level = level
