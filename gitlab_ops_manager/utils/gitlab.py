"""Contains utility functions for building GitLab API requests."""

import re
from typing import Any, Mapping
from urllib.parse import quote

from gitlab_ops_manager.gitlab.exceptions import GitLabPreconditionError

PLACEHOLDER_PATTERN = re.compile(r":(\w+)(?=/|$)")
"""Pattern matching a ``:name`` placeholder that fills a whole path segment."""


def parameter_is_set(value: Any) -> bool:
    """Return True when a parameter carries a usable value (None and empty strings do not)."""
    if value is None:
        return False
    if isinstance(value, str) and value == "":
        return False
    return True


def substitute_path_placeholders(path: str, params: Mapping[str, Any]) -> tuple[str, dict[str, Any]]:
    """Replace ``:name`` placeholders in an endpoint template with parameter values.

    Placeholders are substituted longest name first so that ``:id`` never consumes
    the start of ``:project_id``. Values are URL-encoded as a single path segment,
    which lets namespaced project paths such as ``group/project`` be used as IDs.

    Returns:
        The resolved path and the parameters that were not used in the path.

    Raises:
        GitLabPreconditionError: If a placeholder has no value.
    """
    remaining = dict(params)
    markers = sorted(set(PLACEHOLDER_PATTERN.findall(path)), key=len, reverse=True)
    for marker in markers:
        value = remaining.pop(marker, None)
        if not parameter_is_set(value):
            raise GitLabPreconditionError(f"Unable to locate value for URL-required param ':{marker}'")
        path = re.sub(rf":{marker}(?=/|$)", quote(str(value), safe=""), path)
    return path, remaining


def join_url(base: str, *fragments: str) -> str:
    """Join URL fragments with single slashes, skipping empty fragments."""
    parts = [base.rstrip("/")]
    for fragment in fragments:
        fragment = fragment.strip("/")
        if fragment:
            parts.append(fragment)
    return "/".join(parts)
