"""Utility modules for shared functionality."""

from .gitlab import join_url, substitute_path_placeholders
from .retry import retry_on_transient_failure

__all__ = [
    "join_url",
    "substitute_path_placeholders",
    "retry_on_transient_failure",
]
