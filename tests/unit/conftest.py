"""Fixtures for unit tests."""

from typing import Generator

import pytest
import structlog

from gitlab_ops_manager.gitlab.adapter import GitLabAdapter
from tests.unit.fakes import DESTINATION_PROJECT_ID, SOURCE_PROJECT_ID, FakeGitLab


@pytest.fixture(autouse=True)
def configure_structlog_for_caplog() -> Generator[None, None, None]:
    """Configure structlog for use with caplog."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    yield
    structlog.reset_defaults()


@pytest.fixture
def gitlab() -> FakeGitLab:
    """A fake GitLab with an empty source and an empty destination project."""
    fake = FakeGitLab()
    fake.add_project(SOURCE_PROJECT_ID, "source")
    fake.add_project(DESTINATION_PROJECT_ID, "destination")
    return fake


@pytest.fixture
def adapter(gitlab: FakeGitLab) -> GitLabAdapter:
    """An adapter talking to the fake GitLab."""
    return GitLabAdapter(gitlab)
