"""Shared test fixtures for mcp-gitlab-actions."""

from __future__ import annotations

import pytest
import respx

from mcp_gitlab_actions.client import GitLabClient
from mcp_gitlab_actions.config import GitLabConfig

TEST_URL = "https://gitlab.example.com"
TEST_TOKEN = "test-token"


@pytest.fixture
def config() -> GitLabConfig:
    return GitLabConfig(url=TEST_URL, token=TEST_TOKEN)


@pytest.fixture
def readonly_config() -> GitLabConfig:
    return GitLabConfig(url=TEST_URL, token=TEST_TOKEN, read_only=True)


@pytest.fixture
async def client(config: GitLabConfig):
    gitlab = GitLabClient(config)
    yield gitlab
    await gitlab.close()


@pytest.fixture
def mock_api() -> respx.MockRouter:
    with respx.mock(base_url=f"{TEST_URL}/api/v4") as router:
        yield router
