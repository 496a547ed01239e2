"""Tests for the command line entry point."""

from __future__ import annotations

from click.testing import CliRunner

from mcp_gitlab_actions import main
from mcp_gitlab_actions.config import TOKEN_VARIABLES


def test_missing_settings_exit_before_serving(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("")
    result = CliRunner().invoke(
        main,
        ["--env-file", str(env_file)],
        env={name: None for name in ("GITLAB_URL", *TOKEN_VARIABLES)},
    )
    assert result.exit_code == 2
    assert "Missing required environment variables" in result.output
    assert "GITLAB_URL" in result.output


def test_rejects_unknown_transport():
    result = CliRunner().invoke(main, ["--transport", "websocket"])
    assert result.exit_code == 2
    assert "websocket" in result.output
