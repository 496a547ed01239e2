"""MCP server exposing action-routed GitLab tools."""

import asyncio
import logging
import os
import sys

import click
from dotenv import load_dotenv

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@click.command()
@click.option(
    "--transport",
    type=click.Choice(["stdio", "sse", "streamable-http"]),
    default="stdio",
    help="MCP transport type",
)
@click.option("--port", default=8000, help="Port for HTTP transports")
@click.option("--host", default="127.0.0.1", help="Host for HTTP transports")
@click.option("--gitlab-url", envvar="GITLAB_URL", help="GitLab instance URL")
@click.option("--gitlab-token", envvar="GITLAB_TOKEN", help="GitLab personal access token")
@click.option("--read-only", is_flag=True, help="Disable write operations")
@click.option(
    "--env-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Load environment variables from this file instead of ./.env",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level (defaults to GITLAB_LOG_LEVEL or INFO)",
)
def main(
    transport: str,
    port: int,
    host: str,
    gitlab_url: str | None,
    gitlab_token: str | None,
    read_only: bool,
    env_file: str | None,
    log_level: str | None,
) -> None:
    """Run the GitLab actions MCP server."""
    overrides = {
        "GITLAB_URL": gitlab_url,
        "GITLAB_TOKEN": gitlab_token,
        "GITLAB_READ_ONLY": "true" if read_only else None,
        "GITLAB_LOG_LEVEL": log_level.upper() if log_level else None,
    }
    # Command line options win over the process environment and the env file.
    load_dotenv(env_file)
    os.environ.update({name: value for name, value in overrides.items() if value})

    from .config import GitLabConfig

    config = GitLabConfig.from_env()
    try:
        config.validate()
    except ValueError as e:
        raise click.UsageError(str(e)) from e

    # stdout carries the stdio transport, so logs go to stderr.
    logging.basicConfig(stream=sys.stderr, level=config.log_level, format=LOG_FORMAT)
    if env_file:
        logging.getLogger(__name__).info("Loaded environment from %s", env_file)

    from .servers.gitlab import mcp

    run_kwargs: dict = {"transport": transport}
    if transport != "stdio":
        run_kwargs.update(host=host, port=port)

    asyncio.run(mcp.run_async(show_banner=False, **run_kwargs))


if __name__ == "__main__":
    main()
