"""Environment-driven settings for the GitLab action server."""

from __future__ import annotations

import os
from dataclasses import dataclass

API_SUFFIX = "/api/v4"

# Checked in order; the first non-empty one wins.
TOKEN_VARIABLES = (
    "GITLAB_TOKEN",
    "GITLAB_PAT",
    "GITLAB_PERSONAL_ACCESS_TOKEN",
    "GITLAB_API_TOKEN",
)

_TRUE = ("true", "1", "yes")
_FALSE = ("false", "0", "no")


def _flag(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if raw in _TRUE:
        return True
    if raw in _FALSE:
        return False
    return default


def _instance_url(raw: str) -> str:
    """Instance root; a pasted API base URL is accepted too."""
    url = raw.strip().rstrip("/")
    if url.endswith(API_SUFFIX):
        url = url[: -len(API_SUFFIX)]
    return url


@dataclass
class GitLabConfig:
    """Connection, safety and logging settings read from ``GITLAB_*`` variables."""

    url: str = ""
    token: str = ""
    read_only: bool = False
    timeout: int = 30
    ssl_verify: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> GitLabConfig:
        token = next((os.environ[name] for name in TOKEN_VARIABLES if os.getenv(name)), "")
        return cls(
            url=_instance_url(os.getenv("GITLAB_URL", "")),
            token=token,
            read_only=_flag("GITLAB_READ_ONLY", False),
            timeout=int(os.getenv("GITLAB_TIMEOUT", "30")),
            ssl_verify=_flag("GITLAB_SSL_VERIFY", True),
            log_level=os.getenv("GITLAB_LOG_LEVEL", "INFO").upper(),
        )

    @property
    def api_url(self) -> str:
        return f"{self.url}{API_SUFFIX}"

    def validate(self) -> None:
        """Raise ``ValueError`` naming every missing setting at once."""
        missing = []
        if not self.url:
            missing.append("GITLAB_URL")
        if not self.token:
            missing.append(f"GITLAB_TOKEN (or one of: {', '.join(TOKEN_VARIABLES[1:])})")
        if missing:
            msg = "Missing required environment variables: " + "; ".join(missing)
            raise ValueError(msg)
