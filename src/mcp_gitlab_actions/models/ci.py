"""CI/CD variable and deploy token models."""

from __future__ import annotations

from datetime import datetime

from .base import GitLabModel


class Variable(GitLabModel):
    key: str = ""
    value: str | None = None
    variable_type: str = "env_var"
    protected: bool = False
    masked: bool = False
    raw: bool = False
    environment_scope: str = "*"
    description: str | None = None


class DeployToken(GitLabModel):
    id: int
    name: str = ""
    username: str = ""
    expires_at: datetime | None = None
    revoked: bool = False
    expired: bool = False
    scopes: list[str] = []
    token: str | None = None
