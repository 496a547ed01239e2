"""Project, group member, event and search models."""

from __future__ import annotations

from datetime import datetime

from .base import GitLabModel


class Project(GitLabModel):
    id: int
    name: str = ""
    path_with_namespace: str = ""
    description: str | None = None
    default_branch: str | None = None
    web_url: str = ""
    last_activity_at: datetime | None = None


class ProjectOverview(GitLabModel):
    project: Project
    branches: list[str] = []
    tags: list[str] = []


class GroupMember(GitLabModel):
    id: int
    username: str = ""
    name: str = ""
    state: str = ""
    access_level: int = 0
    expires_at: str | None = None


class PushData(GitLabModel):
    commit_count: int = 0
    ref: str | None = None
    commit_title: str | None = None
    commit_from: str | None = None
    commit_to: str | None = None


class Event(GitLabModel):
    id: int = 0
    action_name: str = ""
    created_at: datetime | None = None
    target_type: str | None = None
    target_iid: int | None = None
    project_id: int | None = None
    push_data: PushData | None = None


class SearchBlob(GitLabModel):
    data: str = ""
    path: str = ""
    filename: str = ""
    ref: str = ""
    startline: int = 0
    project_id: int = 0
