"""Repository models: branches, tags, commits, files."""

from __future__ import annotations

from datetime import datetime

from .base import GitLabModel
from .common import Diff, User


class CommitStats(GitLabModel):
    additions: int = 0
    deletions: int = 0
    total: int = 0


class Commit(GitLabModel):
    id: str = ""
    short_id: str = ""
    title: str = ""
    message: str = ""
    author_name: str = ""
    author_email: str = ""
    authored_date: datetime | None = None
    committer_name: str = ""
    committer_email: str = ""
    committed_date: datetime | None = None
    created_at: datetime | None = None
    parent_ids: list[str] = []
    web_url: str = ""
    stats: CommitStats | None = None


class CommitDetails(GitLabModel):
    commit: Commit
    diffs: list[Diff] = []


class CommitComment(GitLabModel):
    note: str = ""
    path: str | None = None
    line: int | None = None
    line_type: str | None = None
    author: User | None = None
    created_at: datetime | None = None


class CommitRef(GitLabModel):
    type: str = ""
    name: str = ""


class Branch(GitLabModel):
    name: str = ""
    merged: bool = False
    protected: bool = False
    default: bool = False
    web_url: str = ""
    commit: Commit | None = None


class Tag(GitLabModel):
    name: str = ""
    message: str | None = None
    target: str = ""


class FileContent(GitLabModel):
    file_path: str
    ref: str
    content: str = ""


class CommitHistory(GitLabModel):
    """Commits of one ref inside a date window, with the bounds actually queried."""

    ref: str
    since: str | None = None
    until: str | None = None
    commits: list[Commit] = []
