"""Merge request models."""

from __future__ import annotations

from datetime import datetime

from .base import GitLabModel
from .common import Diff, DiffRefs, User


class MergeRequest(GitLabModel):
    id: int = 0
    iid: int
    project_id: int = 0
    title: str = ""
    description: str | None = None
    state: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    merged_at: datetime | None = None
    closed_at: datetime | None = None
    source_branch: str = ""
    target_branch: str = ""
    author: User | None = None
    assignee: User | None = None
    sha: str | None = None
    merge_commit_sha: str | None = None
    changes_count: str | None = None
    web_url: str = ""
    diff_refs: DiffRefs | None = None


class MergeRequestChanges(MergeRequest):
    changes: list[Diff] = []
    overflow: bool = False


class MergeRequestDetails(GitLabModel):
    """A merge request together with the file diffs of its latest version."""

    merge_request: MergeRequest
    diffs: list[Diff] = []


class NotePosition(GitLabModel):
    base_sha: str | None = None
    start_sha: str | None = None
    head_sha: str | None = None
    position_type: str = "text"
    old_path: str | None = None
    new_path: str | None = None
    old_line: int | None = None
    new_line: int | None = None


class Note(GitLabModel):
    id: int
    body: str = ""
    author: User | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    system: bool = False
    resolvable: bool = False
    resolved: bool = False
    resolved_by: User | None = None
    resolved_at: datetime | None = None
    position: NotePosition | None = None
