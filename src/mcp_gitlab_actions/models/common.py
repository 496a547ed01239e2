"""Payload pieces shared by merge requests, commits, pipelines and search."""

from __future__ import annotations

from .base import GitLabModel


class User(GitLabModel):
    id: int = 0
    username: str = ""
    name: str = ""
    email: str = ""
    state: str = ""
    web_url: str = ""

    @property
    def identity(self) -> str:
        """``Name <email>`` when the email is public, otherwise just the name."""
        return f"{self.name} <{self.email}>" if self.email else self.name


class DiffRefs(GitLabModel):
    base_sha: str = ""
    head_sha: str = ""
    start_sha: str = ""


class Diff(GitLabModel):
    """One file of a merge request or commit diff."""

    old_path: str = ""
    new_path: str = ""
    diff: str = ""
    new_file: bool = False
    renamed_file: bool = False
    deleted_file: bool = False

    @property
    def path(self) -> str:
        return self.new_path or self.old_path

    @property
    def status(self) -> str:
        if self.new_file:
            return "Added"
        if self.deleted_file:
            return "Deleted"
        if self.renamed_file:
            return f"Renamed from {self.old_path}"
        return "Modified"
