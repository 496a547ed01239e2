"""Pipeline and job models."""

from __future__ import annotations

from datetime import datetime

from .base import GitLabModel
from .common import User


class Pipeline(GitLabModel):
    id: int
    iid: int = 0
    status: str = ""
    ref: str = ""
    sha: str = ""
    web_url: str = ""
    source: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
    duration: float | None = None
    coverage: str | None = None
    user: User | None = None


class JobPipeline(GitLabModel):
    id: int = 0
    status: str = ""
    ref: str = ""
    sha: str = ""


class Runner(GitLabModel):
    id: int = 0
    name: str | None = None
    description: str = ""
    active: bool = False
    is_shared: bool = False


class JobArtifact(GitLabModel):
    file_type: str = ""
    filename: str = ""
    size: int = 0


class JobCommit(GitLabModel):
    id: str = ""
    title: str = ""
    message: str = ""
    author_name: str = ""
    author_email: str = ""


class Job(GitLabModel):
    id: int
    name: str = ""
    stage: str = ""
    status: str = ""
    ref: str = ""
    tag: bool = False
    allow_failure: bool = False
    created_at: datetime | None = None
    started_at: datetime | None = None
    finished_at: datetime | None = None
    erased_at: datetime | None = None
    artifacts_expire_at: datetime | None = None
    duration: float | None = None
    queued_duration: float | None = None
    coverage: float | None = None
    failure_reason: str | None = None
    web_url: str = ""
    pipeline: JobPipeline | None = None
    runner: Runner | None = None
    artifacts: list[JobArtifact] = []
    tag_list: list[str] = []
    user: User | None = None
    commit: JobCommit | None = None


class JobLog(GitLabModel):
    """The tail of a job trace, as selected by the handler."""

    job_id: int
    lines: list[str] = []
    total_lines: int = 0
