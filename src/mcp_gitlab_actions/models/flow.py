"""Results of Git-flow branch operations."""

from __future__ import annotations

from typing import Literal

from .base import GitLabModel
from .merge_requests import MergeRequest
from .repositories import Branch

BranchType = Literal["feature", "release", "hotfix"]


class FlowStart(GitLabModel):
    branch_type: BranchType
    name: str
    base_branch: str
    branch: Branch


class FlowStep(GitLabModel):
    """One merge request the finish operation tried to open."""

    target_branch: str
    merge_request: MergeRequest | None = None
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.merge_request is not None


class FlowFinish(GitLabModel):
    branch_type: BranchType
    name: str
    branch: str
    steps: list[FlowStep] = []
    delete_requested: bool = False
    deleted: bool = False
    delete_error: str | None = None

    @property
    def failed_steps(self) -> int:
        return sum(1 for step in self.steps if not step.succeeded)


class FlowBranches(GitLabModel):
    branch_type: Literal["feature", "release", "hotfix", "all"]
    feature: list[Branch] = []
    release: list[Branch] = []
    hotfix: list[Branch] = []
