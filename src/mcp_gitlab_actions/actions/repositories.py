"""Commit, commit operation and repository file tools."""

from __future__ import annotations

from datetime import date
from typing import Literal

from pydantic import Field

from ..client import GitLabClient
from ..dispatch.facade import ActionTool
from ..dispatch.router import ActionDefinition, ActionRouter
from ..dispatch.schema import ActionRequest, ActionSpec, OptionBlock, ToolSchema
from ..formatters import repositories as fmt
from ..models.common import Diff
from ..models.merge_requests import MergeRequest
from ..models.repositories import (
    Commit,
    CommitComment,
    CommitDetails,
    CommitHistory,
    CommitRef,
    FileContent,
)
from .fields import CommitSha, DateString, ProjectPath, Ref

DEFAULT_SEARCH_REF = "develop"
# The window closes at 23:00 UTC of the last day.
UNTIL_TIME = "T23:00:00Z"


def _window(since: str | None, until: str | None) -> dict[str, str]:
    query = {}
    if since:
        query["since"] = f"{since}T00:00:00Z"
    if until:
        query["until"] = f"{until}{UNTIL_TIME}"
    return query


# ════════════════════════════════════════════════════════════════════
# manage_commits
# ════════════════════════════════════════════════════════════════════


class CommitParams(OptionBlock):
    project_path: ProjectPath
    commit_sha: CommitSha | None = None
    ref: Ref | None = None


class ListOptions(OptionBlock):
    since: DateString
    until: DateString | None = None


class SearchOptions(OptionBlock):
    author: str | None = Field(default=None, min_length=1, max_length=100)
    path: str | None = Field(default=None, min_length=1, max_length=500)
    since: DateString | None = None
    until: DateString | None = None


class CommentOptions(OptionBlock):
    note: str = Field(min_length=1, max_length=1000)
    path: str | None = Field(default=None, min_length=1, max_length=500)
    line: int | None = Field(default=None, ge=1)
    line_type: Literal["new", "old"] | None = None


class RefsOptions(OptionBlock):
    type: Literal["branch", "tag"] | None = None


async def _list(client: GitLabClient, request: ActionRequest) -> CommitHistory:
    params: CommitParams = request.params
    opts: ListOptions = request.options
    until = opts.until or date.today().isoformat()
    query = {"ref_name": params.ref, **_window(opts.since, until)}
    data = await client.list_commits(params.project_path, query)
    return CommitHistory(
        ref=params.ref, since=opts.since, until=until, commits=Commit.from_api(data)
    )


async def _search(client: GitLabClient, request: ActionRequest) -> CommitHistory:
    params: CommitParams = request.params
    opts: SearchOptions = request.options
    ref = params.ref or DEFAULT_SEARCH_REF
    query = {"ref_name": ref, **_window(opts.since, opts.until)}
    if opts.author:
        query["author"] = opts.author
    if opts.path:
        query["path"] = opts.path
    data = await client.list_commits(params.project_path, query)
    return CommitHistory(
        ref=ref, since=opts.since, until=opts.until, commits=Commit.from_api(data)
    )


async def _details(client: GitLabClient, request: ActionRequest) -> CommitDetails:
    params: CommitParams = request.params
    commit = await client.get_commit(params.project_path, params.commit_sha)
    diffs = await client.get_commit_diff(params.project_path, params.commit_sha)
    return CommitDetails(commit=Commit.from_api(commit), diffs=Diff.from_api(diffs or []))


async def _comments(client: GitLabClient, request: ActionRequest) -> list[CommitComment]:
    params: CommitParams = request.params
    data = await client.list_commit_comments(params.project_path, params.commit_sha)
    return CommitComment.from_api(data)


async def _post_comment(client: GitLabClient, request: ActionRequest) -> CommitComment:
    params: CommitParams = request.params
    body = request.options.model_dump(exclude_none=True)
    data = await client.post_commit_comment(params.project_path, params.commit_sha, body)
    return CommitComment.from_api(data)


async def _merge_requests(client: GitLabClient, request: ActionRequest) -> list[MergeRequest]:
    params: CommitParams = request.params
    data = await client.list_commit_merge_requests(params.project_path, params.commit_sha)
    return MergeRequest.from_api(data)


async def _refs(client: GitLabClient, request: ActionRequest) -> list[CommitRef]:
    params: CommitParams = request.params
    data = await client.get_commit_refs(
        params.project_path, params.commit_sha, request.options.type or "all"
    )
    return CommitRef.from_api(data)


_SHA = ("commit_sha",)

COMMITS_SCHEMA = ToolSchema(
    tool_name="manage_commits",
    params=CommitParams,
    actions=(
        ActionSpec("list", ListOptions, "list_options", requires=("ref",)),
        ActionSpec("search", SearchOptions, "search_options"),
        ActionSpec("get_details", requires=_SHA),
        ActionSpec("get_comments", requires=_SHA),
        ActionSpec("post_comment", CommentOptions, "comment_options", requires=_SHA),
        ActionSpec("get_merge_requests", requires=_SHA),
        ActionSpec("get_refs", RefsOptions, "refs_options", requires=_SHA),
    ),
)

COMMITS_TOOL = ActionTool(
    COMMITS_SCHEMA,
    ActionRouter(
        "manage_commits",
        [
            ActionDefinition(
                name="list", handler=_list, formatter=fmt.format_history, operation="list commits"
            ),
            ActionDefinition(
                name="search",
                handler=_search,
                formatter=fmt.format_search,
                operation="search commits",
            ),
            ActionDefinition(
                name="get_details",
                handler=_details,
                formatter=fmt.format_details,
                operation="get commit details",
            ),
            ActionDefinition(
                name="get_comments",
                handler=_comments,
                formatter=fmt.format_comments,
                operation="get commit comments",
            ),
            ActionDefinition(
                name="post_comment",
                handler=_post_comment,
                formatter=fmt.format_comment_posted,
                operation="post commit comment",
                mutating=True,
            ),
            ActionDefinition(
                name="get_merge_requests",
                handler=_merge_requests,
                formatter=fmt.format_merge_requests,
                operation="get commit merge requests",
            ),
            ActionDefinition(
                name="get_refs",
                handler=_refs,
                formatter=fmt.format_refs,
                operation="get commit refs",
            ),
        ],
        schema=COMMITS_SCHEMA,
    ),
)


# ════════════════════════════════════════════════════════════════════
# commit_operations
# ════════════════════════════════════════════════════════════════════


class CommitOperationParams(OptionBlock):
    project_path: ProjectPath
    commit_sha: CommitSha
    branch: Ref


class CherryPickOptions(OptionBlock):
    dry_run: bool = False
    message: str | None = Field(default=None, min_length=1, max_length=500)


async def _cherry_pick(client: GitLabClient, request: ActionRequest) -> Commit:
    params: CommitOperationParams = request.params
    opts: CherryPickOptions = request.options
    body: dict = {"branch": params.branch}
    if opts.dry_run:
        body["dry_run"] = True
    if opts.message:
        body["message"] = opts.message
    data = await client.cherry_pick_commit(params.project_path, params.commit_sha, body)
    return Commit.from_api(data or {})


async def _revert(client: GitLabClient, request: ActionRequest) -> Commit:
    params: CommitOperationParams = request.params
    data = await client.revert_commit(params.project_path, params.commit_sha, params.branch)
    return Commit.from_api(data)


OPERATIONS_SCHEMA = ToolSchema(
    tool_name="commit_operations",
    params=CommitOperationParams,
    actions=(
        ActionSpec("cherry_pick", CherryPickOptions, "cherry_pick_options"),
        ActionSpec("revert"),
    ),
)

OPERATIONS_TOOL = ActionTool(
    OPERATIONS_SCHEMA,
    ActionRouter(
        "commit_operations",
        [
            ActionDefinition(
                name="cherry_pick",
                handler=_cherry_pick,
                formatter=fmt.format_cherry_pick,
                operation="cherry-pick commit",
                mutating=True,
            ),
            ActionDefinition(
                name="revert",
                handler=_revert,
                formatter=fmt.format_revert,
                operation="revert commit",
                mutating=True,
            ),
        ],
        schema=OPERATIONS_SCHEMA,
    ),
)


# ════════════════════════════════════════════════════════════════════
# manage_repository_files
# ════════════════════════════════════════════════════════════════════


class FileParams(OptionBlock):
    project_path: ProjectPath
    file_path: str = Field(min_length=1, max_length=500)
    ref: Ref


async def _file_content(client: GitLabClient, request: ActionRequest) -> FileContent:
    params: FileParams = request.params
    content = await client.get_raw_file(params.project_path, params.file_path, params.ref)
    return FileContent(file_path=params.file_path, ref=params.ref, content=content or "")


FILES_SCHEMA = ToolSchema(
    tool_name="manage_repository_files",
    params=FileParams,
    actions=(ActionSpec("get_content"),),
)

FILES_TOOL = ActionTool(
    FILES_SCHEMA,
    ActionRouter(
        "manage_repository_files",
        [
            ActionDefinition(
                name="get_content",
                handler=_file_content,
                formatter=fmt.format_file_content,
                operation="get file content",
            ),
        ],
        schema=FILES_SCHEMA,
    ),
)
