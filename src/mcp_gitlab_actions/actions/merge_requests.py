"""Merge request tools: the MR itself, its comments and its pipelines."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field, model_validator

from ..client import GitLabClient
from ..dispatch.facade import ActionTool
from ..dispatch.router import ActionDefinition, ActionRouter
from ..dispatch.schema import ActionRequest, ActionSpec, OptionBlock, ToolSchema
from ..formatters import merge_requests as fmt
from ..formatters import pipelines as pipeline_fmt
from ..models.common import Diff
from ..models.merge_requests import MergeRequest, MergeRequestChanges, MergeRequestDetails, Note
from ..models.pipelines import Pipeline
from ..models.repositories import Commit
from .fields import PositiveId, ProjectPath, parse_mr_url

MR_STATES = ("opened", "closed", "merged", "all")


class MergeRequestParams(OptionBlock):
    project_path: ProjectPath
    mr_iid: PositiveId | None = None

    @model_validator(mode="before")
    @classmethod
    def _iid_from_url(cls, data: Any) -> Any:
        """Accept a merge request URL as project_path and take the IID from it."""
        if isinstance(data, dict) and isinstance(data.get("project_path"), str):
            project, iid = parse_mr_url(data["project_path"])
            if iid:
                data = {**data, "project_path": project}
                if not data.get("mr_iid"):
                    data["mr_iid"] = iid
        return data


class ListOptions(OptionBlock):
    state: Literal["opened", "closed", "merged", "all"] = "all"


class CreateOptions(OptionBlock):
    source_branch: str = Field(min_length=1, max_length=255)
    target_branch: str = Field(min_length=1, max_length=255)
    title: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=1_000_000)


class UpdateOptions(OptionBlock):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=1_000_000)
    target_branch: str | None = Field(default=None, min_length=1, max_length=255)
    state_event: Literal["close", "reopen"] | None = None
    assignee_id: PositiveId | None = None
    milestone_id: PositiveId | None = None
    labels: str | None = Field(default=None, description="Comma separated label names")
    remove_source_branch: bool | None = None
    squash: bool | None = None
    discussion_locked: bool | None = None


class AcceptOptions(OptionBlock):
    merge_commit_message: str | None = Field(default=None, max_length=1000)
    squash_commit_message: str | None = Field(default=None, max_length=1000)
    squash: bool | None = None
    should_remove_source_branch: bool | None = None
    merge_when_pipeline_succeeds: bool | None = None


class RebaseOptions(OptionBlock):
    skip_ci: bool = False


class ChangesOptions(OptionBlock):
    access_raw_diffs: bool = False
    unidiff: bool = False


class CommentOptions(OptionBlock):
    comment: str = Field(min_length=1, max_length=1_000_000)


# ════════════════════════════════════════════════════════════════════
# manage_merge_request
# ════════════════════════════════════════════════════════════════════


async def _list(client: GitLabClient, request: ActionRequest) -> list[MergeRequest]:
    params: MergeRequestParams = request.params
    data = await client.list_merge_requests(
        params.project_path, {"state": request.options.state}
    )
    return MergeRequest.from_api(data)


async def _get(client: GitLabClient, request: ActionRequest) -> MergeRequestDetails:
    params: MergeRequestParams = request.params
    mr = await client.get_merge_request(params.project_path, params.mr_iid)
    diffs = await client.list_merge_request_diffs(params.project_path, params.mr_iid)
    return MergeRequestDetails(
        merge_request=MergeRequest.from_api(mr), diffs=Diff.from_api(diffs or [])
    )


async def _create(client: GitLabClient, request: ActionRequest) -> MergeRequest:
    opts: CreateOptions = request.options
    data = await client.create_merge_request(
        request.params.project_path, opts.model_dump(exclude_none=True)
    )
    return MergeRequest.from_api(data)


async def _update(client: GitLabClient, request: ActionRequest) -> MergeRequest:
    params: MergeRequestParams = request.params
    body = request.options.model_dump(exclude_none=True)
    data = await client.update_merge_request(params.project_path, params.mr_iid, body)
    return MergeRequest.from_api(data)


async def _accept(client: GitLabClient, request: ActionRequest) -> MergeRequest:
    params: MergeRequestParams = request.params
    body = request.options.model_dump(exclude_none=True)
    data = await client.merge_merge_request(params.project_path, params.mr_iid, body)
    return MergeRequest.from_api(data)


async def _rebase(client: GitLabClient, request: ActionRequest) -> dict | None:
    params: MergeRequestParams = request.params
    return await client.rebase_merge_request(
        params.project_path, params.mr_iid, skip_ci=request.options.skip_ci
    )


async def _changes(client: GitLabClient, request: ActionRequest) -> MergeRequestChanges:
    params: MergeRequestParams = request.params
    opts: ChangesOptions = request.options
    query = {"access_raw_diffs": opts.access_raw_diffs, "unidiff": opts.unidiff}
    data = await client.get_merge_request_changes(params.project_path, params.mr_iid, query)
    return MergeRequestChanges.from_api(data)


MERGE_REQUEST_SCHEMA = ToolSchema(
    tool_name="manage_merge_request",
    params=MergeRequestParams,
    actions=(
        ActionSpec("list", ListOptions, "list_options"),
        ActionSpec("get", requires=("mr_iid",)),
        ActionSpec("create", CreateOptions, "create_options"),
        ActionSpec("update", UpdateOptions, "update_options", requires=("mr_iid",)),
        ActionSpec("accept", AcceptOptions, "accept_options", requires=("mr_iid",)),
        ActionSpec("rebase", RebaseOptions, "rebase_options", requires=("mr_iid",)),
        ActionSpec("changes", ChangesOptions, "changes_options", requires=("mr_iid",)),
    ),
)

MERGE_REQUEST_TOOL = ActionTool(
    MERGE_REQUEST_SCHEMA,
    ActionRouter(
        "manage_merge_request",
        [
            ActionDefinition(
                name="list",
                handler=_list,
                formatter=fmt.format_merge_request_list,
                operation="list merge requests",
                summary="List merge requests of a project",
            ),
            ActionDefinition(
                name="get",
                handler=_get,
                formatter=fmt.format_merge_request_details,
                operation="get merge request",
                summary="Get a merge request with its file diffs",
            ),
            ActionDefinition(
                name="create",
                handler=_create,
                formatter=fmt.format_created,
                operation="create merge request",
                mutating=True,
            ),
            ActionDefinition(
                name="update",
                handler=_update,
                formatter=fmt.format_updated,
                operation="update merge request",
                mutating=True,
            ),
            ActionDefinition(
                name="accept",
                handler=_accept,
                formatter=fmt.format_accepted,
                operation="accept merge request",
                mutating=True,
            ),
            ActionDefinition(
                name="rebase",
                handler=_rebase,
                formatter=fmt.format_rebased,
                operation="rebase merge request",
                mutating=True,
            ),
            ActionDefinition(
                name="changes",
                handler=_changes,
                formatter=fmt.format_changes,
                operation="get merge request changes",
            ),
        ],
        schema=MERGE_REQUEST_SCHEMA,
    ),
)


# ════════════════════════════════════════════════════════════════════
# manage_merge_request_comments
# ════════════════════════════════════════════════════════════════════


async def _list_comments(client: GitLabClient, request: ActionRequest) -> list[Note]:
    params: MergeRequestParams = request.params
    data = await client.list_mr_notes(
        params.project_path,
        params.mr_iid,
        {"order_by": "created_at", "sort": "desc"},
    )
    return Note.from_api(data)


async def _create_comment(client: GitLabClient, request: ActionRequest) -> Note:
    params: MergeRequestParams = request.params
    data = await client.add_mr_note(params.project_path, params.mr_iid, request.options.comment)
    return Note.from_api(data)


COMMENTS_SCHEMA = ToolSchema(
    tool_name="manage_merge_request_comments",
    params=MergeRequestParams,
    actions=(
        ActionSpec("list", requires=("mr_iid",)),
        ActionSpec("create", CommentOptions, "comment_options", requires=("mr_iid",)),
    ),
)

COMMENTS_TOOL = ActionTool(
    COMMENTS_SCHEMA,
    ActionRouter(
        "manage_merge_request_comments",
        [
            ActionDefinition(
                name="list",
                handler=_list_comments,
                formatter=fmt.format_comment_list,
                operation="list merge request comments",
            ),
            ActionDefinition(
                name="create",
                handler=_create_comment,
                formatter=fmt.format_comment_created,
                operation="create comment",
                mutating=True,
            ),
        ],
        schema=COMMENTS_SCHEMA,
    ),
)


# ════════════════════════════════════════════════════════════════════
# manage_merge_request_pipeline
# ════════════════════════════════════════════════════════════════════


async def _list_mr_pipelines(client: GitLabClient, request: ActionRequest) -> list[Pipeline]:
    params: MergeRequestParams = request.params
    data = await client.list_mr_pipelines(params.project_path, params.mr_iid)
    return Pipeline.from_api(data)


async def _create_mr_pipeline(client: GitLabClient, request: ActionRequest) -> Pipeline:
    params: MergeRequestParams = request.params
    data = await client.create_mr_pipeline(params.project_path, params.mr_iid)
    return Pipeline.from_api(data)


MR_PIPELINE_SCHEMA = ToolSchema(
    tool_name="manage_merge_request_pipeline",
    params=MergeRequestParams,
    actions=(
        ActionSpec("list", requires=("mr_iid",)),
        ActionSpec("create", requires=("mr_iid",)),
    ),
)

MR_PIPELINE_TOOL = ActionTool(
    MR_PIPELINE_SCHEMA,
    ActionRouter(
        "manage_merge_request_pipeline",
        [
            ActionDefinition(
                name="list",
                handler=_list_mr_pipelines,
                formatter=pipeline_fmt.format_mr_pipeline_list,
                operation="get merge request pipelines",
            ),
            ActionDefinition(
                name="create",
                handler=_create_mr_pipeline,
                formatter=pipeline_fmt.format_mr_pipeline_created,
                operation="create merge request pipeline",
                mutating=True,
            ),
        ],
        schema=MR_PIPELINE_SCHEMA,
    ),
)


async def list_mr_commits(client: GitLabClient, project_path: str, mr_iid: int) -> list[Commit]:
    data = await client.list_mr_commits(project_path, mr_iid)
    return Commit.from_api(data)
