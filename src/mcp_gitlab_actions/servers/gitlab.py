"""GitLab MCP server: tool registrations.

Action-routed tools hand their raw arguments to an ``ActionTool``, which
validates them and picks the handler. Single-operation tools call their
GitLab read through ``run_operation``.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date
from typing import Annotated, Any

from fastmcp import Context, FastMCP
from pydantic import Field

from ..actions import deploy_tokens, merge_requests, pipelines, projects
from ..actions.fields import DATE_PATTERN
from ..actions.flow import GIT_FLOW_TOOL
from ..actions.pipelines import JobScope
from ..actions.repositories import COMMITS_TOOL, FILES_TOOL, OPERATIONS_TOOL
from ..actions.search import SEARCH_GLOBAL_TOOL, SEARCH_GROUP_TOOL, SEARCH_PROJECT_TOOL
from ..actions.variables import GROUP_VARIABLE_TOOL
from ..client import GitLabClient
from ..config import GitLabConfig
from ..dispatch.facade import ActionTool, run_operation
from ..formatters import deploy_tokens as token_fmt
from ..formatters import pipelines as pipeline_fmt
from ..formatters import projects as project_fmt
from ..formatters import repositories as repository_fmt

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
    config = GitLabConfig.from_env()
    config.validate()
    client = GitLabClient(config)
    logger.info("Serving GitLab at %s (read-only: %s)", config.url, config.read_only)
    try:
        yield {"client": client, "config": config}
    finally:
        await client.close()


mcp = FastMCP(
    name="GitLab Actions MCP Server",
    instructions=(
        "Action-routed tools for the GitLab API: merge requests, pipelines and jobs,"
        " commits, Git-flow branches, deploy tokens, group variables and search."
        " Each manage_* tool takes an 'action' and reads only that action's option block."
    ),
    lifespan=lifespan,
)


def _get_client(ctx: Context) -> GitLabClient:
    return ctx.request_context.lifespan_context["client"]


def _get_config(ctx: Context) -> GitLabConfig:
    return ctx.request_context.lifespan_context["config"]


async def _run(tool: ActionTool, ctx: Context, **arguments: Any) -> str:
    return await tool.run(_get_client(ctx), _get_config(ctx), arguments)


Options = dict[str, Any] | None
ProjectPathArg = Annotated[
    str,
    Field(description="Project ID, path (e.g. 'my-group/my-project') or project URL"),
]
DateArg = Annotated[str, Field(description="Start date (YYYY-MM-DD)", pattern=DATE_PATTERN)]

_READ = {"readOnlyHint": True, "idempotentHint": True, "openWorldHint": True}
_MIXED = {"readOnlyHint": False, "openWorldHint": True}
_DESTRUCTIVE = {"readOnlyHint": False, "destructiveHint": True, "openWorldHint": True}


# ════════════════════════════════════════════════════════════════════
# Projects, groups and users
# ════════════════════════════════════════════════════════════════════


@mcp.tool(tags={"gitlab", "projects", "read"}, annotations=_READ)
async def gitlab_list_projects(
    ctx: Context,
    group_id: Annotated[str, Field(description="Group ID or path", min_length=1)],
    search: Annotated[str | None, Field(description="Filter projects by name")] = None,
) -> str:
    """List active projects of a group, most recently active first."""
    return await run_operation(
        "list projects",
        lambda: projects.list_group_projects(_get_client(ctx), group_id, search),
        lambda result: project_fmt.format_project_list(result, group_id),
    )


@mcp.tool(tags={"gitlab", "projects", "read"}, annotations=_READ)
async def gitlab_get_project(ctx: Context, project_path: ProjectPathArg) -> str:
    """Get project details with its branch and tag names."""
    return await run_operation(
        "get project",
        lambda: projects.get_project_overview(_get_client(ctx), project_path),
        project_fmt.format_project_overview,
    )


@mcp.tool(tags={"gitlab", "groups", "read"}, annotations=_READ)
async def list_group_users(
    ctx: Context,
    group_id: Annotated[str, Field(description="Group ID or path", min_length=1)],
) -> str:
    """List the members of a group with their access level."""
    return await run_operation(
        "list group members",
        lambda: projects.list_group_members(_get_client(ctx), group_id),
        lambda result: project_fmt.format_group_members(result, group_id),
    )


@mcp.tool(tags={"gitlab", "users", "read"}, annotations=_READ)
async def gitlab_list_user_events(
    ctx: Context,
    username: Annotated[str, Field(description="GitLab username", min_length=1)],
    since: DateArg,
    until: Annotated[
        str | None,
        Field(description="End date (YYYY-MM-DD), defaults to today", pattern=DATE_PATTERN),
    ] = None,
) -> str:
    """List contribution events of a user in a date range."""
    end = until or date.today().isoformat()
    return await run_operation(
        "list user events",
        lambda: projects.list_user_events(_get_client(ctx), username, since, end),
        lambda result: project_fmt.format_user_events(result, username, since, end),
    )


# ════════════════════════════════════════════════════════════════════
# Merge requests
# ════════════════════════════════════════════════════════════════════


@mcp.tool(tags={"gitlab", "merge_requests"}, annotations=_MIXED)
async def manage_merge_request(
    ctx: Context,
    action: Annotated[
        str, Field(description="One of: list, get, create, update, accept, rebase, changes")
    ],
    project_path: ProjectPathArg,
    mr_iid: Annotated[
        int | str | None,
        Field(description="Merge request IID (required for get, update, accept, rebase, changes)"),
    ] = None,
    list_options: Annotated[Options, Field(description="list: {state}")] = None,
    create_options: Annotated[
        Options,
        Field(description="create: {source_branch, target_branch, title, description}"),
    ] = None,
    update_options: Annotated[
        Options,
        Field(
            description=(
                "update: {title, description, target_branch, state_event, assignee_id,"
                " milestone_id, labels, remove_source_branch, squash, discussion_locked}"
            )
        ),
    ] = None,
    accept_options: Annotated[
        Options,
        Field(
            description=(
                "accept: {merge_commit_message, squash_commit_message, squash,"
                " should_remove_source_branch, merge_when_pipeline_succeeds}"
            )
        ),
    ] = None,
    rebase_options: Annotated[Options, Field(description="rebase: {skip_ci}")] = None,
    changes_options: Annotated[
        Options, Field(description="changes: {access_raw_diffs, unidiff}")
    ] = None,
) -> str:
    """List, read, create, update, accept or rebase merge requests."""
    return await _run(
        merge_requests.MERGE_REQUEST_TOOL,
        ctx,
        action=action,
        project_path=project_path,
        mr_iid=mr_iid,
        list_options=list_options,
        create_options=create_options,
        update_options=update_options,
        accept_options=accept_options,
        rebase_options=rebase_options,
        changes_options=changes_options,
    )


@mcp.tool(tags={"gitlab", "merge_requests", "notes"}, annotations=_MIXED)
async def manage_merge_request_comments(
    ctx: Context,
    action: Annotated[str, Field(description="One of: list, create")],
    project_path: ProjectPathArg,
    mr_iid: Annotated[int | str | None, Field(description="Merge request IID")] = None,
    comment_options: Annotated[Options, Field(description="create: {comment}")] = None,
) -> str:
    """List or post comments on a merge request."""
    return await _run(
        merge_requests.COMMENTS_TOOL,
        ctx,
        action=action,
        project_path=project_path,
        mr_iid=mr_iid,
        comment_options=comment_options,
    )


@mcp.tool(tags={"gitlab", "merge_requests", "pipelines"}, annotations=_MIXED)
async def manage_merge_request_pipeline(
    ctx: Context,
    action: Annotated[str, Field(description="One of: list, create")],
    project_path: ProjectPathArg,
    mr_iid: Annotated[int | str | None, Field(description="Merge request IID")] = None,
) -> str:
    """List the pipelines of a merge request or start a new one."""
    return await _run(
        merge_requests.MR_PIPELINE_TOOL,
        ctx,
        action=action,
        project_path=project_path,
        mr_iid=mr_iid,
    )


@mcp.tool(tags={"gitlab", "merge_requests", "commits", "read"}, annotations=_READ)
async def get_mr_commits(
    ctx: Context,
    project_path: ProjectPathArg,
    mr_iid: Annotated[int, Field(description="Merge request IID", ge=1)],
) -> str:
    """List the commits of a merge request."""
    return await run_operation(
        "get merge request commits",
        lambda: merge_requests.list_mr_commits(_get_client(ctx), project_path, mr_iid),
        lambda result: repository_fmt.format_mr_commits(result, mr_iid),
    )


# ════════════════════════════════════════════════════════════════════
# Pipelines and jobs
# ════════════════════════════════════════════════════════════════════


@mcp.tool(tags={"gitlab", "pipelines"}, annotations=_MIXED)
async def manage_pipelines(
    ctx: Context,
    action: Annotated[str, Field(description="One of: list, get, trigger")],
    project_path: ProjectPathArg,
    list_options: Annotated[Options, Field(description="list: {status}")] = None,
    get_options: Annotated[Options, Field(description="get: {pipeline_id}")] = None,
    trigger_options: Annotated[
        Options,
        Field(description="trigger: {ref, variables, metadata: {description, source}}"),
    ] = None,
) -> str:
    """List, read or trigger project pipelines."""
    return await _run(
        pipelines.PIPELINE_TOOL,
        ctx,
        action=action,
        project_path=project_path,
        list_options=list_options,
        get_options=get_options,
        trigger_options=trigger_options,
    )


@mcp.tool(tags={"gitlab", "jobs", "read"}, annotations=_READ)
async def manage_jobs_list(
    ctx: Context,
    project_path: ProjectPathArg,
    pipeline_id: Annotated[
        int | None, Field(description="Pipeline ID; all project jobs when omitted", ge=1)
    ] = None,
    scope: Annotated[list[JobScope] | None, Field(description="Job statuses to include")] = None,
    include_retried: Annotated[bool, Field(description="Include retried jobs")] = False,
) -> str:
    """List the jobs of a pipeline or of a whole project."""
    where = f"pipeline #{pipeline_id}" if pipeline_id is not None else f"project {project_path}"
    return await run_operation(
        "list jobs",
        lambda: pipelines.list_jobs(
            _get_client(ctx), project_path, pipeline_id, scope, include_retried
        ),
        lambda result: pipeline_fmt.format_job_list(result, where),
    )


@mcp.tool(tags={"gitlab", "jobs"}, annotations=_MIXED)
async def manage_job_actions(
    ctx: Context,
    action: Annotated[str, Field(description="One of: get, cancel, retry, log")],
    project_path: ProjectPathArg,
    job_id: Annotated[int | str | None, Field(description="Job ID")] = None,
    log_options: Annotated[Options, Field(description="log: {tail} (default 200 lines)")] = None,
) -> str:
    """Read, cancel or retry a job, or show the tail of its log."""
    return await _run(
        pipelines.JOB_TOOL,
        ctx,
        action=action,
        project_path=project_path,
        job_id=job_id,
        log_options=log_options,
    )


# ════════════════════════════════════════════════════════════════════
# Commits and files
# ════════════════════════════════════════════════════════════════════


@mcp.tool(tags={"gitlab", "commits"}, annotations=_MIXED)
async def manage_commits(
    ctx: Context,
    action: Annotated[
        str,
        Field(
            description=(
                "One of: list, search, get_details, get_comments, post_comment,"
                " get_merge_requests, get_refs"
            )
        ),
    ],
    project_path: ProjectPathArg,
    commit_sha: Annotated[str | None, Field(description="Commit SHA (7-40 characters)")] = None,
    ref: Annotated[str | None, Field(description="Branch, tag or SHA (required for list)")] = None,
    list_options: Annotated[Options, Field(description="list: {since, until}")] = None,
    search_options: Annotated[
        Options, Field(description="search: {author, path, since, until}")
    ] = None,
    comment_options: Annotated[
        Options, Field(description="post_comment: {note, path, line, line_type}")
    ] = None,
    refs_options: Annotated[Options, Field(description="get_refs: {type}")] = None,
) -> str:
    """List, search and inspect commits, or comment on one."""
    return await _run(
        COMMITS_TOOL,
        ctx,
        action=action,
        project_path=project_path,
        commit_sha=commit_sha,
        ref=ref,
        list_options=list_options,
        search_options=search_options,
        comment_options=comment_options,
        refs_options=refs_options,
    )


@mcp.tool(tags={"gitlab", "commits", "write"}, annotations=_MIXED)
async def commit_operations(
    ctx: Context,
    action: Annotated[str, Field(description="One of: cherry_pick, revert")],
    project_path: ProjectPathArg,
    commit_sha: Annotated[str | None, Field(description="Commit SHA")] = None,
    branch: Annotated[str | None, Field(description="Target branch")] = None,
    cherry_pick_options: Annotated[
        Options, Field(description="cherry_pick: {dry_run, message}")
    ] = None,
) -> str:
    """Cherry-pick or revert a commit onto a branch."""
    return await _run(
        OPERATIONS_TOOL,
        ctx,
        action=action,
        project_path=project_path,
        commit_sha=commit_sha,
        branch=branch,
        cherry_pick_options=cherry_pick_options,
    )


@mcp.tool(tags={"gitlab", "files", "read"}, annotations=_READ)
async def manage_repository_files(
    ctx: Context,
    action: Annotated[str, Field(description="One of: get_content")],
    project_path: ProjectPathArg,
    file_path: Annotated[str | None, Field(description="Path of the file in the repo")] = None,
    ref: Annotated[str | None, Field(description="Branch, tag or SHA")] = None,
) -> str:
    """Read a repository file."""
    return await _run(
        FILES_TOOL, ctx, action=action, project_path=project_path, file_path=file_path, ref=ref
    )


# ════════════════════════════════════════════════════════════════════
# Git flow
# ════════════════════════════════════════════════════════════════════


@mcp.tool(tags={"gitlab", "branches", "flow"}, annotations=_MIXED)
async def manage_git_flow(
    ctx: Context,
    action: Annotated[str, Field(description="One of: start, finish, list")],
    project_path: ProjectPathArg,
    branch_type: Annotated[
        str | None, Field(description="feature, release or hotfix (start and finish)")
    ] = None,
    name: Annotated[
        str | None, Field(description="Feature name or version (start and finish)")
    ] = None,
    development_branch: Annotated[
        str | None, Field(description="Development branch, default 'develop'")
    ] = None,
    production_branch: Annotated[
        str | None, Field(description="Production branch, default 'master'")
    ] = None,
    start_options: Annotated[Options, Field(description="start: {base_branch}")] = None,
    finish_options: Annotated[
        Options, Field(description="finish: {target_branch, delete_branch}")
    ] = None,
    list_options: Annotated[Options, Field(description="list: {branch_type}")] = None,
) -> str:
    """Start, finish and list Git-flow feature, release and hotfix branches."""
    return await _run(
        GIT_FLOW_TOOL,
        ctx,
        action=action,
        project_path=project_path,
        branch_type=branch_type,
        name=name,
        development_branch=development_branch,
        production_branch=production_branch,
        start_options=start_options,
        finish_options=finish_options,
        list_options=list_options,
    )


# ════════════════════════════════════════════════════════════════════
# CI/CD settings
# ════════════════════════════════════════════════════════════════════


@mcp.tool(tags={"gitlab", "deploy_tokens"}, annotations=_DESTRUCTIVE)
async def manage_deploy_tokens(
    ctx: Context,
    action: Annotated[str, Field(description="One of: list, get, create, delete")],
    scope: Annotated[
        Options,
        Field(description="{type: project|group, project_path, group_id}"),
    ] = None,
    token_id: Annotated[Options, Field(description="get/delete: {id}")] = None,
    create_options: Annotated[
        Options, Field(description="create: {name, scopes, username, expires_at}")
    ] = None,
) -> str:
    """Manage project or group deploy tokens."""
    return await _run(
        deploy_tokens.DEPLOY_TOKEN_TOOL,
        ctx,
        action=action,
        scope=scope,
        token_id=token_id,
        create_options=create_options,
    )


@mcp.tool(tags={"gitlab", "deploy_tokens", "admin", "read"}, annotations=_READ)
async def list_all_deploy_tokens(ctx: Context) -> str:
    """List every deploy token of the instance (administrators only)."""
    return await run_operation(
        "list all deploy tokens",
        lambda: deploy_tokens.list_all_deploy_tokens(_get_client(ctx)),
        token_fmt.format_all_tokens,
    )


@mcp.tool(tags={"gitlab", "variables"}, annotations=_DESTRUCTIVE)
async def manage_group_variable(
    ctx: Context,
    action: Annotated[str, Field(description="One of: list, get, create, update, remove")],
    group_id: Annotated[str | None, Field(description="Group ID or path")] = None,
    key: Annotated[str | None, Field(description="Variable key (all actions but list)")] = None,
    value: Annotated[str | None, Field(description="Variable value (required for create)")] = None,
    variable_type: Annotated[str | None, Field(description="env_var or file")] = None,
    protected: Annotated[bool | None, Field(description="Protected variable")] = None,
    masked: Annotated[bool | None, Field(description="Masked variable")] = None,
    raw: Annotated[bool | None, Field(description="Raw variable")] = None,
    environment_scope: Annotated[
        str | None, Field(description="Environment scope (default '*')")
    ] = None,
    description: Annotated[str | None, Field(description="Variable description")] = None,
) -> str:
    """Manage CI/CD variables of a group. Values are never shown."""
    return await _run(
        GROUP_VARIABLE_TOOL,
        ctx,
        action=action,
        group_id=group_id,
        key=key,
        value=value,
        variable_type=variable_type,
        protected=protected,
        masked=masked,
        raw=raw,
        environment_scope=environment_scope,
        description=description,
    )


# ════════════════════════════════════════════════════════════════════
# Search
# ════════════════════════════════════════════════════════════════════

QueryArg = Annotated[str, Field(description="Search query")]
RefArg = Annotated[str | None, Field(description="Branch or tag to search in")]


@mcp.tool(tags={"gitlab", "search", "read"}, annotations=_READ)
async def search_global(
    ctx: Context,
    query: QueryArg,
    scope: Annotated[
        str, Field(description="One of: projects, merge_requests, commits, blobs, users")
    ],
    ref: RefArg = None,
) -> str:
    """Search the whole GitLab instance."""
    return await _run(SEARCH_GLOBAL_TOOL, ctx, query=query, scope=scope, ref=ref)


@mcp.tool(tags={"gitlab", "search", "read"}, annotations=_READ)
async def search_group(
    ctx: Context,
    group_id: Annotated[str, Field(description="Group ID or path")],
    query: QueryArg,
    scope: Annotated[
        str, Field(description="One of: projects, merge_requests, commits, blobs, users")
    ],
    ref: RefArg = None,
) -> str:
    """Search within a group."""
    return await _run(
        SEARCH_GROUP_TOOL, ctx, group_id=group_id, query=query, scope=scope, ref=ref
    )


@mcp.tool(tags={"gitlab", "search", "read"}, annotations=_READ)
async def search_project(
    ctx: Context,
    project_id: Annotated[str, Field(description="Project ID or path")],
    query: QueryArg,
    scope: Annotated[str, Field(description="One of: merge_requests, commits, blobs, users")],
    ref: RefArg = None,
) -> str:
    """Search within a project."""
    return await _run(
        SEARCH_PROJECT_TOOL, ctx, project_id=project_id, query=query, scope=scope, ref=ref
    )


@mcp.tool(tags={"gitlab", "search", "read"}, annotations=_READ)
async def search_merge_requests_global(ctx: Context, query: QueryArg, ref: RefArg = None) -> str:
    """Search merge requests across all projects."""
    return await _run(SEARCH_GLOBAL_TOOL, ctx, query=query, scope="merge_requests", ref=ref)


@mcp.tool(tags={"gitlab", "search", "read"}, annotations=_READ)
async def search_commits_global(ctx: Context, query: QueryArg, ref: RefArg = None) -> str:
    """Search commits across all projects."""
    return await _run(SEARCH_GLOBAL_TOOL, ctx, query=query, scope="commits", ref=ref)


@mcp.tool(tags={"gitlab", "search", "read"}, annotations=_READ)
async def search_code_global(ctx: Context, query: QueryArg, ref: RefArg = None) -> str:
    """Search code across all projects."""
    return await _run(SEARCH_GLOBAL_TOOL, ctx, query=query, scope="blobs", ref=ref)
