"""Search tools, routed on ``scope`` rather than ``action``."""

from __future__ import annotations

from pydantic import Field

from ..client import GitLabClient
from ..dispatch.facade import ActionTool
from ..dispatch.router import ActionDefinition, ActionRouter, Handler
from ..dispatch.schema import ActionRequest, ActionSpec, OptionBlock, ToolSchema
from ..formatters.search import format_results
from ..models.base import GitLabModel
from ..models.common import User
from ..models.merge_requests import MergeRequest
from ..models.projects import Project, SearchBlob
from ..models.repositories import Commit
from .fields import GroupId, ProjectPath, Ref

_MODELS: dict[str, type[GitLabModel]] = {
    "projects": Project,
    "merge_requests": MergeRequest,
    "commits": Commit,
    "blobs": SearchBlob,
    "users": User,
}


class GlobalSearchParams(OptionBlock):
    query: str = Field(min_length=1, max_length=500)
    ref: Ref | None = None


class GroupSearchParams(GlobalSearchParams):
    group_id: GroupId


class ProjectSearchParams(GlobalSearchParams):
    project_id: ProjectPath


def _searcher(scope: str) -> Handler:
    model = _MODELS[scope]

    async def handler(client: GitLabClient, request: ActionRequest) -> list:
        params = request.params
        data = await client.search(
            scope,
            params.query,
            group_id=getattr(params, "group_id", None),
            project_id=getattr(params, "project_id", None),
            ref=params.ref,
        )
        return model.from_api(data or [])

    return handler


def _search_tool(tool_name: str, params: type[OptionBlock], scopes: tuple[str, ...], where: str):
    schema = ToolSchema(
        tool_name=tool_name,
        params=params,
        actions=tuple(ActionSpec(scope) for scope in scopes),
        discriminator="scope",
    )
    definitions = [
        ActionDefinition(
            name=scope,
            handler=_searcher(scope),
            formatter=format_results,
            operation=f"search {scope.replace('_', ' ')}{where}",
        )
        for scope in scopes
    ]
    return ActionTool(schema, ActionRouter(tool_name, definitions, schema=schema))


ALL_SCOPES = ("projects", "merge_requests", "commits", "blobs", "users")
PROJECT_SCOPES = ("merge_requests", "commits", "blobs", "users")

SEARCH_GLOBAL_TOOL = _search_tool("search_global", GlobalSearchParams, ALL_SCOPES, "")
SEARCH_GROUP_TOOL = _search_tool("search_group", GroupSearchParams, ALL_SCOPES, " in group")
SEARCH_PROJECT_TOOL = _search_tool(
    "search_project", ProjectSearchParams, PROJECT_SCOPES, " in project"
)
