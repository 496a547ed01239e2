"""Deploy token management for projects and groups."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, model_validator

from ..client import GitLabClient
from ..dispatch.facade import ActionTool
from ..dispatch.router import ActionDefinition, ActionRouter
from ..dispatch.schema import ActionRequest, ActionSpec, OptionBlock, ToolSchema, require
from ..formatters import deploy_tokens as fmt
from ..models.ci import DeployToken
from .fields import DateTimeString, GroupId, ProjectPath

TokenScopeName = Literal[
    "read_repository",
    "read_registry",
    "write_registry",
    "read_package_registry",
    "write_package_registry",
]


class TokenScope(OptionBlock):
    """Where the tokens live: a project or a group."""

    type: Literal["project", "group"]
    project_path: ProjectPath | None = None
    group_id: GroupId | None = None

    @model_validator(mode="after")
    def _target_for_type(self) -> TokenScope:
        if self.type == "project" and self.project_path is None:
            raise require("project_path")
        if self.type == "group" and self.group_id is None:
            raise require("group_id")
        return self

    @property
    def target(self) -> str:
        return self.project_path if self.type == "project" else self.group_id

    @property
    def label(self) -> str:
        return f"{self.type} '{self.target}'"


class TokenIdentifier(OptionBlock):
    id: int = Field(ge=1)


class DeployTokenParams(OptionBlock):
    scope: TokenScope
    token_id: TokenIdentifier | None = None


class CreateOptions(OptionBlock):
    name: str = Field(min_length=1, max_length=100)
    scopes: list[TokenScopeName] = Field(min_length=1)
    username: str | None = Field(default=None, min_length=1, max_length=100)
    expires_at: DateTimeString | None = None


async def _list(client: GitLabClient, request: ActionRequest) -> list[DeployToken]:
    scope: TokenScope = request.params.scope
    data = await client.list_deploy_tokens(scope.type, scope.target)
    return DeployToken.from_api(data)


async def _get(client: GitLabClient, request: ActionRequest) -> DeployToken:
    scope: TokenScope = request.params.scope
    data = await client.get_deploy_token(scope.type, scope.target, request.params.token_id.id)
    return DeployToken.from_api(data)


async def _create(client: GitLabClient, request: ActionRequest) -> DeployToken:
    scope: TokenScope = request.params.scope
    body = request.options.model_dump(mode="json", exclude_none=True)
    data = await client.create_deploy_token(scope.type, scope.target, body)
    return DeployToken.from_api(data)


async def _delete(client: GitLabClient, request: ActionRequest) -> None:
    scope: TokenScope = request.params.scope
    await client.delete_deploy_token(scope.type, scope.target, request.params.token_id.id)


DEPLOY_TOKEN_SCHEMA = ToolSchema(
    tool_name="manage_deploy_tokens",
    params=DeployTokenParams,
    actions=(
        ActionSpec("list"),
        ActionSpec("get", requires=("token_id",)),
        ActionSpec("create", CreateOptions, "create_options"),
        ActionSpec("delete", requires=("token_id",)),
    ),
)

DEPLOY_TOKEN_TOOL = ActionTool(
    DEPLOY_TOKEN_SCHEMA,
    ActionRouter(
        "manage_deploy_tokens",
        [
            ActionDefinition(
                name="list",
                handler=_list,
                formatter=fmt.format_token_list,
                operation="list deploy tokens",
            ),
            ActionDefinition(
                name="get",
                handler=_get,
                formatter=fmt.format_token_details,
                operation="get deploy token",
            ),
            ActionDefinition(
                name="create",
                handler=_create,
                formatter=fmt.format_token_created,
                operation="create deploy token",
                mutating=True,
            ),
            ActionDefinition(
                name="delete",
                handler=_delete,
                formatter=fmt.format_token_deleted,
                operation="delete deploy token",
                mutating=True,
            ),
        ],
        schema=DEPLOY_TOKEN_SCHEMA,
    ),
)


async def list_all_deploy_tokens(client: GitLabClient) -> list[DeployToken]:
    return DeployToken.from_api(await client.list_all_deploy_tokens())
