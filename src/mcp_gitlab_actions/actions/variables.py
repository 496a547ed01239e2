"""Group CI/CD variable tool.

The request is flat: every field sits beside ``action`` and there are no
option blocks. Which of key and value are mandatory depends on the action.
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from ..client import GitLabClient
from ..dispatch.facade import ActionTool
from ..dispatch.router import ActionDefinition, ActionRouter
from ..dispatch.schema import ActionRequest, ActionSpec, OptionBlock, ToolSchema
from ..formatters import variables as fmt
from ..models.ci import Variable
from .fields import GroupId

# Attributes forwarded to GitLab only when the caller set them.
_OPTIONAL_ATTRIBUTES = (
    "variable_type",
    "protected",
    "masked",
    "raw",
    "environment_scope",
    "description",
)


class GroupVariableParams(OptionBlock):
    group_id: GroupId
    key: str | None = Field(default=None, min_length=1, max_length=255)
    value: str | None = None
    variable_type: Literal["env_var", "file"] | None = None
    protected: bool | None = None
    masked: bool | None = None
    raw: bool | None = None
    environment_scope: str | None = None
    description: str | None = None

    def attributes(self) -> dict:
        body = {name: getattr(self, name) for name in (*_OPTIONAL_ATTRIBUTES, "value")}
        return {k: v for k, v in body.items() if v is not None}


async def _list(client: GitLabClient, request: ActionRequest) -> list[Variable]:
    data = await client.list_group_variables(request.params.group_id)
    return Variable.from_api(data)


async def _get(client: GitLabClient, request: ActionRequest) -> Variable:
    params: GroupVariableParams = request.params
    data = await client.get_group_variable(params.group_id, params.key)
    return Variable.from_api(data)


async def _create(client: GitLabClient, request: ActionRequest) -> Variable:
    params: GroupVariableParams = request.params
    body = {"key": params.key, **params.attributes()}
    data = await client.create_group_variable(params.group_id, body)
    return Variable.from_api(data)


async def _update(client: GitLabClient, request: ActionRequest) -> Variable:
    params: GroupVariableParams = request.params
    data = await client.update_group_variable(
        params.group_id, params.key, params.attributes()
    )
    return Variable.from_api(data)


async def _remove(client: GitLabClient, request: ActionRequest) -> None:
    params: GroupVariableParams = request.params
    await client.delete_group_variable(params.group_id, params.key)


_KEY = ("key",)

GROUP_VARIABLE_SCHEMA = ToolSchema(
    tool_name="manage_group_variable",
    params=GroupVariableParams,
    actions=(
        ActionSpec("list"),
        ActionSpec("get", requires=_KEY),
        ActionSpec("create", requires=("key", "value")),
        ActionSpec("update", requires=_KEY),
        ActionSpec("remove", requires=_KEY),
    ),
)

GROUP_VARIABLE_TOOL = ActionTool(
    GROUP_VARIABLE_SCHEMA,
    ActionRouter(
        "manage_group_variable",
        [
            ActionDefinition(
                name="list",
                handler=_list,
                formatter=fmt.format_variable_list,
                operation="list group variables",
            ),
            ActionDefinition(
                name="get",
                handler=_get,
                formatter=fmt.format_variable_details,
                operation="get group variable",
            ),
            ActionDefinition(
                name="create",
                handler=_create,
                formatter=fmt.format_variable_created,
                operation="create group variable",
                mutating=True,
            ),
            ActionDefinition(
                name="update",
                handler=_update,
                formatter=fmt.format_variable_updated,
                operation="update group variable",
                mutating=True,
            ),
            ActionDefinition(
                name="remove",
                handler=_remove,
                formatter=fmt.format_variable_removed,
                operation="remove group variable",
                mutating=True,
            ),
        ],
        schema=GROUP_VARIABLE_SCHEMA,
    ),
)
