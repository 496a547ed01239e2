"""Tests for request validation, action routing and the tool facade."""

from __future__ import annotations

import pytest
from httpx import Response

from mcp_gitlab_actions.actions.deploy_tokens import DEPLOY_TOKEN_SCHEMA, DEPLOY_TOKEN_TOOL
from mcp_gitlab_actions.actions.flow import GIT_FLOW_SCHEMA, GIT_FLOW_TOOL
from mcp_gitlab_actions.actions.merge_requests import (
    COMMENTS_TOOL,
    MERGE_REQUEST_SCHEMA,
    MERGE_REQUEST_TOOL,
    MR_PIPELINE_TOOL,
)
from mcp_gitlab_actions.actions.pipelines import JOB_TOOL, PIPELINE_SCHEMA, PIPELINE_TOOL
from mcp_gitlab_actions.actions.repositories import (
    COMMITS_SCHEMA,
    COMMITS_TOOL,
    FILES_TOOL,
    OPERATIONS_TOOL,
)
from mcp_gitlab_actions.actions.search import (
    SEARCH_GLOBAL_TOOL,
    SEARCH_GROUP_TOOL,
    SEARCH_PROJECT_TOOL,
)
from mcp_gitlab_actions.actions.variables import GROUP_VARIABLE_TOOL
from mcp_gitlab_actions.dispatch.facade import ActionTool, run_operation
from mcp_gitlab_actions.dispatch.router import ActionDefinition, ActionRouter
from mcp_gitlab_actions.dispatch.schema import ActionSpec, OptionBlock, ToolSchema
from mcp_gitlab_actions.exceptions import (
    GitLabNotFoundError,
    InternalRoutingDefect,
    InvalidFieldError,
    MissingFieldError,
    OperationError,
    UnsupportedActionError,
)

ALL_TOOLS = [
    MERGE_REQUEST_TOOL,
    COMMENTS_TOOL,
    MR_PIPELINE_TOOL,
    PIPELINE_TOOL,
    JOB_TOOL,
    COMMITS_TOOL,
    OPERATIONS_TOOL,
    FILES_TOOL,
    GIT_FLOW_TOOL,
    DEPLOY_TOKEN_TOOL,
    GROUP_VARIABLE_TOOL,
    SEARCH_GLOBAL_TOOL,
    SEARCH_GROUP_TOOL,
    SEARCH_PROJECT_TOOL,
]


# ═══════════════════════════════════════════════════════
# Validation
# ═══════════════════════════════════════════════════════


class TestUnsupportedAction:
    def test_unknown_action(self):
        with pytest.raises(UnsupportedActionError) as exc_info:
            PIPELINE_SCHEMA.validate({"action": "delete", "project_path": "g/p"})
        assert "Supported actions: list, get, trigger" in str(exc_info.value)

    def test_action_is_case_sensitive(self):
        with pytest.raises(UnsupportedActionError):
            PIPELINE_SCHEMA.validate({"action": "LIST", "project_path": "g/p"})

    def test_empty_action(self):
        with pytest.raises(UnsupportedActionError):
            PIPELINE_SCHEMA.validate({"action": "", "project_path": "g/p"})

    def test_project_search_has_no_projects_scope(self):
        with pytest.raises(UnsupportedActionError) as exc_info:
            SEARCH_PROJECT_TOOL.schema.validate(
                {"scope": "projects", "query": "x", "project_id": "g/p"}
            )
        assert exc_info.value.field == "scope"


class TestMissingField:
    def test_mr_iid_required_for_get(self):
        with pytest.raises(MissingFieldError) as exc_info:
            MERGE_REQUEST_SCHEMA.validate({"action": "get", "project_path": "g/p"})
        assert str(exc_info.value) == "mr_iid is required for get action"

    def test_empty_string_counts_as_absent(self):
        with pytest.raises(MissingFieldError):
            MERGE_REQUEST_SCHEMA.validate({"action": "get", "project_path": "g/p", "mr_iid": ""})

    def test_project_path_always_required(self):
        with pytest.raises(MissingFieldError) as exc_info:
            MERGE_REQUEST_SCHEMA.validate({"action": "list"})
        assert exc_info.value.field == "project_path"

    def test_ref_required_for_commit_list(self):
        with pytest.raises(MissingFieldError) as exc_info:
            COMMITS_SCHEMA.validate(
                {"action": "list", "project_path": "g/p", "list_options": {"since": "2024-01-01"}}
            )
        assert exc_info.value.field == "ref"

    def test_option_field_required(self):
        with pytest.raises(MissingFieldError) as exc_info:
            PIPELINE_SCHEMA.validate({"action": "get", "project_path": "g/p"})
        assert exc_info.value.field == "pipeline_id"

    def test_create_options_required_fields(self):
        with pytest.raises(MissingFieldError) as exc_info:
            MERGE_REQUEST_SCHEMA.validate(
                {
                    "action": "create",
                    "project_path": "g/p",
                    "create_options": {"source_branch": "a", "target_branch": "b"},
                }
            )
        assert exc_info.value.field == "title"

    @pytest.mark.parametrize(
        ("schema", "arguments", "field"),
        [
            (MERGE_REQUEST_SCHEMA, {"action": "update", "project_path": "g/p"}, "mr_iid"),
            (MERGE_REQUEST_SCHEMA, {"action": "accept", "project_path": "g/p"}, "mr_iid"),
            (MERGE_REQUEST_SCHEMA, {"action": "rebase", "project_path": "g/p"}, "mr_iid"),
            (MERGE_REQUEST_SCHEMA, {"action": "changes", "project_path": "g/p"}, "mr_iid"),
            (COMMENTS_TOOL.schema, {"action": "list", "project_path": "g/p"}, "mr_iid"),
            (COMMENTS_TOOL.schema, {"action": "create", "project_path": "g/p"}, "mr_iid"),
            (MR_PIPELINE_TOOL.schema, {"action": "list", "project_path": "g/p"}, "mr_iid"),
            (MR_PIPELINE_TOOL.schema, {"action": "create", "project_path": "g/p"}, "mr_iid"),
            (COMMITS_SCHEMA, {"action": "get_details", "project_path": "g/p"}, "commit_sha"),
            (COMMITS_SCHEMA, {"action": "get_comments", "project_path": "g/p"}, "commit_sha"),
            (COMMITS_SCHEMA, {"action": "post_comment", "project_path": "g/p"}, "commit_sha"),
            (
                COMMITS_SCHEMA,
                {"action": "get_merge_requests", "project_path": "g/p"},
                "commit_sha",
            ),
            (COMMITS_SCHEMA, {"action": "get_refs", "project_path": "g/p"}, "commit_sha"),
            (GROUP_VARIABLE_TOOL.schema, {"action": "get", "group_id": "platform"}, "key"),
            (GROUP_VARIABLE_TOOL.schema, {"action": "update", "group_id": "platform"}, "key"),
            (GROUP_VARIABLE_TOOL.schema, {"action": "remove", "group_id": "platform"}, "key"),
            (
                DEPLOY_TOKEN_SCHEMA,
                {"action": "get", "scope": {"type": "group", "group_id": "platform"}},
                "token_id",
            ),
            (
                GIT_FLOW_SCHEMA,
                {"action": "finish", "project_path": "g/p", "name": "1.2.0"},
                "branch_type",
            ),
        ],
    )
    def test_action_requires_shared_field(self, schema, arguments, field):
        with pytest.raises(MissingFieldError) as exc_info:
            schema.validate(arguments)
        assert exc_info.value.field == field
        assert str(exc_info.value) == f"{field} is required for {arguments['action']} action"

    @pytest.mark.parametrize(
        ("schema", "arguments", "field"),
        [
            (
                COMMENTS_TOOL.schema,
                {"action": "create", "project_path": "g/p", "mr_iid": 3, "comment_options": {}},
                "comment",
            ),
            (
                COMMITS_SCHEMA,
                {
                    "action": "post_comment",
                    "project_path": "g/p",
                    "commit_sha": "abc1234",
                    "comment_options": {"note": "  "},
                },
                "note",
            ),
            (
                PIPELINE_SCHEMA,
                {"action": "trigger", "project_path": "g/p", "trigger_options": {}},
                "ref",
            ),
            (
                DEPLOY_TOKEN_SCHEMA,
                {
                    "action": "create",
                    "scope": {"type": "project", "project_path": "g/p"},
                    "create_options": {"scopes": ["read_repository"]},
                },
                "name",
            ),
            (
                DEPLOY_TOKEN_SCHEMA,
                {
                    "action": "create",
                    "scope": {"type": "project", "project_path": "g/p"},
                    "create_options": {"name": "ci"},
                },
                "scopes",
            ),
        ],
    )
    def test_option_block_requires_field(self, schema, arguments, field):
        with pytest.raises(MissingFieldError) as exc_info:
            schema.validate(arguments)
        assert exc_info.value.field == field

    def test_deploy_scope_missing(self):
        with pytest.raises(MissingFieldError) as exc_info:
            DEPLOY_TOKEN_SCHEMA.validate({"action": "list"})
        assert exc_info.value.field == "scope"

    @pytest.mark.parametrize(
        ("scope_type", "field"), [("project", "project_path"), ("group", "group_id")]
    )
    def test_deploy_scope_target_follows_type(self, scope_type, field):
        with pytest.raises(MissingFieldError) as exc_info:
            DEPLOY_TOKEN_SCHEMA.validate({"action": "list", "scope": {"type": scope_type}})
        assert exc_info.value.field.endswith(field)

    def test_deploy_token_id_required_for_delete(self):
        with pytest.raises(MissingFieldError) as exc_info:
            DEPLOY_TOKEN_SCHEMA.validate(
                {"action": "delete", "scope": {"type": "group", "group_id": "platform"}}
            )
        assert exc_info.value.field == "token_id"

    def test_flow_start_needs_name(self):
        with pytest.raises(MissingFieldError) as exc_info:
            GIT_FLOW_SCHEMA.validate(
                {"action": "start", "project_path": "g/p", "branch_type": "feature"}
            )
        assert exc_info.value.field == "name"

    def test_variable_create_needs_value(self):
        with pytest.raises(MissingFieldError) as exc_info:
            GROUP_VARIABLE_TOOL.schema.validate(
                {"action": "create", "group_id": "platform", "key": "TOKEN"}
            )
        assert exc_info.value.field == "value"


class TestInvalidField:
    def test_state_event_outside_enum(self):
        with pytest.raises(InvalidFieldError) as exc_info:
            MERGE_REQUEST_SCHEMA.validate(
                {
                    "action": "update",
                    "project_path": "g/p",
                    "mr_iid": 3,
                    "update_options": {"state_event": "archive"},
                }
            )
        assert exc_info.value.field == "state_event"

    def test_short_commit_sha(self):
        with pytest.raises(InvalidFieldError) as exc_info:
            COMMITS_SCHEMA.validate(
                {"action": "get_details", "project_path": "g/p", "commit_sha": "abc12"}
            )
        assert exc_info.value.field == "commit_sha"

    def test_non_positive_iid(self):
        with pytest.raises(InvalidFieldError):
            MERGE_REQUEST_SCHEMA.validate({"action": "get", "project_path": "g/p", "mr_iid": 0})

    @pytest.mark.parametrize("since", ["2024-13-40", "20240101", "2024-W01-1", "2024-01-01T00:00"])
    def test_bad_date(self, since):
        with pytest.raises(InvalidFieldError) as exc_info:
            COMMITS_SCHEMA.validate(
                {
                    "action": "list",
                    "project_path": "g/p",
                    "ref": "main",
                    "list_options": {"since": since},
                }
            )
        assert exc_info.value.field == "since"

    @pytest.mark.parametrize("expires_at", ["2025-01-01", "2025-01-01T00:00:00", 1735689600])
    def test_token_expiry_must_be_date_time(self, expires_at):
        with pytest.raises(InvalidFieldError) as exc_info:
            DEPLOY_TOKEN_SCHEMA.validate(
                {
                    "action": "create",
                    "scope": {"type": "project", "project_path": "g/p"},
                    "create_options": {
                        "name": "ci",
                        "scopes": ["read_repository"],
                        "expires_at": expires_at,
                    },
                }
            )
        assert exc_info.value.field == "expires_at"

    @pytest.mark.parametrize("tail", [0, 5001])
    def test_log_tail_bounds(self, tail):
        with pytest.raises(InvalidFieldError) as exc_info:
            JOB_TOOL.schema.validate(
                {
                    "action": "log",
                    "project_path": "g/p",
                    "job_id": 9,
                    "log_options": {"tail": tail},
                }
            )
        assert exc_info.value.field == "tail"

    def test_empty_pipeline_variable(self):
        with pytest.raises(InvalidFieldError) as exc_info:
            PIPELINE_SCHEMA.validate(
                {
                    "action": "trigger",
                    "project_path": "g/p",
                    "trigger_options": {"ref": "main", "variables": {"DEPLOY": ""}},
                }
            )
        assert exc_info.value.field == "variables"

    def test_unknown_branch_type(self):
        with pytest.raises(InvalidFieldError) as exc_info:
            GIT_FLOW_SCHEMA.validate(
                {"action": "start", "project_path": "g/p", "branch_type": "bugfix", "name": "x"}
            )
        assert exc_info.value.field == "branch_type"

    def test_option_block_must_be_object(self):
        with pytest.raises(InvalidFieldError):
            PIPELINE_SCHEMA.validate(
                {"action": "list", "project_path": "g/p", "list_options": "running"}
            )


class TestValidRequests:
    def test_other_option_blocks_are_ignored(self):
        request = MERGE_REQUEST_SCHEMA.validate(
            {
                "action": "list",
                "project_path": "g/p",
                "list_options": {"state": "opened"},
                "create_options": {"title": ""},
                "update_options": {"state_event": "archive"},
            }
        )
        assert request.action == "list"
        assert request.options.state == "opened"

    def test_static_defaults_applied(self):
        request = MERGE_REQUEST_SCHEMA.validate({"action": "list", "project_path": "g/p"})
        assert request.options.state == "all"

    def test_mr_url_fills_project_and_iid(self):
        request = MERGE_REQUEST_SCHEMA.validate(
            {
                "action": "get",
                "project_path": "https://gitlab.example.com/group/sub/app/-/merge_requests/42",
            }
        )
        assert request.params.project_path == "group/sub/app"
        assert request.params.mr_iid == 42

    def test_numeric_string_iid_is_coerced(self):
        request = MERGE_REQUEST_SCHEMA.validate(
            {"action": "get", "project_path": "1", "mr_iid": "7"}
        )
        assert request.params.mr_iid == 7

    def test_flow_defaults(self):
        request = GIT_FLOW_SCHEMA.validate(
            {"action": "finish", "project_path": "g/p", "branch_type": "release", "name": "1.2.0"}
        )
        assert request.params.branch == "release/1.2.0"
        assert request.params.development_branch == "develop"
        assert request.params.production_branch == "master"
        assert request.options.delete_branch is False

    @pytest.mark.parametrize(
        "expires_at", ["2025-01-01T00:00:00Z", "2025-01-01T00:00:00.5+02:00"]
    )
    def test_token_expiry_accepts_rfc3339(self, expires_at):
        request = DEPLOY_TOKEN_SCHEMA.validate(
            {
                "action": "create",
                "scope": {"type": "project", "project_path": "g/p"},
                "create_options": {
                    "name": "ci",
                    "scopes": ["read_repository"],
                    "expires_at": expires_at,
                },
            }
        )
        assert request.options.expires_at == expires_at


# ═══════════════════════════════════════════════════════
# Routing
# ═══════════════════════════════════════════════════════


class _Params(OptionBlock):
    project_path: str


async def _ok(client, request):
    return "ok"


async def _not_found(client, request):
    raise GitLabNotFoundError("404 Project Not Found")


def _definition(name, handler=_ok, *, mutating=False):
    return ActionDefinition(
        name=name,
        handler=handler,
        formatter=lambda result, request: f"{request.action}: {result}\n",
        operation=f"{name} things",
        mutating=mutating,
    )


_SCHEMA = ToolSchema(
    tool_name="manage_things",
    params=_Params,
    actions=(ActionSpec("list"), ActionSpec("delete")),
)


class TestRouter:
    @pytest.mark.parametrize("tool", ALL_TOOLS, ids=lambda tool: tool.name)
    def test_every_action_has_exactly_one_handler(self, tool):
        assert sorted(tool.router.allowed_actions) == sorted(tool.schema.action_names)

    def test_declared_action_without_handler_fails_at_build(self):
        with pytest.raises(InternalRoutingDefect):
            ActionRouter("manage_things", [_definition("list")], schema=_SCHEMA)

    def test_resolve_unknown_action(self):
        router = ActionRouter("manage_things", [_definition("list")])
        with pytest.raises(InternalRoutingDefect):
            router.resolve("delete")

    async def test_dispatch_wraps_gitlab_errors(self, client):
        router = ActionRouter("manage_things", [_definition("list", _not_found)])
        request = _SCHEMA.validate({"action": "list", "project_path": "g/p"})
        with pytest.raises(OperationError) as exc_info:
            await router.dispatch(client, request)
        assert exc_info.value.operation == "list things"
        assert isinstance(exc_info.value.cause, GitLabNotFoundError)


# ═══════════════════════════════════════════════════════
# Facade
# ═══════════════════════════════════════════════════════


class TestActionTool:
    async def test_unsupported_action_makes_no_call(self, client, config, mock_api):
        result = await PIPELINE_TOOL.run(
            client, config, {"action": "purge", "project_path": "g/p"}
        )
        assert result.startswith("Error: unsupported action: purge")
        assert not mock_api.calls

    async def test_missing_field_makes_no_call(self, client, config, mock_api):
        result = await MERGE_REQUEST_TOOL.run(
            client, config, {"action": "accept", "project_path": "g/p"}
        )
        assert result == "Error: mr_iid is required for accept action"
        assert not mock_api.calls

    async def test_read_only_refuses_mutating_action(self, client, readonly_config, mock_api):
        result = await PIPELINE_TOOL.run(
            client,
            readonly_config,
            {"action": "trigger", "project_path": "g/p", "trigger_options": {"ref": "main"}},
        )
        assert "Write operations are disabled" in result
        assert "read-only mode" in result
        assert not mock_api.calls

    async def test_read_only_allows_reads(self, client, readonly_config, mock_api):
        mock_api.get("/projects/g%2Fp/pipelines").mock(return_value=Response(200, json=[]))
        result = await PIPELINE_TOOL.run(
            client, readonly_config, {"action": "list", "project_path": "g/p"}
        )
        assert "No pipelines found matching the criteria." in result

    async def test_gitlab_failure_is_rendered_with_hint(self, client, config, mock_api):
        mock_api.get("/projects/g%2Fp/merge_requests/9").mock(
            return_value=Response(404, json={"message": "404 Not found"})
        )
        result = await MERGE_REQUEST_TOOL.run(
            client, config, {"action": "get", "project_path": "g/p", "mr_iid": 9}
        )
        assert result.startswith("Error: failed to get merge request: GitLab API Error 404")
        assert "Hint: Verify the project path" in result

    async def test_routing_defect_propagates(self, client, config):
        tool = ActionTool(_SCHEMA, ActionRouter("manage_things", [_definition("list")]))
        with pytest.raises(InternalRoutingDefect):
            await tool.run(client, config, {"action": "delete", "project_path": "g/p"})

    async def test_formatter_receives_request(self, client, config):
        tool = ActionTool(
            _SCHEMA,
            ActionRouter(
                "manage_things", [_definition("list"), _definition("delete")], schema=_SCHEMA
            ),
        )
        assert await tool.run(client, config, {"action": "list", "project_path": "g/p"}) == (
            "list: ok\n"
        )


class TestRunOperation:
    async def test_success(self):
        async def call():
            return [1, 2]

        assert await run_operation("count", call, lambda result: f"{len(result)}\n") == "2\n"

    async def test_failure(self):
        async def call():
            raise GitLabNotFoundError("gone")

        result = await run_operation("get project", call, str)
        assert result.startswith("Error: failed to get project: ")
        assert "Hint:" in result
