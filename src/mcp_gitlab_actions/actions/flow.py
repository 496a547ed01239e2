"""Git-flow branch tool: start, finish and list feature/release/hotfix branches.

Branches are named ``<type>/<name>``. Finishing a branch opens one merge
request per target, in order, and keeps going when one of them fails. There
is no rollback: every step is reported as it happened.
"""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import Field

from ..client import GitLabClient
from ..dispatch.facade import ActionTool
from ..dispatch.router import ActionDefinition, ActionRouter
from ..dispatch.schema import ActionRequest, ActionSpec, OptionBlock, ToolSchema
from ..exceptions import GitLabError, OperationError
from ..formatters import flow as fmt
from ..models.flow import BranchType, FlowBranches, FlowFinish, FlowStart, FlowStep
from ..models.merge_requests import MergeRequest
from ..models.repositories import Branch
from .fields import ProjectPath, Ref

logger = logging.getLogger(__name__)

DEFAULT_DEVELOPMENT_BRANCH = "develop"
DEFAULT_PRODUCTION_BRANCH = "master"


class FlowParams(OptionBlock):
    project_path: ProjectPath
    branch_type: BranchType | None = None
    name: str | None = Field(default=None, min_length=1, max_length=200)
    development_branch: Ref = DEFAULT_DEVELOPMENT_BRANCH
    production_branch: Ref = DEFAULT_PRODUCTION_BRANCH

    @property
    def branch(self) -> str:
        return f"{self.branch_type}/{self.name}"


class StartOptions(OptionBlock):
    base_branch: Ref | None = None


class FinishOptions(OptionBlock):
    target_branch: Ref | None = None
    delete_branch: bool = False


class ListOptions(OptionBlock):
    branch_type: Literal["feature", "release", "hotfix", "all"] | None = None


# ── Merge request templates ───────────────────────────────────────


def _merge_request_plan(params: FlowParams, target_branch: str | None) -> list[dict]:
    """Merge requests to open for a finished branch, in creation order."""
    name, dev, prod = params.name, params.development_branch, params.production_branch
    if params.branch_type == "feature":
        return [
            {
                "title": f"Feature: {name}",
                "description": (
                    f"Feature implementation: {name}\n\n- [ ] Code review completed\n"
                    "- [ ] Tests added/updated\n- [ ] Documentation updated\n- [ ] Ready for merge"
                ),
                "target_branch": target_branch or dev,
            }
        ]
    if params.branch_type == "release":
        return [
            {
                "title": f"Release {name}",
                "description": (
                    f"Release {name} ready for merge to {dev}\n\n- [ ] Code review completed\n"
                    "- [ ] Tests passing\n- [ ] Documentation updated"
                ),
                "target_branch": dev,
            },
            {
                "title": f"Release {name}",
                "description": (
                    f"Release {name} ready for production\n\n- [ ] Release notes prepared\n"
                    "- [ ] Deployment plan reviewed\n- [ ] Rollback plan confirmed"
                ),
                "target_branch": prod,
            },
        ]
    return [
        {
            "title": f"Hotfix {name}",
            "description": (
                f"Critical hotfix {name}\n\n- [ ] Fix verified\n- [ ] Tests passing\n"
                "- [ ] Ready for immediate deployment"
            ),
            "target_branch": prod,
        },
        {
            "title": f"Hotfix {name}",
            "description": (
                f"Hotfix {name} merge to {dev}\n\n- [ ] Conflicts resolved\n"
                "- [ ] Tests updated if needed"
            ),
            "target_branch": dev,
        },
    ]


# ── Handlers ──────────────────────────────────────────────────────


async def _start(client: GitLabClient, request: ActionRequest) -> FlowStart:
    params: FlowParams = request.params
    base = request.options.base_branch
    if base is None:
        base = (
            params.production_branch
            if params.branch_type == "hotfix"
            else params.development_branch
        )
    branch = params.branch

    existing = await client.list_branches(params.project_path, {"search": branch})
    if any(item.get("name") == branch for item in existing or []):
        raise OperationError(
            f"create {params.branch_type} branch",
            f"{params.branch_type} branch '{branch}' already exists",
        )

    data = await client.create_branch(params.project_path, branch, base)
    logger.info("Created %s from %s in %s", branch, base, params.project_path)
    return FlowStart(
        branch_type=params.branch_type,
        name=params.name,
        base_branch=base,
        branch=Branch.from_api(data),
    )


async def _finish(client: GitLabClient, request: ActionRequest) -> FlowFinish:
    params: FlowParams = request.params
    opts: FinishOptions = request.options
    branch = params.branch

    try:
        await client.get_branch(params.project_path, branch)
    except GitLabError as e:
        raise OperationError(
            f"finish {params.branch_type}",
            f"{params.branch_type} branch '{branch}' not found: {e}",
            e,
        ) from e

    steps = []
    for plan in _merge_request_plan(params, opts.target_branch):
        body = {"source_branch": branch, **plan}
        try:
            data = await client.create_merge_request(params.project_path, body)
        except GitLabError as e:
            logger.warning("Merge request %s -> %s failed: %s", branch, plan["target_branch"], e)
            steps.append(FlowStep(target_branch=plan["target_branch"], error=str(e)))
        else:
            mr = MergeRequest.from_api(data)
            steps.append(FlowStep(target_branch=plan["target_branch"], merge_request=mr))

    deleted, delete_error = False, None
    # Requested deletion runs even when a merge request step failed.
    if opts.delete_branch:
        try:
            await client.delete_branch(params.project_path, branch)
            deleted = True
        except GitLabError as e:
            delete_error = str(e)

    return FlowFinish(
        branch_type=params.branch_type,
        name=params.name,
        branch=branch,
        steps=steps,
        delete_requested=opts.delete_branch,
        deleted=deleted,
        delete_error=delete_error,
    )


async def _list(client: GitLabClient, request: ActionRequest) -> FlowBranches:
    params: FlowParams = request.params
    branch_type = request.options.branch_type or params.branch_type or "all"
    branches = Branch.from_api(await client.list_branches(params.project_path))
    grouped: dict[str, list[Branch]] = {"feature": [], "release": [], "hotfix": []}
    for branch in branches:
        prefix = branch.name.split("/", 1)[0]
        if "/" in branch.name and prefix in grouped:
            grouped[prefix].append(branch)
    return FlowBranches(branch_type=branch_type, **grouped)


_NAMED = ("branch_type", "name")

GIT_FLOW_SCHEMA = ToolSchema(
    tool_name="manage_git_flow",
    params=FlowParams,
    actions=(
        ActionSpec("start", StartOptions, "start_options", requires=_NAMED),
        ActionSpec("finish", FinishOptions, "finish_options", requires=_NAMED),
        ActionSpec("list", ListOptions, "list_options"),
    ),
)

GIT_FLOW_TOOL = ActionTool(
    GIT_FLOW_SCHEMA,
    ActionRouter(
        "manage_git_flow",
        [
            ActionDefinition(
                name="start",
                handler=_start,
                formatter=fmt.format_started,
                operation="start git flow branch",
                mutating=True,
            ),
            ActionDefinition(
                name="finish",
                handler=_finish,
                formatter=fmt.format_finished,
                operation="finish git flow branch",
                mutating=True,
            ),
            ActionDefinition(
                name="list",
                handler=_list,
                formatter=fmt.format_branches,
                operation="list branches",
            ),
        ],
        schema=GIT_FLOW_SCHEMA,
    ),
)
