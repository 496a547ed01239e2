"""Pipeline and job tools."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator

from ..client import GitLabClient
from ..dispatch.facade import ActionTool
from ..dispatch.router import ActionDefinition, ActionRouter
from ..dispatch.schema import ActionRequest, ActionSpec, OptionBlock, ToolSchema
from ..formatters import pipelines as fmt
from ..models.pipelines import Job, JobLog, Pipeline
from .fields import PositiveId, ProjectPath, Ref

DEFAULT_LOG_TAIL = 200

PipelineStatus = Literal["running", "pending", "success", "failed", "canceled", "skipped", "all"]
JobScope = Literal["created", "pending", "running", "failed", "success", "canceled", "skipped"]


class ProjectParams(OptionBlock):
    project_path: ProjectPath


class ListOptions(OptionBlock):
    status: PipelineStatus = "all"


class GetOptions(OptionBlock):
    pipeline_id: PositiveId


class TriggerMetadata(OptionBlock):
    description: str | None = Field(default=None, max_length=500)
    source: str | None = Field(default=None, max_length=100)


class TriggerOptions(OptionBlock):
    ref: Ref
    variables: dict[str, str] = {}
    metadata: TriggerMetadata | None = None

    @field_validator("variables")
    @classmethod
    def _non_empty_variables(cls, value: dict[str, str]) -> dict[str, str]:
        for key, val in value.items():
            if not key.strip():
                msg = "variable names must not be empty"
                raise ValueError(msg)
            if val == "":
                msg = f"variable '{key}' has an empty value"
                raise ValueError(msg)
        return value


# ════════════════════════════════════════════════════════════════════
# manage_pipelines
# ════════════════════════════════════════════════════════════════════


async def _list(client: GitLabClient, request: ActionRequest) -> list[Pipeline]:
    status = request.options.status
    query = {} if status == "all" else {"status": status}
    data = await client.list_pipelines(request.params.project_path, query)
    return Pipeline.from_api(data)


async def _get(client: GitLabClient, request: ActionRequest) -> Pipeline:
    data = await client.get_pipeline(request.params.project_path, request.options.pipeline_id)
    return Pipeline.from_api(data)


async def _trigger(client: GitLabClient, request: ActionRequest) -> Pipeline:
    opts: TriggerOptions = request.options
    variables = [{"key": k, "value": v} for k, v in sorted(opts.variables.items())]
    data = await client.create_pipeline(request.params.project_path, opts.ref, variables)
    return Pipeline.from_api(data)


PIPELINE_SCHEMA = ToolSchema(
    tool_name="manage_pipelines",
    params=ProjectParams,
    actions=(
        ActionSpec("list", ListOptions, "list_options"),
        ActionSpec("get", GetOptions, "get_options"),
        ActionSpec("trigger", TriggerOptions, "trigger_options"),
    ),
)

PIPELINE_TOOL = ActionTool(
    PIPELINE_SCHEMA,
    ActionRouter(
        "manage_pipelines",
        [
            ActionDefinition(
                name="list",
                handler=_list,
                formatter=fmt.format_pipeline_list,
                operation="list pipelines",
            ),
            ActionDefinition(
                name="get",
                handler=_get,
                formatter=fmt.format_pipeline_details,
                operation="get pipeline",
            ),
            ActionDefinition(
                name="trigger",
                handler=_trigger,
                formatter=fmt.format_pipeline_triggered,
                operation="trigger pipeline",
                mutating=True,
            ),
        ],
        schema=PIPELINE_SCHEMA,
    ),
)


# ════════════════════════════════════════════════════════════════════
# manage_job_actions
# ════════════════════════════════════════════════════════════════════


class JobParams(OptionBlock):
    project_path: ProjectPath
    job_id: PositiveId


class LogOptions(OptionBlock):
    tail: int = Field(default=DEFAULT_LOG_TAIL, ge=1, le=5000)


async def _get_job(client: GitLabClient, request: ActionRequest) -> Job:
    data = await client.get_job(request.params.project_path, request.params.job_id)
    return Job.from_api(data)


async def _cancel_job(client: GitLabClient, request: ActionRequest) -> Job:
    data = await client.cancel_job(request.params.project_path, request.params.job_id)
    return Job.from_api(data)


async def _retry_job(client: GitLabClient, request: ActionRequest) -> Job:
    data = await client.retry_job(request.params.project_path, request.params.job_id)
    return Job.from_api(data)


async def _job_log(client: GitLabClient, request: ActionRequest) -> JobLog:
    job_id = request.params.job_id
    trace = await client.get_job_log(request.params.project_path, job_id) or ""
    lines = trace.splitlines()
    return JobLog(job_id=job_id, lines=lines[-request.options.tail :], total_lines=len(lines))


JOB_SCHEMA = ToolSchema(
    tool_name="manage_job_actions",
    params=JobParams,
    actions=(
        ActionSpec("get"),
        ActionSpec("cancel"),
        ActionSpec("retry"),
        ActionSpec("log", LogOptions, "log_options"),
    ),
)

JOB_TOOL = ActionTool(
    JOB_SCHEMA,
    ActionRouter(
        "manage_job_actions",
        [
            ActionDefinition(
                name="get", handler=_get_job, formatter=fmt.format_job_details, operation="get job"
            ),
            ActionDefinition(
                name="cancel",
                handler=_cancel_job,
                formatter=fmt.format_job_canceled,
                operation="cancel job",
                mutating=True,
            ),
            ActionDefinition(
                name="retry",
                handler=_retry_job,
                formatter=fmt.format_job_retried,
                operation="retry job",
                mutating=True,
            ),
            ActionDefinition(
                name="log", handler=_job_log, formatter=fmt.format_job_log, operation="get job log"
            ),
        ],
        schema=JOB_SCHEMA,
    ),
)


async def list_jobs(
    client: GitLabClient,
    project_path: str,
    pipeline_id: int | None = None,
    scope: list[str] | None = None,
    include_retried: bool = False,
) -> list[Job]:
    """Jobs of one pipeline, or of the whole project when no pipeline is given."""
    query: dict = {"include_retried": include_retried}
    if scope:
        query["scope[]"] = scope
    if pipeline_id is not None:
        data = await client.list_pipeline_jobs(project_path, pipeline_id, query)
    else:
        data = await client.list_project_jobs(project_path, query)
    return Job.from_api(data)
