"""Reports for pipelines and jobs."""

from __future__ import annotations

from ..dispatch.schema import ActionRequest
from ..models.pipelines import Job, JobLog, Pipeline
from .common import Report


def pipeline_lines(pipeline: Pipeline, *, detailed: bool = False) -> list[str]:
    report = Report()
    report.line(f"Pipeline #{pipeline.id}")
    report.field("Status", pipeline.status)
    report.field("Ref", pipeline.ref)
    report.field("SHA", pipeline.sha)
    report.field("Source", pipeline.source)
    report.field("Created", pipeline.created_at)
    report.field("Updated", pipeline.updated_at)
    if detailed:
        report.field("Started", pipeline.started_at)
        report.field("Finished", pipeline.finished_at)
        if pipeline.duration is not None:
            report.field("Duration", f"{pipeline.duration:g} seconds")
        report.field("Coverage", pipeline.coverage)
        if pipeline.user is not None:
            report.field("Triggered by", f"{pipeline.user.name} ({pipeline.user.username})")
    report.field("URL", pipeline.web_url)
    return report.render().splitlines()


def format_pipeline_list(pipelines: list[Pipeline], request: ActionRequest) -> str:
    project = request.params.project_path
    status = request.options.status
    report = Report().line(f"Pipelines for project {project} (status: {status}):").line()
    if not pipelines:
        return report.line("No pipelines found matching the criteria.").render()
    for pipeline in pipelines:
        report.extend(pipeline_lines(pipeline)).line()
    return report.render()


def format_pipeline_details(pipeline: Pipeline, request: ActionRequest) -> str:
    report = Report().line(f"Pipeline #{pipeline.id} Details:").line()
    return report.extend(pipeline_lines(pipeline, detailed=True)[1:]).render()


def format_pipeline_triggered(pipeline: Pipeline, request: ActionRequest) -> str:
    opts = request.options
    report = Report().line("Pipeline triggered successfully!").line()
    report.extend(pipeline_lines(pipeline))
    if opts.variables:
        report.line().line("Variables passed:")
        report.extend(f"  {key}: {value}" for key, value in sorted(opts.variables.items()))
    if opts.metadata is not None:
        report.line()
        report.field("Description", opts.metadata.description)
        report.field("Source", opts.metadata.source)
    return report.render()


def format_mr_pipeline_list(pipelines: list[Pipeline], request: ActionRequest) -> str:
    mr_iid = request.params.mr_iid
    if not pipelines:
        return f"No pipelines found for Merge Request !{mr_iid}.\n"
    report = Report().line(f"Pipelines for Merge Request !{mr_iid}:").line()
    for pipeline in pipelines:
        report.extend(pipeline_lines(pipeline)).line()
    return report.render()


def format_mr_pipeline_created(pipeline: Pipeline, request: ActionRequest) -> str:
    report = Report().line("Pipeline created successfully!").line()
    return report.extend(pipeline_lines(pipeline)).render()


# ── Jobs ──────────────────────────────────────────────────────────


def _seconds(value: float | None) -> str:
    return f"{value:.2f} seconds" if value is not None else ""


def job_lines(job: Job) -> list[str]:
    report = Report()
    report.line(f"Job #{job.id} - {job.name}")
    report.field("Status", job.status)
    report.field("Stage", job.stage)
    report.field("Ref", job.ref)
    report.field("Created", job.created_at)
    report.field("Started", job.started_at)
    report.field("Finished", job.finished_at)
    report.field("Duration", _seconds(job.duration))
    report.field("URL", job.web_url)
    return report.render().splitlines()


def job_detail_lines(job: Job) -> list[str]:
    report = Report()
    report.field("Name", job.name)
    report.field("Status", job.status)
    report.field("Stage", job.stage)
    report.field("Ref", job.ref)
    report.line(f"Allow Failure: {str(job.allow_failure).lower()}")
    report.line(f"Tag: {str(job.tag).lower()}")
    report.field("Created", job.created_at)
    report.field("Started", job.started_at)
    report.field("Finished", job.finished_at)
    report.field("Erased", job.erased_at)
    report.field("Duration", _seconds(job.duration))
    report.field("Queued Duration", _seconds(job.queued_duration))
    if job.coverage:
        report.field("Coverage", f"{job.coverage:.2f}%")
    report.field("Failure Reason", job.failure_reason)

    if job.pipeline is not None:
        report.line().line("Pipeline Information:")
        report.field("Pipeline ID", job.pipeline.id)
        report.field("Pipeline Status", job.pipeline.status)
        report.field("Pipeline Ref", job.pipeline.ref)
        report.field("Pipeline SHA", job.pipeline.sha)

    if job.runner is not None and job.runner.id:
        report.line().line("Runner Information:")
        report.field("Runner ID", job.runner.id)
        report.field("Runner Name", job.runner.name)
        report.field("Runner Description", job.runner.description)
        report.line(f"Runner Active: {str(job.runner.active).lower()}")
        report.line(f"Runner Shared: {str(job.runner.is_shared).lower()}")

    if job.artifacts:
        report.line().line("Artifacts:")
        report.extend(
            f"- {a.filename} ({a.file_type}, {a.size} bytes)" for a in job.artifacts
        )
    report.field("Artifacts Expire", job.artifacts_expire_at)
    if job.tag_list:
        report.field("Tags", ", ".join(job.tag_list))

    if job.user is not None:
        report.line().line(f"Triggered by: {job.user.name} ({job.user.username})")

    if job.commit is not None:
        report.line().line("Commit Information:")
        report.field("Commit SHA", job.commit.id)
        report.field("Commit Title", job.commit.title)
        report.text("Commit Message", job.commit.message)
        if job.commit.author_name:
            report.field("Author", f"{job.commit.author_name} <{job.commit.author_email}>")

    report.line().field("Web URL", job.web_url)
    return report.render().splitlines()


def format_job_list(jobs: list[Job], scope: str) -> str:
    if not jobs:
        return "No jobs found for the specified pipeline/criteria.\n"
    report = Report().line(f"Jobs for {scope}:").line()
    for job in jobs:
        report.extend(job_lines(job)).line()
    return report.render()


def format_job_details(job: Job, request: ActionRequest) -> str:
    return Report().line(f"Job #{job.id} Details:").line().extend(job_detail_lines(job)).render()


def format_job_canceled(job: Job, request: ActionRequest) -> str:
    report = Report().line(f"Job #{job.id} has been canceled successfully!").line()
    return report.extend(job_lines(job)).render()


def format_job_retried(job: Job, request: ActionRequest) -> str:
    report = Report().line(f"Job #{job.id} has been retried successfully!").line()
    return report.extend(job_lines(job)).render()


def format_job_log(log: JobLog, request: ActionRequest) -> str:
    if not log.lines:
        return f"No log output found for job #{log.job_id}.\n"
    shown = len(log.lines)
    report = Report()
    if shown < log.total_lines:
        report.line(f"Log for job #{log.job_id} (last {shown} of {log.total_lines} lines):")
        report.line(f"... [truncated {log.total_lines - shown} lines]")
    else:
        report.line(f"Log for job #{log.job_id} ({shown} lines):")
    return report.line("```").extend(log.lines).line("```").render()
