"""Reports for Git-flow branch operations."""

from __future__ import annotations

from ..dispatch.schema import ActionRequest
from ..models.flow import FlowBranches, FlowFinish, FlowStart
from ..models.repositories import Branch
from .common import Report, format_time

_NEXT_STEPS = {
    "feature": ("Implement your feature on this branch", "Commit your changes regularly"),
    "release": ("Make your release changes on this branch", "Test thoroughly"),
    "hotfix": ("Fix the critical issue on this branch", "Test the fix thoroughly"),
}


def format_started(result: FlowStart, request: ActionRequest) -> str:
    kind = result.branch_type
    report = Report().line(f"{kind.capitalize()} branch created successfully!").line()
    report.field("Branch", result.branch.name)
    report.field("Based on", result.base_branch)
    commit = result.branch.commit
    if commit is not None:
        report.field("Commit", commit.id)
        report.field("Author", commit.author_name)
        report.text("Message", commit.message.rstrip())
    first, second = _NEXT_STEPS[kind]
    report.line().line("Next steps:")
    report.line(f"1. {first}")
    report.line(f"2. {second}")
    report.line(
        f"3. Use 'manage_git_flow' with action 'finish', branch_type '{kind}' "
        f"and name '{result.name}' to create the merge request(s)"
    )
    return report.render()


def format_finished(result: FlowFinish, request: ActionRequest) -> str:
    kind = result.branch_type
    report = Report().line(f"Finishing {kind} {result.name}").line()
    for step in result.steps:
        if step.merge_request is not None:
            mr = step.merge_request
            report.line(f"Created MR to {step.target_branch}: !{mr.iid}")
            report.line(f"   URL: {mr.web_url}")
        else:
            report.line(f"Failed to create MR to {step.target_branch}: {step.error}")

    if result.delete_requested:
        if result.deleted:
            report.line(f"Deleted {kind} branch: {result.branch}")
        else:
            report.line(f"Failed to delete {kind} branch: {result.delete_error}")

    report.line()
    failed = result.failed_steps
    if failed:
        report.line(
            f"{kind.capitalize()} {result.name} finished with {failed} of "
            f"{len(result.steps)} merge request step(s) failed. Nothing was rolled back."
        )
    elif kind == "hotfix":
        report.line(f"Hotfix {result.name} is ready for urgent review and deployment!")
    else:
        report.line(f"{kind.capitalize()} {result.name} is ready for review!")
    return report.render()


def _branch_section(title: str, kind: str, branches: list[Branch]) -> list[str]:
    lines = [f"{title}:"]
    if not branches:
        lines.append(f"  No {kind} branches found")
    for branch in branches:
        created = format_time(branch.commit.created_at) if branch.commit is not None else ""
        suffix = f" (last commit: {created})" if created else ""
        lines.append(f"  - {branch.name}{suffix}")
    lines.append("")
    return lines


def format_branches(result: FlowBranches, request: ActionRequest) -> str:
    report = Report().line(f"Git Flow Branches for {request.params.project_path}:").line()
    sections = (
        ("feature", "Feature Branches", result.feature),
        ("release", "Release Branches", result.release),
        ("hotfix", "Hotfix Branches", result.hotfix),
    )
    for kind, title, branches in sections:
        if result.branch_type in ("all", kind):
            report.extend(_branch_section(title, kind, branches))
    report.line(
        f"Summary: {len(result.feature)} feature, {len(result.release)} release, "
        f"{len(result.hotfix)} hotfix branches"
    )
    return report.render()
