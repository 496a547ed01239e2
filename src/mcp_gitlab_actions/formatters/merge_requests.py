"""Reports for merge requests, their comments and their diffs."""

from __future__ import annotations

from ..dispatch.schema import ActionRequest
from ..models.common import Diff
from ..models.merge_requests import MergeRequest, MergeRequestChanges, MergeRequestDetails, Note
from .common import Report, fenced_diff


def _username(user: object) -> str:
    return getattr(user, "username", "") or ""


def merge_request_lines(mr: MergeRequest, *, description: bool = True) -> list[str]:
    """Summary block shared by every report that shows one merge request."""
    report = Report()
    report.line(f"MR #{mr.iid}: {mr.title}")
    report.field("State", mr.state)
    report.field("Author", _username(mr.author))
    report.field("Source Branch", mr.source_branch)
    report.field("Target Branch", mr.target_branch)
    report.field("Created", mr.created_at)
    report.field("Updated", mr.updated_at)
    report.field("Merged At", mr.merged_at)
    report.field("Closed At", mr.closed_at)
    report.field("URL", mr.web_url)
    if description:
        report.text("Description", mr.description)
    return report.render().splitlines()


def diff_lines(diff: Diff) -> list[str]:
    lines = [f"File: {diff.path}", f"Status: {diff.status}"]
    if diff.diff:
        lines.extend(["Diff:", fenced_diff(diff.diff)])
    return lines


def format_merge_request_list(mrs: list[MergeRequest], request: ActionRequest) -> str:
    project = request.params.project_path
    state = request.options.state
    if not mrs:
        return f"No merge requests found in project {project} (state: {state}).\n"
    report = Report().line(f"Merge requests for project {project} (state: {state}):").line()
    for mr in mrs:
        report.extend(merge_request_lines(mr)).line()
    return report.render()


def format_merge_request_details(details: MergeRequestDetails, request: ActionRequest) -> str:
    mr = details.merge_request
    report = Report()
    report.line(f"Merge Request #{mr.iid}: {mr.title}")
    report.field("Author", _username(mr.author))
    report.field("Source Branch", mr.source_branch)
    report.field("Target Branch", mr.target_branch)
    report.field("State", mr.state)
    report.field("Created", mr.created_at)
    if mr.diff_refs is not None:
        report.field("Base SHA", mr.diff_refs.base_sha)
        report.field("Start SHA", mr.diff_refs.start_sha)
        report.field("Head SHA", mr.diff_refs.head_sha)
    report.field("URL", mr.web_url)
    report.line()
    report.text("Description", mr.description)
    report.line().line("Changes Overview:")
    report.line(f"Total files changed: {len(details.diffs)}")
    if not details.diffs:
        report.line("No file changes found.")
    for diff in details.diffs:
        report.line().extend(diff_lines(diff))
    return report.render()


def _confirmation(title: str, mr: MergeRequest) -> str:
    report = Report().line(title).line().extend(merge_request_lines(mr))
    if mr.merge_commit_sha:
        report.field("Merge Commit SHA", mr.merge_commit_sha)
    return report.render()


def format_created(mr: MergeRequest, request: ActionRequest) -> str:
    return _confirmation("Merge Request created successfully!", mr)


def format_updated(mr: MergeRequest, request: ActionRequest) -> str:
    return _confirmation("Merge Request updated successfully!", mr)


def format_accepted(mr: MergeRequest, request: ActionRequest) -> str:
    return _confirmation("Merge Request accepted successfully!", mr)


def format_rebased(result: dict | None, request: ActionRequest) -> str:
    report = Report().line(
        f"Merge Request !{request.params.mr_iid} has been successfully rebased."
    )
    if result and result.get("rebase_in_progress"):
        report.line("Rebase is in progress on the GitLab side.")
    if request.options.skip_ci:
        report.line("CI pipeline was skipped for this rebase.")
    return report.render()


def format_changes(mr: MergeRequestChanges, request: ActionRequest) -> str:
    report = Report()
    report.line(f"Changes for Merge Request !{mr.iid}: {mr.title}")
    report.field("Author", _username(mr.author))
    report.field("Source Branch", mr.source_branch)
    report.field("Target Branch", mr.target_branch)
    report.field("State", mr.state)
    report.field("Changes Count", mr.changes_count)
    if mr.overflow:
        report.line("Diff overflow: GitLab returned a partial change set.")
    report.text("Description", mr.description)
    if not mr.changes:
        report.line().line("No file changes found.")
    for diff in mr.changes:
        report.line().extend(diff_lines(diff))
    return report.render()


# ── Comments ──────────────────────────────────────────────────────


def note_lines(note: Note) -> list[str]:
    report = Report()
    report.field("ID", note.id)
    report.field("Author", _username(note.author))
    report.field("Created", note.created_at)
    if note.updated_at and note.updated_at != note.created_at:
        report.field("Updated", note.updated_at)
    report.text("Content", note.body)
    if note.system:
        report.line("Type: System Note")
    if note.position is not None:
        pos = note.position
        report.line("Position Info:")
        report.extend(
            f"  {label}: {value}"
            for label, value in (
                ("Base SHA", pos.base_sha),
                ("Start SHA", pos.start_sha),
                ("Head SHA", pos.head_sha),
                ("Position Type", pos.position_type),
                ("New Path", pos.new_path),
                ("New Line", pos.new_line),
                ("Old Path", pos.old_path),
                ("Old Line", pos.old_line),
            )
            if value
        )
    if note.resolvable:
        report.line("Resolvable: true")
        report.line(f"Resolved: {str(note.resolved).lower()}")
        if note.resolved:
            report.field("Resolved By", _username(note.resolved_by))
            report.field("Resolved At", note.resolved_at)
    return report.render().splitlines()


def format_comment_list(notes: list[Note], request: ActionRequest) -> str:
    mr_iid = request.params.mr_iid
    if not notes:
        return f"No comments found for Merge Request !{mr_iid}.\n"
    report = Report().line(f"Comments for Merge Request !{mr_iid}:").line()
    for note in notes:
        report.extend(note_lines(note)).line()
    return report.render()


def format_comment_created(note: Note, request: ActionRequest) -> str:
    return Report().line("Comment posted successfully!").extend(note_lines(note)).render()
