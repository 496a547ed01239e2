"""Reports for commits, refs and repository files."""

from __future__ import annotations

from ..dispatch.schema import ActionRequest
from ..models.merge_requests import MergeRequest
from ..models.repositories import (
    Commit,
    CommitComment,
    CommitDetails,
    CommitHistory,
    CommitRef,
    FileContent,
)
from .common import Report, truncate
from .merge_requests import diff_lines


def commit_lines(commit: Commit, *, email: bool = False) -> list[str]:
    report = Report()
    report.line(f"Commit: {commit.id}")
    if email and commit.author_email:
        report.field("Author", f"{commit.author_name} <{commit.author_email}>")
    else:
        report.field("Author", commit.author_name)
    report.field("Date", commit.committed_date)
    report.field("Message", commit.title)
    report.field("URL", commit.web_url)
    return report.render().splitlines()


def detailed_commit_lines(commit: Commit) -> list[str]:
    """Every identity, authorship and timing field of a commit."""
    report = Report()
    report.line(f"Commit: {commit.id}")
    report.field("Short ID", commit.short_id)
    report.field("Title", commit.title)
    if commit.author_name:
        report.field("Author", f"{commit.author_name} <{commit.author_email}>")
    if commit.committer_name:
        report.field("Committer", f"{commit.committer_name} <{commit.committer_email}>")
    report.field("Created", commit.created_at)
    report.field("Committed", commit.committed_date)
    report.field("Authored", commit.authored_date)
    if commit.message:
        report.line("Message:").line(truncate(commit.message.rstrip()))
    report.field("URL", commit.web_url)
    return report.render().splitlines()


def format_history(history: CommitHistory, request: ActionRequest) -> str:
    project = request.params.project_path
    header = (
        f"Commits for project {project} between {history.since} and {history.until} "
        f"(ref: {history.ref}):"
    )
    if not history.commits:
        return f"{header}\n\nNo commits found in this date range.\n"
    report = Report().line(header).line()
    for commit in history.commits:
        report.extend(commit_lines(commit)).line()
    return report.render()


def format_search(history: CommitHistory, request: ActionRequest) -> str:
    opts = request.options
    report = Report().line(f"Search results for project {request.params.project_path}:")
    report.field("Ref", history.ref)
    report.field("Author", opts.author)
    report.field("Path", opts.path)
    report.field("Since", history.since)
    report.field("Until", history.until)
    if not history.commits:
        return report.line().line("No commits found matching the search criteria.").render()
    report.line(f"Found {len(history.commits)} commits:").line()
    for commit in history.commits:
        report.extend(commit_lines(commit, email=True)).line()
    return report.render()


def format_details(details: CommitDetails, request: ActionRequest) -> str:
    commit = details.commit
    report = Report()
    report.line(f"Commit: {commit.short_id or commit.id}")
    report.field("Author", commit.author_name)
    report.field("Date", commit.committed_date)
    report.field("Message", commit.title)
    report.field("URL", commit.web_url)
    if commit.stats is not None:
        report.field(
            "Stats", f"+{commit.stats.additions} -{commit.stats.deletions} ({commit.stats.total})"
        )
    if commit.parent_ids:
        report.line().line("Parents:").extend(f"- {parent}" for parent in commit.parent_ids)
    report.line().line("Diffs:")
    if not details.diffs:
        report.line("No file changes found.")
    for diff in details.diffs:
        report.extend(diff_lines(diff)).line()
    return report.render()


def _comment_lines(comment: CommitComment) -> list[str]:
    report = Report()
    if comment.author is not None:
        report.field("Author", comment.author.identity)
    report.field("Created", comment.created_at)
    report.text("Note", comment.note)
    if comment.path:
        location = f"File: {comment.path}"
        if comment.line:
            location += f" (line {comment.line}, {comment.line_type or 'new'})"
        report.line(location)
    return report.render().splitlines()


def format_comments(comments: list[CommitComment], request: ActionRequest) -> str:
    report = Report().line(f"Comments for commit {request.params.commit_sha}:").line()
    if not comments:
        return report.line("No comments found.").render()
    for number, comment in enumerate(comments, start=1):
        report.line(f"Comment #{number}:").extend(_comment_lines(comment)).line()
    return report.render()


def format_comment_posted(comment: CommitComment, request: ActionRequest) -> str:
    report = Report().line(f"Comment posted successfully to commit {request.params.commit_sha}:")
    return report.line().extend(_comment_lines(comment)).render()


def format_merge_requests(mrs: list[MergeRequest], request: ActionRequest) -> str:
    report = Report().line(f"Merge requests associated with commit {request.params.commit_sha}:")
    report.line()
    if not mrs:
        return report.line("No merge requests found.").render()
    for mr in mrs:
        report.line(f"MR !{mr.iid}: {mr.title}")
        report.field("State", mr.state)
        if mr.author is not None:
            report.field("Author", mr.author.name)
        report.field("Source", f"{mr.source_branch} -> {mr.target_branch}")
        report.field("URL", mr.web_url)
        report.line()
    return report.render()


def format_refs(refs: list[CommitRef], request: ActionRequest) -> str:
    report = Report().line(f"References containing commit {request.params.commit_sha}:").line()
    if not refs:
        return report.line("No references found.").render()
    branches = [ref.name for ref in refs if ref.type == "branch"]
    tags = [ref.name for ref in refs if ref.type == "tag"]
    if branches:
        report.line("Branches:").extend(f"- {name}" for name in branches).line()
    if tags:
        report.line("Tags:").extend(f"- {name}" for name in tags)
    return report.render()


def format_cherry_pick(commit: Commit, request: ActionRequest) -> str:
    sha, branch = request.params.commit_sha, request.params.branch
    if request.options.dry_run:
        report = Report().line(
            f"Dry run: Cherry-pick of commit {sha} to branch {branch} would succeed."
        )
        # GitLab answers a dry run without a commit body.
        if not commit.id:
            return report.render()
    else:
        report = Report().line(f"Successfully cherry-picked commit {sha} to branch {branch}:")
    lines = commit_lines(commit)
    lines[0] = f"New Commit: {commit.id}"
    return report.line().extend(lines).render()


def format_revert(commit: Commit, request: ActionRequest) -> str:
    sha, branch = request.params.commit_sha, request.params.branch
    lines = commit_lines(commit)
    lines[0] = f"Revert Commit: {commit.id}"
    report = Report().line(f"Successfully reverted commit {sha} on branch {branch}:").line()
    return report.extend(lines).render()


def format_file_content(content: FileContent, request: ActionRequest) -> str:
    report = Report().field("File", content.file_path).field("Ref", content.ref)
    if not content.content:
        return report.line("The file is empty.").render()
    return report.line("Content:").line(truncate(content.content)).render()


def format_mr_commits(commits: list[Commit], mr_iid: int) -> str:
    if not commits:
        return f"No commits found for Merge Request !{mr_iid}.\n"
    report = Report().line(f"Commits for Merge Request !{mr_iid}:").line()
    for commit in commits:
        report.extend(detailed_commit_lines(commit)).line()
    return report.render()
