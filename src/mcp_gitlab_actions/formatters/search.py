"""Reports for global, group and project search results."""

from __future__ import annotations

from collections.abc import Callable

from ..dispatch.schema import ActionRequest
from ..models.common import User
from ..models.merge_requests import MergeRequest
from ..models.projects import Project, SearchBlob
from ..models.repositories import Commit
from .common import format_time, truncate

COMMIT_MESSAGE_LINES = 3
BLOB_PREVIEW_LINES = 5


def _project(index: int, project: Project) -> list[str]:
    lines = [f"{index}. **{project.name}** ({project.path_with_namespace})", f"   ID: {project.id}"]
    if project.description:
        lines.append(f"   Description: {truncate(project.description)}")
    lines.append(f"   URL: {project.web_url}")
    if project.last_activity_at is not None:
        lines.append(f"   Last Activity: {format_time(project.last_activity_at)}")
    return lines


def _merge_request(index: int, mr: MergeRequest) -> list[str]:
    lines = [
        f"{index}. **!{mr.iid}: {mr.title}**",
        f"   Project: {mr.project_id}",
        f"   State: {mr.state}",
    ]
    if mr.author is not None:
        lines.append(f"   Author: {mr.author.name}")
    if mr.assignee is not None:
        lines.append(f"   Assignee: {mr.assignee.name}")
    lines.append(f"   Source Branch: {mr.source_branch}")
    lines.append(f"   Target Branch: {mr.target_branch}")
    if mr.created_at is not None:
        lines.append(f"   Created: {format_time(mr.created_at)}")
    lines.append(f"   URL: {mr.web_url}")
    return lines


def _commit(index: int, commit: Commit) -> list[str]:
    lines = [
        f"{index}. **{commit.title}**",
        f"   SHA: {commit.id}",
        f"   Author: {commit.author_name} <{commit.author_email}>",
    ]
    if commit.created_at is not None:
        lines.append(f"   Date: {format_time(commit.created_at)}")
    message = truncate(commit.message.strip())
    if message and message != commit.title:
        parts = message.splitlines()
        if len(parts) > COMMIT_MESSAGE_LINES:
            lines.append(f"   Message: {' '.join(parts[:COMMIT_MESSAGE_LINES])}...")
        else:
            lines.append(f"   Message: {message}")
    lines.append(f"   URL: {commit.web_url}")
    return lines


def _blob(index: int, blob: SearchBlob) -> list[str]:
    lines = [
        f"{index}. **{blob.filename}**",
        f"   Path: {blob.path}",
        f"   Project ID: {blob.project_id}",
        f"   Ref: {blob.ref}",
    ]
    if blob.startline > 0:
        lines.append(f"   Start Line: {blob.startline}")
    if blob.data:
        parts = truncate(blob.data).split("\n")
        if len(parts) > BLOB_PREVIEW_LINES:
            lines.append("   Preview:")
            lines.extend(f"   {part}" for part in parts[:BLOB_PREVIEW_LINES])
            lines.append("   ...")
        else:
            lines.append("   Content:")
            lines.extend(f"   {part}" for part in parts)
    return lines


def _user(index: int, user: User) -> list[str]:
    lines = [f"{index}. **{user.name}** (@{user.username})", f"   ID: {user.id}"]
    if user.email:
        lines.append(f"   Email: {user.email}")
    lines.append(f"   State: {user.state}")
    if user.web_url:
        lines.append(f"   URL: {user.web_url}")
    return lines


_RENDERERS: dict[str, tuple[str, Callable[[int, object], list[str]]]] = {
    "projects": ("project(s)", _project),
    "merge_requests": ("merge request(s)", _merge_request),
    "commits": ("commit(s)", _commit),
    "blobs": ("code file(s)", _blob),
    "users": ("user(s)", _user),
}


def _no_results(request: ActionRequest) -> str:
    params = request.params
    text = f"No results found for query '{params.query}' in scope '{request.action}'"
    if getattr(params, "group_id", None):
        text += f" within group '{params.group_id}'"
    elif getattr(params, "project_id", None):
        text += f" within project '{params.project_id}'"
    return text + "\n"


def format_results(results: list, request: ActionRequest) -> str:
    if not results:
        return _no_results(request)
    noun, render = _RENDERERS[request.action]
    lines = [f"Found {len(results)} {noun}:", ""]
    for index, item in enumerate(results, start=1):
        lines.extend(render(index, item))
        lines.append("")
    return "\n".join(lines).rstrip() + "\n"
