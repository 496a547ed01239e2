"""Single-operation project, group and user reads."""

from __future__ import annotations

from ..client import GitLabClient
from ..models.projects import Event, GroupMember, Project, ProjectOverview


async def list_group_projects(
    client: GitLabClient, group_id: str, search: str | None = None
) -> list[Project]:
    """Active projects of a group, most recently active first."""
    query = {"archived": False, "order_by": "last_activity_at", "sort": "desc"}
    if search:
        query["search"] = search
    return Project.from_api(await client.list_group_projects(group_id, query))


async def get_project_overview(client: GitLabClient, project_path: str) -> ProjectOverview:
    project = await client.get_project(project_path)
    branches = await client.list_branches(project_path)
    tags = await client.list_tags(project_path)
    return ProjectOverview(
        project=Project.from_api(project),
        branches=[branch["name"] for branch in branches or []],
        tags=[tag["name"] for tag in tags or []],
    )


async def list_group_members(client: GitLabClient, group_id: str) -> list[GroupMember]:
    return GroupMember.from_api(await client.list_group_members(group_id))


async def list_user_events(
    client: GitLabClient, username: str, since: str, until: str
) -> list[Event]:
    """Contribution events of a user between two dates (YYYY-MM-DD)."""
    data = await client.list_user_events(username, {"after": since, "before": until})
    return Event.from_api(data)
