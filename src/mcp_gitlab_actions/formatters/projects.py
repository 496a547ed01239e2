"""Reports for projects, group members and user activity."""

from __future__ import annotations

from ..models.projects import Event, GroupMember, Project, ProjectOverview
from .common import Report

ACCESS_LEVELS = {
    10: "Guest",
    20: "Reporter",
    30: "Developer",
    40: "Maintainer",
    50: "Owner",
}


def access_level_name(level: int) -> str:
    return ACCESS_LEVELS.get(level, f"Unknown ({level})")


def format_project_list(projects: list[Project], group_id: str) -> str:
    if not projects:
        return f"No projects found in group {group_id}.\n"
    report = Report().line(f"Projects in group {group_id}:").line()
    for project in projects:
        report.field("ID", project.id)
        report.field("Name", project.name)
        report.field("Path", project.path_with_namespace)
        report.text("Description", project.description)
        report.field("Last Activity", project.last_activity_at)
        report.line()
    return report.render()


def format_project_overview(overview: ProjectOverview) -> str:
    project = overview.project
    report = Report().line("Project Details:")
    report.field("ID", project.id)
    report.field("Name", project.name)
    report.field("Path", project.path_with_namespace)
    report.text("Description", project.description)
    report.field("URL", project.web_url)
    report.field("Default Branch", project.default_branch)
    report.line().line("Branches:")
    if not overview.branches:
        report.line("No branches found.")
    report.extend(f"- {name}" for name in overview.branches)
    report.line().line("Tags:")
    if not overview.tags:
        report.line("No tags found.")
    report.extend(f"- {name}" for name in overview.tags)
    return report.render()


def format_group_members(members: list[GroupMember], group_id: str) -> str:
    if not members:
        return f"No users found in group {group_id}.\n"
    report = Report().line(f"Users in group {group_id}:").line()
    for member in members:
        report.field("User", member.username)
        report.field("Name", member.name)
        report.field("ID", member.id)
        report.field("State", member.state)
        report.field("Access Level", access_level_name(member.access_level))
        report.field("Expires At", member.expires_at)
        report.line()
    return report.render()


def format_user_events(events: list[Event], username: str, since: str, until: str) -> str:
    report = Report().line(f"Events for user {username} between {since} and {until}:").line()
    if not events:
        return report.line("No events found in this date range.").render()
    for event in events:
        report.field("Date", event.created_at)
        report.field("Action", event.action_name)
        if event.push_data is not None:
            push = event.push_data
            report.field("Ref", push.ref)
            report.field("Commit Count", push.commit_count)
            report.field("Commit Title", push.commit_title)
            report.field("Commit From", push.commit_from)
            report.field("Commit To", push.commit_to)
        report.field("Target Type", event.target_type)
        report.field("Target IID", event.target_iid)
        report.field("Project ID", event.project_id)
        report.line()
    return report.render()
