"""Formatting conventions shared by every report."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from ..exceptions import (
    GitLabApiError,
    GitLabAuthError,
    GitLabConnectionError,
    GitLabNotFoundError,
    GitLabWriteDisabledError,
    OperationError,
)

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_TEXT_LENGTH = 4000
MAX_DIFF_LENGTH = 20000


def format_time(value: datetime | None) -> str:
    return value.strftime(TIME_FORMAT) if value is not None else ""


def truncate(text: str, limit: int = MAX_TEXT_LENGTH) -> str:
    """Cut *text* past *limit* characters and append a continuation marker."""
    if len(text) <= limit:
        return text
    return f"{text[:limit]}\n... [truncated {len(text) - limit} characters]"


def fenced_diff(diff: str) -> str:
    return f"```diff\n{truncate(diff, MAX_DIFF_LENGTH)}\n```"


class Report:
    """Line-oriented text builder.

    ``field`` skips absent values, so optional timestamps and empty
    attributes never render as blank lines.
    """

    def __init__(self) -> None:
        self._lines: list[str] = []

    def line(self, text: str = "") -> Report:
        self._lines.append(text)
        return self

    def field(self, label: str, value: object) -> Report:
        if value is None or value == "":
            return self
        if isinstance(value, datetime):
            value = format_time(value)
        self._lines.append(f"{label}: {value}")
        return self

    def text(self, label: str, value: str | None, limit: int = MAX_TEXT_LENGTH) -> Report:
        if value:
            self._lines.append(f"{label}: {truncate(value, limit)}")
        return self

    def extend(self, lines: Iterable[str]) -> Report:
        self._lines.extend(lines)
        return self

    def render(self) -> str:
        return "\n".join(self._lines).rstrip() + "\n"


def render_error(error: Exception) -> str:
    """Render a user-facing failure as text, with a hint when one applies."""
    lines = [f"Error: {error}"]
    cause = error.cause if isinstance(error, OperationError) else error
    hint = _hint(cause)
    if hint:
        lines.append(f"Hint: {hint}")
    return "\n".join(lines)


def _hint(error: Exception | None) -> str:
    if isinstance(error, GitLabNotFoundError):
        return "Verify the project path, group ID or resource ID exists and is visible."
    if isinstance(error, GitLabAuthError):
        return "Check GITLAB_TOKEN permissions. Token needs 'api' scope."
    if isinstance(error, GitLabWriteDisabledError):
        return "Server is in read-only mode. Set GITLAB_READ_ONLY=false to enable writes."
    if isinstance(error, GitLabConnectionError):
        return "Check GITLAB_URL and network access to the GitLab instance."
    if isinstance(error, GitLabApiError):
        if error.status_code == 409:
            return "Conflict, the resource may already exist or be locked."
        if error.status_code == 422:
            return "Validation failed, check required fields and formats."
        if error.status_code == 429:
            return "Rate limited. Wait before retrying."
    return ""
