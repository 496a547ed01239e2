"""Field types shared by the request schemas of every tool family."""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Annotated
from urllib.parse import unquote

from pydantic import AfterValidator, Field

# Matches:  <host>/<namespace/project>/-/merge_requests/<iid>
_MR_RE = re.compile(r"https?://[^/]+/(.+?)/-/merge_requests/(\d+)")
# Matches:  <host>/<namespace/project> (no /-/ suffix)
_PROJECT_RE = re.compile(r"https?://[^/]+/(.+?)(?:/-/.*)?/?$")

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
# RFC 3339 date-time with an explicit offset, e.g. 2025-01-01T00:00:00Z
DATETIME_PATTERN = r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-]\d{2}:\d{2})$"


def parse_mr_url(value: str) -> tuple[str, str]:
    """Extract (project_path, mr_iid) from a GitLab MR URL.

    If *value* is not an MR URL, returns it unchanged as (value, "").
    """
    m = _MR_RE.match(value)
    if m:
        return unquote(m.group(1)), m.group(2)
    return value, ""


def parse_project_url(value: str) -> str:
    """Extract project_path from a GitLab project URL.

    If *value* is not a URL, returns it unchanged.
    """
    if not value.startswith(("http://", "https://")):
        return value
    m = _PROJECT_RE.match(value)
    if m:
        return unquote(m.group(1)).rstrip("/")
    return value


def _check_date(value: str) -> str:
    if re.fullmatch(DATE_PATTERN, value):
        try:
            date.fromisoformat(value)
            return value
        except ValueError:
            pass
    msg = f"'{value}' is not a date in YYYY-MM-DD format"
    raise ValueError(msg)


def _check_datetime(value: str) -> str:
    if re.fullmatch(DATETIME_PATTERN, value):
        try:
            datetime.fromisoformat(value.replace("Z", "+00:00"))
            return value
        except ValueError:
            pass
    msg = f"'{value}' is not an RFC 3339 date-time such as 2025-01-01T00:00:00Z"
    raise ValueError(msg)


ProjectPath = Annotated[
    str,
    Field(min_length=1, max_length=255),
    AfterValidator(parse_project_url),
]
GroupId = Annotated[str, Field(min_length=1, max_length=255)]
PositiveId = Annotated[int, Field(ge=1)]
DateString = Annotated[str, AfterValidator(_check_date)]
DateTimeString = Annotated[str, AfterValidator(_check_datetime)]
CommitSha = Annotated[str, Field(min_length=7, max_length=40, pattern=r"^[A-Za-z0-9]+$")]
Ref = Annotated[str, Field(min_length=1, max_length=255)]
