"""GitLab API and tool dispatch exceptions."""

from __future__ import annotations

from collections.abc import Sequence


class GitLabError(Exception):
    """Base exception for GitLab operations."""


class GitLabApiError(GitLabError):
    """Raised when the GitLab API returns a non-success response."""

    def __init__(self, status_code: int, status_text: str, body: str = "") -> None:
        self.status_code = status_code
        self.status_text = status_text
        self.body = body
        super().__init__(f"GitLab API Error {status_code} {status_text}: {body}")


class GitLabAuthError(GitLabApiError):
    """Raised on 401/403 authentication failures."""

    def __init__(self, status_code: int, body: str = "") -> None:
        status_text = "Unauthorized" if status_code == 401 else "Forbidden"
        super().__init__(status_code, status_text, body)


class GitLabNotFoundError(GitLabApiError):
    """Raised on 404 responses."""

    def __init__(self, body: str = "") -> None:
        super().__init__(404, "Not Found", body)


class GitLabConnectionError(GitLabError):
    """Raised when the GitLab instance cannot be reached."""


class GitLabWriteDisabledError(GitLabError):
    """Raised when a write operation is attempted in read-only mode."""

    def __init__(self) -> None:
        super().__init__("Write operations are disabled (GITLAB_READ_ONLY=true)")


# ── Tool input errors ─────────────────────────────────────────────


class ToolInputError(Exception):
    """Base exception for requests rejected before any GitLab call is made."""


class UnsupportedActionError(ToolInputError):
    """Raised when the discriminant value is not one of the tool's actions."""

    def __init__(
        self, tool: str, action: object, allowed: Sequence[str], field: str = "action"
    ) -> None:
        self.tool = tool
        self.action = action
        self.allowed = tuple(allowed)
        self.field = field
        super().__init__(
            f"unsupported {field}: {action}. Supported {field}s: {', '.join(self.allowed)}"
        )


class MissingFieldError(ToolInputError):
    """Raised when a field required by the selected action is absent or empty."""

    def __init__(self, field: str, action: str) -> None:
        self.field = field
        self.action = action
        super().__init__(f"{field} is required for {action} action")


class InvalidFieldError(ToolInputError):
    """Raised when a field violates its constraint, whatever the action."""

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"invalid {field}: {reason}")


# ── Dispatch errors ───────────────────────────────────────────────


class OperationError(Exception):
    """A GitLab call made by an action handler failed."""

    def __init__(self, operation: str, message: str, cause: Exception | None = None) -> None:
        self.operation = operation
        self.message = message
        self.cause = cause
        super().__init__(f"failed to {operation}: {message}")


class InternalRoutingDefect(RuntimeError):
    """An action passed validation but no handler is registered for it."""

    def __init__(self, tool: str, action: str) -> None:
        self.tool = tool
        self.action = action
        super().__init__(f"no handler registered for action '{action}' of tool '{tool}'")
