"""Reports for deploy tokens."""

from __future__ import annotations

from ..dispatch.schema import ActionRequest
from ..models.ci import DeployToken
from .common import Report

TOKEN_WARNING = "Important: Save the token value now. You won't be able to access it again!"


def token_lines(token: DeployToken) -> list[str]:
    report = Report()
    report.field("ID", token.id)
    report.field("Name", token.name)
    report.field("Username", token.username)
    report.line(f"Revoked: {str(token.revoked).lower()}")
    report.line(f"Expired: {str(token.expired).lower()}")
    report.field("Scopes", ", ".join(token.scopes))
    report.field("Expires", token.expires_at)
    return report.render().splitlines()


def format_token_list(tokens: list[DeployToken], request: ActionRequest) -> str:
    label = request.params.scope.label
    if not tokens:
        return f"No deploy tokens found for {label}.\n"
    report = Report().line(f"Deploy tokens for {label} ({len(tokens)} tokens):").line()
    for token in tokens:
        report.extend(token_lines(token)).line()
    return report.render()


def format_all_tokens(tokens: list[DeployToken]) -> str:
    if not tokens:
        return "No deploy tokens found.\n"
    report = Report().line(f"Found {len(tokens)} deploy tokens:").line()
    for token in tokens:
        report.extend(token_lines(token)).line()
    return report.render()


def format_token_details(token: DeployToken, request: ActionRequest) -> str:
    kind = request.params.scope.type.capitalize()
    return Report().line(f"{kind} Deploy Token Details:").line().extend(token_lines(token)).render()


def format_token_created(token: DeployToken, request: ActionRequest) -> str:
    report = Report()
    report.line(f"Deploy token created successfully for {request.params.scope.label}!").line()
    report.field("ID", token.id)
    report.field("Name", token.name)
    report.field("Username", token.username)
    report.field("Token", token.token)
    report.field("Scopes", ", ".join(token.scopes))
    report.field("Expires", token.expires_at)
    return report.line().line(TOKEN_WARNING).render()


def format_token_deleted(_: None, request: ActionRequest) -> str:
    return (
        f"Deploy token {request.params.token_id.id} deleted successfully "
        f"from {request.params.scope.label}.\n"
    )
