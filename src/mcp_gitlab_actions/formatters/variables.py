"""Reports for group CI/CD variables. Values are never printed."""

from __future__ import annotations

from ..dispatch.schema import ActionRequest
from ..models.ci import Variable
from .common import Report


def _flag(value: bool) -> str:
    return str(value).lower()


def variable_lines(variable: Variable) -> list[str]:
    report = Report()
    report.field("Key", variable.key)
    report.field("Variable Type", variable.variable_type)
    report.line(f"Protected: {_flag(variable.protected)}")
    report.line(f"Masked: {_flag(variable.masked)}")
    report.line(f"Raw: {_flag(variable.raw)}")
    report.field("Environment Scope", variable.environment_scope)
    report.field("Description", variable.description)
    report.line(f"Value: {'[HIDDEN]' if variable.value else '[EMPTY]'}")
    return report.render().splitlines()


def format_variable_list(variables: list[Variable], request: ActionRequest) -> str:
    report = Report().line(f"Variables in group {request.params.group_id}:").line()
    if not variables:
        return report.line("No variables found in this group.").render()
    for variable in variables:
        report.extend(variable_lines(variable)).line()
    return report.render()


def format_variable_details(variable: Variable, request: ActionRequest) -> str:
    params = request.params
    report = Report().line(f"Variable details for key '{params.key}' in group {params.group_id}:")
    return report.line().extend(variable_lines(variable)).render()


def format_variable_created(variable: Variable, request: ActionRequest) -> str:
    params = request.params
    report = Report().line(
        f"Successfully created variable '{params.key}' in group {params.group_id}"
    )
    return report.line().extend(variable_lines(variable)).render()


def format_variable_updated(variable: Variable, request: ActionRequest) -> str:
    params = request.params
    report = Report().line(
        f"Successfully updated variable '{params.key}' in group {params.group_id}"
    )
    return report.line().extend(variable_lines(variable)).render()


def format_variable_removed(result: None, request: ActionRequest) -> str:
    params = request.params
    return f"Successfully removed variable '{params.key}' from group {params.group_id}\n"
