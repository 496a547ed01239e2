"""Tool facade: validate, route, handle and format one tool call."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, TypeVar

from ..client import GitLabClient
from ..config import GitLabConfig
from ..exceptions import (
    GitLabError,
    GitLabWriteDisabledError,
    OperationError,
    ToolInputError,
)
from ..formatters.common import render_error
from .router import ActionRouter
from .schema import ToolSchema

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ActionTool:
    """Outward-facing entry point of one action-routed tool.

    Input errors, read-only refusals and GitLab failures come back as text.
    ``InternalRoutingDefect`` is left to propagate to the transport.
    """

    def __init__(self, schema: ToolSchema, router: ActionRouter) -> None:
        self.schema = schema
        self.router = router

    @property
    def name(self) -> str:
        return self.schema.tool_name

    async def run(
        self, client: GitLabClient, config: GitLabConfig, arguments: Mapping[str, Any]
    ) -> str:
        try:
            request = self.schema.validate(arguments)
        except ToolInputError as e:
            logger.warning("Rejected %s request: %s", self.name, e)
            return render_error(e)

        definition = self.router.resolve(request.action)
        if definition.mutating and config.read_only:
            logger.warning("Refused %s.%s in read-only mode", self.name, request.action)
            return render_error(GitLabWriteDisabledError())

        try:
            result = await self.router.dispatch(client, request)
        except OperationError as e:
            logger.warning("%s.%s failed: %s", self.name, request.action, e)
            return render_error(e)
        return definition.formatter(result, request)


async def run_operation(
    operation: str,
    call: Callable[[], Awaitable[T]],
    formatter: Callable[[T], str],
) -> str:
    """Run a single-action tool: one GitLab operation, then its report."""
    try:
        result = await call()
    except GitLabError as e:
        error = OperationError(operation, str(e), e)
        logger.warning("%s", error)
        return render_error(error)
    return formatter(result)
