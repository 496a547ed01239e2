"""Static action-to-handler routing for action-routed tools."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any

from ..client import GitLabClient
from ..exceptions import GitLabError, InternalRoutingDefect, OperationError
from .schema import ActionRequest, ToolSchema

logger = logging.getLogger(__name__)

Handler = Callable[[GitLabClient, ActionRequest], Awaitable[Any]]
Formatter = Callable[[Any, ActionRequest], str]


@dataclass(frozen=True)
class ActionDefinition:
    """Handler, formatter and metadata for one (tool, action) pair."""

    name: str
    handler: Handler
    formatter: Formatter
    operation: str
    mutating: bool = False
    summary: str = ""


class ActionRouter:
    """Maps a validated action to exactly one handler.

    When built with a schema, every action the schema declares must have a
    definition, so a newly declared action without a handler fails at import
    time rather than on first use.
    """

    def __init__(
        self,
        tool_name: str,
        actions: Sequence[ActionDefinition],
        *,
        schema: ToolSchema | None = None,
    ) -> None:
        self.tool_name = tool_name
        self._actions = {definition.name: definition for definition in actions}
        if schema is not None:
            for name in schema.action_names:
                if name not in self._actions:
                    logger.error("Tool %s declares action %r without a handler", tool_name, name)
                    raise InternalRoutingDefect(tool_name, name)

    @property
    def allowed_actions(self) -> tuple[str, ...]:
        return tuple(self._actions)

    def resolve(self, action: str) -> ActionDefinition:
        try:
            return self._actions[action]
        except KeyError:
            logger.error("No handler registered for %s.%s", self.tool_name, action)
            raise InternalRoutingDefect(self.tool_name, action) from None

    async def dispatch(self, client: GitLabClient, request: ActionRequest) -> Any:
        """Run the handler for ``request.action`` once, without retry.

        GitLab failures raised by the handler are wrapped as ``OperationError``.
        """
        definition = self.resolve(request.action)
        logger.debug("Dispatching %s.%s", self.tool_name, request.action)
        try:
            return await definition.handler(client, request)
        except GitLabError as e:
            raise OperationError(definition.operation, str(e), e) from e
