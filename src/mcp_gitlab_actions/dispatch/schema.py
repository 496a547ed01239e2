"""Option schema and request validation for action-routed tools.

Each action-routed tool declares a ``ToolSchema``: a pydantic model for the
fields shared by every action, plus one ``ActionSpec`` per action naming the
option block it reads and the shared fields it makes mandatory.

Validation is total. A request either satisfies every rule for its action and
becomes an ``ActionRequest``, or a ``ToolInputError`` is raised before any
handler runs.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator
from pydantic_core import PydanticCustomError

from ..exceptions import InvalidFieldError, MissingFieldError, UnsupportedActionError


def _is_absent(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def strip_absent(data: Mapping[str, Any]) -> dict[str, Any]:
    """Drop keys whose value is ``None`` or an empty string."""
    return {k: v for k, v in data.items() if not _is_absent(v)}


class OptionBlock(BaseModel):
    """Base for every request model: shared fields and per-action option blocks.

    Empty strings and ``None`` are treated as absent, so a required field sent
    as ``""`` is reported as missing instead of failing a length check.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_absent(cls, data: Any) -> Any:
        if isinstance(data, Mapping):
            return strip_absent(data)
        return data


def require(field_name: str) -> PydanticCustomError:
    """Build a 'missing' error for a field made mandatory by another field's value."""
    return PydanticCustomError(
        "missing",
        "{field} is required",
        {"field": field_name},
    )


@dataclass(frozen=True)
class ActionSpec:
    """Schema of one action: its option block and the shared fields it requires."""

    name: str
    options: type[OptionBlock] | None = None
    options_field: str | None = None
    requires: tuple[str, ...] = ()


@dataclass(frozen=True)
class ActionRequest:
    """A validated request, owned by a single tool invocation."""

    tool: str
    action: str
    params: Any
    options: Any = None


@dataclass(frozen=True)
class ToolSchema:
    tool_name: str
    params: type[OptionBlock]
    actions: tuple[ActionSpec, ...]
    discriminator: str = "action"
    _by_name: dict[str, ActionSpec] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "_by_name", {spec.name: spec for spec in self.actions})

    @property
    def action_names(self) -> tuple[str, ...]:
        return tuple(spec.name for spec in self.actions)

    def spec_for(self, action: str) -> ActionSpec:
        return self._by_name[action]

    def validate(self, arguments: Mapping[str, Any]) -> ActionRequest:
        """Check *arguments* against the schema and return the validated request.

        Only the option block of the selected action is read. Blocks that
        belong to other actions are ignored even when present.
        """
        action = arguments.get(self.discriminator)
        if not isinstance(action, str) or action not in self._by_name:
            raise UnsupportedActionError(
                self.tool_name,
                action if action is not None else "",
                self.action_names,
                field=self.discriminator,
            )
        spec = self._by_name[action]

        option_fields = {s.options_field for s in self.actions if s.options_field}
        shared = {
            k: v
            for k, v in arguments.items()
            if k != self.discriminator and k not in option_fields
        }
        params = _parse(self.params, shared, action)

        for name in spec.requires:
            if getattr(params, name, None) is None:
                raise MissingFieldError(name, action)

        options = None
        if spec.options is not None:
            raw = arguments.get(spec.options_field) if spec.options_field else None
            if raw is not None and not isinstance(raw, Mapping):
                raise InvalidFieldError(str(spec.options_field), "must be an object")
            options = _parse(spec.options, raw or {}, action)

        return ActionRequest(tool=self.tool_name, action=action, params=params, options=options)


def _parse(model: type[OptionBlock], data: Mapping[str, Any], action: str) -> Any:
    try:
        return model.model_validate(dict(data))
    except ValidationError as e:
        raise _to_input_error(e, action) from e


def _to_input_error(error: ValidationError, action: str) -> MissingFieldError | InvalidFieldError:
    """Translate the first pydantic error into a tool input error."""
    first = error.errors()[0]
    loc = [str(part) for part in first.get("loc", ())]
    ctx = first.get("ctx") or {}
    if first["type"] == "missing":
        if "field" in ctx:
            loc.append(str(ctx["field"]))
        name = ".".join(loc) or "request"
        return MissingFieldError(name, action)
    name = ".".join(loc) or "request"
    return InvalidFieldError(name, first["msg"])
