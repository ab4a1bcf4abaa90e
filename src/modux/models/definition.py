"""Raw module definitions.

A module definition is what application code hands to the store: initial
state (or a factory for it), the mutation/action/getter maps and nested
child definitions. Plain dicts are accepted everywhere and validated into
:class:`ModuleDefinition`.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from modux.exceptions import InvalidModuleError

MutationHandler = Callable[..., Any]
ActionHandler = Callable[..., Any]
GetterFn = Callable[..., Any]


class ActionSpec(BaseModel):
    """Object-form action: ``{"handler": fn, "root": True}``.

    ``root=True`` registers the action under its bare key even when the
    owning module is namespaced.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    handler: ActionHandler
    root: bool = False


class ModuleDefinition(BaseModel):
    """Validated form of a raw module definition."""

    model_config = ConfigDict(extra="forbid")

    state: Any = None
    namespaced: bool = False
    mutations: dict[str, MutationHandler] = Field(default_factory=dict)
    actions: dict[str, ActionHandler | ActionSpec] = Field(default_factory=dict)
    getters: dict[str, GetterFn] = Field(default_factory=dict)
    modules: dict[str, ModuleDefinition] = Field(default_factory=dict)

    def build_state(self) -> Any:
        """Return the initial state, invoking the factory when one is given."""
        raw_state = self.state
        if callable(raw_state):
            raw_state = raw_state()
        return {} if raw_state is None else raw_state

    def provided(self, field_name: str) -> bool:
        """Whether *field_name* was explicitly supplied by the caller."""
        return field_name in self.model_fields_set


def parse_definition(raw: ModuleDefinition | Mapping[str, Any] | None, *, path: tuple[str, ...] = ()) -> ModuleDefinition:
    """Validate *raw* into a :class:`ModuleDefinition`.

    Raises :class:`~modux.exceptions.InvalidModuleError` when the
    definition is malformed (non-callable handlers, unknown keys, action
    objects without a handler).
    """
    if raw is None:
        return ModuleDefinition()
    if isinstance(raw, ModuleDefinition):
        return raw
    try:
        return ModuleDefinition.model_validate(dict(raw))
    except (TypeError, ValueError, ValidationError) as exc:
        where = ".".join(path) or "<root>"
        raise InvalidModuleError(f"invalid module definition at {where}: {exc}", path=path) from exc
