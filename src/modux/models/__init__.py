"""Data models for module definitions and store records."""

from modux.models.definition import (
    ActionHandler,
    ActionSpec,
    GetterFn,
    ModuleDefinition,
    MutationHandler,
    parse_definition,
)
from modux.models.records import (
    ActionRecord,
    CommitOptions,
    DispatchOptions,
    MutationRecord,
    RegisterOptions,
)

__all__ = [
    "ActionHandler",
    "ActionRecord",
    "ActionSpec",
    "CommitOptions",
    "DispatchOptions",
    "GetterFn",
    "ModuleDefinition",
    "MutationHandler",
    "MutationRecord",
    "RegisterOptions",
    "parse_definition",
]
