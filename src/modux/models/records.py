"""Records and option models exchanged with subscribers and callers."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class MutationRecord(BaseModel):
    """A committed mutation, as seen by mutation subscribers."""

    model_config = ConfigDict(frozen=True)

    type: str
    payload: Any = None


class ActionRecord(BaseModel):
    """A dispatched action, as seen by action subscribers."""

    model_config = ConfigDict(frozen=True)

    type: str
    payload: Any = None


class _OptionsModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )


class CommitOptions(_OptionsModel):
    root: bool = False
    silent: bool = False


class DispatchOptions(_OptionsModel):
    root: bool = False


class RegisterOptions(_OptionsModel):
    """Options for :meth:`modux.store.Store.register_module`.

    Accepts ``preserve_state`` or its camelCase alias ``preserveState``.
    """

    preserve_state: bool = False
