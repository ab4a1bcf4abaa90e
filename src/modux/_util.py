"""Small helpers shared by the store internals."""

from __future__ import annotations

import asyncio
import functools
import inspect
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from modux.exceptions import InvalidPathError, InvalidTypeError

ModulePath = tuple[str, ...]


def normalize_path(path: str | Sequence[str], *, debug: bool = True) -> ModulePath:
    """Turn ``"a"`` or ``["a", "b"]`` into a path tuple."""
    if isinstance(path, str):
        return (path,)
    if debug and (not isinstance(path, Sequence) or not all(isinstance(key, str) for key in path)):
        raise InvalidPathError("module path must be a string or a sequence of strings.")
    return tuple(path)


def resolved(value: Any) -> asyncio.Future[Any]:
    """An already completed future on the running loop."""
    future: asyncio.Future[Any] = asyncio.get_running_loop().create_future()
    future.set_result(value)
    return future


def get_nested_state(state: Any, path: Sequence[str]) -> Any:
    for key in path:
        state = state[key]
    return state


def unify_object_style(
    type_: Any,
    payload: Any = None,
    options: Any = None,
    *,
    debug: bool = True,
) -> tuple[str, Any, Any]:
    """Normalize ``(type, payload, options)`` and ``({"type": ...}, options)`` calls.

    In object style the whole mapping becomes the payload and the second
    positional argument is taken as the options.
    """
    if isinstance(type_, Mapping) and type_.get("type"):
        options = payload
        payload = type_
        type_ = type_["type"]

    if debug and not isinstance(type_, str):
        raise InvalidTypeError(f"expects string as the type, but found {type(type_).__name__}.")

    return type_, payload, options


@functools.lru_cache(maxsize=1024)
def _positional_capacity(fn: Callable[..., Any]) -> int | None:
    """How many positional arguments *fn* accepts; ``None`` means unbounded."""
    try:
        signature = inspect.signature(fn)
    except (TypeError, ValueError):
        return None
    count = 0
    for param in signature.parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return None
        if param.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            count += 1
    return count


def call_handler(fn: Callable[..., Any], *args: Any) -> Any:
    """Call *fn* with as many leading *args* as it declares.

    Lets handlers be written as ``def increment(state)`` as well as
    ``def increment(state, payload)``, and getters take only the
    ``(state, getters, root_state, root_getters)`` prefix they need.
    """
    try:
        capacity = _positional_capacity(fn)
    except TypeError:
        # Unhashable callables cannot be cached.
        capacity = _positional_capacity.__wrapped__(fn)
    if capacity is None:
        return fn(*args)
    return fn(*args[:capacity])
