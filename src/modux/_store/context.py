"""Per-module views of the store.

Handlers authored inside a module talk to the store through a
:class:`LocalContext`, so they never need to know their own namespace
prefix. Getters and state are resolved at read time against the live
store because hot reloading and ``replace_state`` swap both wholesale.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator, Mapping
from typing import TYPE_CHECKING, Any

from modux._util import ModulePath, get_nested_state, resolved, unify_object_style
from modux.models.records import CommitOptions, DispatchOptions

if TYPE_CHECKING:
    from modux.store import Store

_logger = logging.getLogger(__name__)


class GetterTree(Mapping[str, Any]):
    """Read-only mapping of every registered getter, evaluated on access."""

    def __init__(self, store: Store) -> None:
        self._store = store

    def __getitem__(self, key: str) -> Any:
        return self._store._registry.getters[key].value

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._store._registry.getters))

    def __len__(self) -> int:
        return len(self._store._registry.getters)

    def __contains__(self, key: object) -> bool:
        return key in self._store._registry.getters

    def __repr__(self) -> str:
        return f"GetterTree({sorted(self._store._registry.getters)})"


class LocalGetters(Mapping[str, Any]):
    """The getters under one namespace, keyed without the prefix."""

    def __init__(self, store: Store, namespace: str) -> None:
        self._store = store
        self._namespace = namespace

    def __getitem__(self, key: str) -> Any:
        getters = self._store._registry.getters
        qualified = self._namespace + key
        if qualified not in getters:
            raise KeyError(key)
        return getters[qualified].value

    def __iter__(self) -> Iterator[str]:
        split = len(self._namespace)
        return iter([key[split:] for key in list(self._store._registry.getters) if key.startswith(self._namespace)])

    def __len__(self) -> int:
        return sum(1 for key in self._store._registry.getters if key.startswith(self._namespace))

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and (self._namespace + key) in self._store._registry.getters

    def __repr__(self) -> str:
        return f"LocalGetters(namespace={self._namespace!r}, keys={sorted(self)})"


class LocalContext:
    """``dispatch``/``commit``/``getters``/``state`` scoped to one module."""

    def __init__(self, store: Store, namespace: str, path: ModulePath) -> None:
        self._store = store
        self.namespace = namespace
        self.path = path
        if namespace:
            self.dispatch = self._namespaced_dispatch
            self.commit = self._namespaced_commit
        else:
            self.dispatch = store.dispatch
            self.commit = store.commit

    def __repr__(self) -> str:
        return f"LocalContext(namespace={self.namespace!r}, path={self.path!r})"

    @property
    def getters(self) -> Mapping[str, Any]:
        if not self.namespace:
            return self._store.getters
        return LocalGetters(self._store, self.namespace)

    @property
    def state(self) -> Any:
        return get_nested_state(self._store.state, self.path)

    def _namespaced_dispatch(self, type_: Any, payload: Any = None, options: Any = None) -> asyncio.Future[Any]:
        store = self._store
        local_type, payload, options = unify_object_style(type_, payload, options, debug=store.config.debug)
        global_type = local_type
        if not DispatchOptions.model_validate(options or {}).root:
            global_type = self.namespace + local_type
            if global_type not in store._registry.actions:
                _logger.error("unknown local action type: %s, global type: %s", local_type, global_type)
                return resolved(None)
        return store.dispatch(global_type, payload)

    def _namespaced_commit(self, type_: Any, payload: Any = None, options: Any = None) -> None:
        store = self._store
        local_type, payload, options = unify_object_style(type_, payload, options, debug=store.config.debug)
        global_type = local_type
        if not CommitOptions.model_validate(options or {}).root:
            global_type = self.namespace + local_type
            if global_type not in store._registry.mutations:
                _logger.error("unknown local mutation type: %s, global type: %s", local_type, global_type)
                return
        store.commit(global_type, payload, options)


class ActionContext:
    """First argument of every action handler."""

    __slots__ = ("_local", "_store")

    def __init__(self, store: Store, local: LocalContext) -> None:
        self._store = store
        self._local = local

    @property
    def dispatch(self) -> Any:
        return self._local.dispatch

    @property
    def commit(self) -> Any:
        return self._local.commit

    @property
    def getters(self) -> Mapping[str, Any]:
        return self._local.getters

    @property
    def state(self) -> Any:
        return self._local.state

    @property
    def root_getters(self) -> Mapping[str, Any]:
        return self._store.getters

    @property
    def root_state(self) -> Any:
        return self._store.state
