"""A single node of the module tree."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import TYPE_CHECKING, Any

from modux.models.definition import ActionHandler, ActionSpec, GetterFn, ModuleDefinition, MutationHandler

if TYPE_CHECKING:
    from modux._store.context import LocalContext


class Module:
    """Wraps one raw definition plus its state and child modules.

    The module owns its ``state`` object. Once installed that object is
    also reachable as a key of the parent module's state, but the module
    keeps the authoritative reference so it can be removed or replaced.
    """

    def __init__(self, raw: ModuleDefinition, *, runtime: bool = False) -> None:
        self.runtime = runtime
        self.raw = raw
        self.state: Any = raw.build_state()
        self.context: LocalContext | None = None
        self._children: dict[str, Module] = {}

    def __repr__(self) -> str:
        return f"Module(namespaced={self.namespaced}, runtime={self.runtime}, children={sorted(self._children)})"

    @property
    def namespaced(self) -> bool:
        return bool(self.raw.namespaced)

    @property
    def children(self) -> dict[str, Module]:
        return dict(self._children)

    def add_child(self, key: str, module: Module) -> None:
        self._children[key] = module

    def remove_child(self, key: str) -> Module | None:
        return self._children.pop(key, None)

    def get_child(self, key: str) -> Module | None:
        return self._children.get(key)

    def has_child(self, key: str) -> bool:
        return key in self._children

    def update(self, raw: ModuleDefinition) -> None:
        """Swap handler maps in place for hot reloading.

        Only maps the new definition explicitly provides are replaced.
        Children and state are left untouched.
        """
        self.raw.namespaced = raw.namespaced
        if raw.provided("actions"):
            self.raw.actions = raw.actions
        if raw.provided("mutations"):
            self.raw.mutations = raw.mutations
        if raw.provided("getters"):
            self.raw.getters = raw.getters

    def iter_children(self) -> Iterator[tuple[str, Module]]:
        # Copy so a callback may register/unregister children while iterating.
        yield from list(self._children.items())

    def for_each_child(self, fn: Callable[[Module, str], None]) -> None:
        for key, child in self.iter_children():
            fn(child, key)

    def for_each_mutation(self, fn: Callable[[MutationHandler, str], None]) -> None:
        for key, handler in self.raw.mutations.items():
            fn(handler, key)

    def for_each_action(self, fn: Callable[[ActionHandler | ActionSpec, str], None]) -> None:
        for key, action in self.raw.actions.items():
            fn(action, key)

    def for_each_getter(self, fn: Callable[[GetterFn, str], None]) -> None:
        for key, getter in self.raw.getters.items():
            fn(getter, key)
