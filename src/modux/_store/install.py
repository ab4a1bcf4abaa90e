"""Install walk: flatten the module tree into lookup registries.

Every structural change (register, unregister, hot update) produces a new
:class:`Registry` which the store swaps in with one assignment, so readers
never see a half-built registry.
"""

from __future__ import annotations

import dataclasses
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from modux._store.context import ActionContext, LocalContext
from modux._util import ModulePath, call_handler, get_nested_state
from modux.models.definition import ActionHandler, ActionSpec, GetterFn, MutationHandler
from modux.module.module import Module
from modux.reactivity import Computed

if TYPE_CHECKING:
    from modux.store import Store

_logger = logging.getLogger(__name__)

WrappedMutation = Callable[[Any], None]
WrappedAction = Callable[[Any], Awaitable[Any]]


@dataclasses.dataclass(slots=True)
class Registry:
    """Flat lookup tables built from the module tree."""

    mutations: dict[str, list[WrappedMutation]] = dataclasses.field(default_factory=dict)
    actions: dict[str, list[WrappedAction]] = dataclasses.field(default_factory=dict)
    getters: dict[str, Computed[Any]] = dataclasses.field(default_factory=dict)
    namespace_map: dict[str, Module] = dataclasses.field(default_factory=dict)

    def copy(self) -> Registry:
        """Copy deep enough that extending the copy leaves this registry untouched."""
        return Registry(
            mutations={key: list(entry) for key, entry in self.mutations.items()},
            actions={key: list(entry) for key, entry in self.actions.items()},
            getters=dict(self.getters),
            namespace_map=dict(self.namespace_map),
        )


def build_registry(store: Store, root_state: Any, *, hot: bool = False) -> Registry:
    """Install the whole tree from the root into a fresh registry."""
    registry = Registry()
    install_module(store, registry, root_state, (), store._modules.root, hot=hot)
    return registry


def install_module(
    store: Store,
    registry: Registry,
    root_state: Any,
    path: ModulePath,
    module: Module,
    *,
    hot: bool = False,
    preserve_state: bool = False,
) -> None:
    """Depth-first install of *module* and its children into *registry*.

    Outside hot reinstalls each non-root module's state is grafted onto
    its parent's state; with *preserve_state* an existing value at that
    slot is kept instead.
    """
    namespace = store._modules.get_namespace(path)

    if module.namespaced:
        # No collision check: a later module silently takes the slot.
        registry.namespace_map[namespace] = module

    if path and not hot:
        parent_state = get_nested_state(root_state, path[:-1])
        key = path[-1]
        if preserve_state and key in parent_state:
            module.state = parent_state[key]
        else:

            def graft() -> None:
                module.state = store._reactivity.set(parent_state, key, module.state)

            store._with_commit(graft)
    elif hot:
        try:
            module.state = get_nested_state(root_state, path)
        except (KeyError, IndexError, TypeError):
            _logger.debug("hot reinstall: no state at %s", "/".join(path) or "<root>")

    local = module.context = LocalContext(store, namespace, path)

    def _mutation(handler: MutationHandler, key: str) -> None:
        register_mutation(registry, namespace + key, handler, local)

    def _action(action: ActionHandler | ActionSpec, key: str) -> None:
        if isinstance(action, ActionSpec):
            type_ = key if action.root else namespace + key
            register_action(store, registry, type_, action.handler, local)
        else:
            register_action(store, registry, namespace + key, action, local)

    def _getter(getter: GetterFn, key: str) -> None:
        register_getter(store, registry, namespace + key, getter, local)

    module.for_each_mutation(_mutation)
    module.for_each_action(_action)
    module.for_each_getter(_getter)

    for key, child in module.iter_children():
        install_module(store, registry, root_state, (*path, key), child, hot=hot, preserve_state=preserve_state)


def register_mutation(registry: Registry, type_: str, handler: MutationHandler, local: LocalContext) -> None:
    def wrapped_mutation_handler(payload: Any) -> None:
        call_handler(handler, local.state, payload)

    registry.mutations.setdefault(type_, []).append(wrapped_mutation_handler)


def register_action(
    store: Store,
    registry: Registry,
    type_: str,
    handler: ActionHandler,
    local: LocalContext,
) -> None:
    async def wrapped_action_handler(payload: Any) -> Any:
        context = ActionContext(store, local)
        try:
            result = call_handler(handler, context, payload)
            if inspect.isawaitable(result):
                result = await result
        except Exception as err:
            hook = store._devtool_hook
            if hook is not None:
                hook.emit("modux:error", err)
            raise
        return result

    registry.actions.setdefault(type_, []).append(wrapped_action_handler)


def register_getter(
    store: Store,
    registry: Registry,
    type_: str,
    getter: GetterFn,
    local: LocalContext,
) -> None:
    if type_ in registry.getters:
        _logger.error("duplicate getter key: %s", type_)
        return

    def wrapped_getter() -> Any:
        return call_handler(getter, local.state, local.getters, store.state, store.getters)

    registry.getters[type_] = store._reactivity.computed(wrapped_getter)
