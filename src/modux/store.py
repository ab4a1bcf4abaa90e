"""The store: single source of truth for application state."""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses
import logging
from collections.abc import Awaitable, Callable, Iterable, Iterator, Mapping, Sequence
from typing import Any, TypeVar

from pydantic import BaseModel

from modux._redact import redact_for_log
from modux._store.context import GetterTree
from modux._store.install import Registry, build_registry, install_module
from modux._store.strict import StrictModeGuard
from modux._store.subscribers import ActionHook, ActionSubscriber, MutationSubscriber, SubscriberRegistry
from modux._util import ModulePath, call_handler, get_nested_state, normalize_path, resolved, unify_object_style
from modux.config import StoreConfig
from modux.exceptions import InvalidPathError, StoreAssertionError
from modux.models.definition import ModuleDefinition
from modux.models.records import ActionRecord, CommitOptions, MutationRecord, RegisterOptions
from modux.module.module import Module
from modux.module.tree import ModuleTree
from modux.plugins.devtools import DevtoolHook, EventHook, devtool_plugin
from modux.reactivity import Reactivity, ReactivityProvider

_logger = logging.getLogger(__name__)

OptionsT = TypeVar("OptionsT", bound=BaseModel)

Plugin = Callable[["Store"], None]
RawModule = ModuleDefinition | Mapping[str, Any]


def _parse_options(model: type[OptionsT], options: Any) -> OptionsT:
    if options is None:
        return model()
    if isinstance(options, model):
        return options
    if isinstance(options, BaseModel):
        options = options.model_dump(by_alias=False)
    return model.model_validate(options)


def _settle_siblings(type_: str, tasks: list[asyncio.Future[Any]], err: BaseException) -> None:
    """Cancel handlers still running after *err* rejected a fan-out dispatch."""
    for task in tasks:
        if not task.done():
            task.cancel()
        elif not task.cancelled():
            other = task.exception()
            if other is not None and other is not err:
                _logger.warning("another handler for %s also failed", type_, exc_info=other)


class Store:
    """Centralized state container built from a tree of modules.

    Usage::

        store = Store({
            "state": {"count": 0},
            "mutations": {"increment": lambda state, n: state.update(count=state["count"] + n)},
            "actions": {"increment_async": increment_async},
        })
        store.commit("increment", 2)
        await store.dispatch("increment_async", 3)
    """

    def __init__(
        self,
        definition: RawModule | None = None,
        *,
        plugins: Iterable[Plugin] = (),
        strict: bool | None = None,
        devtools: bool | None = None,
        config: StoreConfig | None = None,
        reactivity: ReactivityProvider | None = None,
    ) -> None:
        config = config or StoreConfig()
        overrides: dict[str, bool] = {}
        if strict is not None:
            overrides["strict"] = strict
        if devtools is not None:
            overrides["devtools"] = devtools
        if overrides:
            config = dataclasses.replace(config, **overrides)
        self._config = config

        self._reactivity: ReactivityProvider = reactivity or Reactivity(max_flush=config.max_watcher_flush)
        self._committing = False
        self._modules = ModuleTree(definition)
        self._registry = Registry()
        self._subscribers: SubscriberRegistry[MutationSubscriber] = SubscriberRegistry()
        self._action_subscribers: SubscriberRegistry[ActionSubscriber] = SubscriberRegistry()
        self._devtool_hook: DevtoolHook | None = None
        self._getters = GetterTree(self)
        self._strict_guard = StrictModeGuard(lambda: self._committing, debug=config.debug)

        root = self._modules.root
        self._state: Any = self._reactivity.observe(root.state)
        root.state = self._state

        # Registers every module below the root too.
        self._registry = build_registry(self, self._state)

        if config.strict:
            self._strict_guard.attach(self._reactivity)

        for plugin in plugins:
            plugin(self)

        if config.devtools and self._devtool_hook is None:
            devtool_plugin(EventHook())(self)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def config(self) -> StoreConfig:
        return self._config

    @property
    def strict(self) -> bool:
        return self._strict_guard.attached

    @property
    def state(self) -> Any:
        return self._state

    @state.setter
    def state(self, _value: Any) -> None:
        if self._config.debug:
            raise StoreAssertionError("use store.replace_state() to explicit replace store state.")

    @property
    def getters(self) -> GetterTree:
        return self._getters

    @property
    def devtool_hook(self) -> DevtoolHook | None:
        return self._devtool_hook

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def commit(self, type_: Any, payload: Any = None, options: Any = None) -> None:
        """Run every mutation handler registered for *type_*.

        Accepts ``commit("type", payload, options)`` and the object style
        ``commit({"type": "type", ...}, options)``. Unknown types are
        logged and ignored.
        """
        type_, payload, options = unify_object_style(type_, payload, options, debug=self._config.debug)
        commit_options = _parse_options(CommitOptions, options)

        entry = self._registry.mutations.get(type_)
        if not entry:
            _logger.error("unknown mutation type: %s", type_)
            return

        if _logger.isEnabledFor(logging.DEBUG):
            _logger.debug("commit type=%s payload=%s", type_, redact_for_log(payload))

        def run_handlers() -> None:
            for handler in entry:
                handler(payload)

        self._with_commit(run_handlers)

        mutation = MutationRecord(type=type_, payload=payload)
        for subscriber in self._subscribers:
            subscriber(mutation, self.state)

        if commit_options.silent:
            _logger.warning(
                "mutation type: %s. Silent option has been removed. Filter mutations in the subscriber instead.",
                type_,
            )

    @contextlib.contextmanager
    def _committing_scope(self) -> Iterator[None]:
        # Watchers flush when the batch closes, after the flag is restored.
        with self._reactivity.batch():
            committing = self._committing
            self._committing = True
            try:
                yield
            finally:
                self._committing = committing

    def _with_commit(self, fn: Callable[[], Any]) -> Any:
        with self._committing_scope():
            return fn()

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def dispatch(self, type_: Any, payload: Any = None, options: Any = None) -> asyncio.Future[Any]:
        """Run every action handler registered for *type_*.

        Must be called while an event loop is running. ``before`` hooks run
        immediately; the handlers are scheduled as a task, which is returned
        so the call also works from synchronous code such as a mutation.
        With a single handler the task resolves to its result; with several
        the handlers run concurrently and the task resolves to a list of
        results in registration order. Unknown types are logged and resolve
        to ``None``. *options* is accepted for parity with local dispatch
        and ignored.
        """
        type_, payload, _ = unify_object_style(type_, payload, options, debug=self._config.debug)

        entry = self._registry.actions.get(type_)
        if not entry:
            _logger.error("unknown action type: %s", type_)
            return resolved(None)

        if _logger.isEnabledFor(logging.DEBUG):
            _logger.debug("dispatch type=%s payload=%s handlers=%d", type_, redact_for_log(payload), len(entry))

        action = ActionRecord(type=type_, payload=payload)
        self._notify_action_subscribers(action, "before")
        return asyncio.ensure_future(self._run_actions(action, list(entry)))

    async def _run_actions(self, action: ActionRecord, entry: list[Callable[[Any], Awaitable[Any]]]) -> Any:
        if len(entry) > 1:
            tasks = [asyncio.ensure_future(handler(action.payload)) for handler in entry]
            try:
                result: Any = list(await asyncio.gather(*tasks))
            except BaseException as err:
                _settle_siblings(action.type, tasks, err)
                raise
        else:
            result = await entry[0](action.payload)

        self._notify_action_subscribers(action, "after")
        return result

    def _notify_action_subscribers(self, action: ActionRecord, phase: str) -> None:
        for subscriber in self._action_subscribers:
            hook: ActionHook | None = getattr(subscriber, phase)
            if hook is None:
                continue
            try:
                hook(action, self.state)
            except Exception:
                _logger.warning("error in %s action subscribers for %s", phase, action.type, exc_info=True)

    # ------------------------------------------------------------------
    # Subscriptions
    # ------------------------------------------------------------------

    def subscribe(self, fn: MutationSubscriber) -> Callable[[], None]:
        """Call ``fn(mutation, state)`` after every commit; returns an unsubscribe callable."""
        return self._subscribers.add(fn)

    def subscribe_action(
        self,
        fn: ActionSubscriber | ActionHook | Mapping[str, ActionHook],
    ) -> Callable[[], None]:
        """Hook into dispatches; a bare callable runs before each action."""
        return self._action_subscribers.add(ActionSubscriber.coerce(fn))

    def watch(
        self,
        getter: Callable[..., Any],
        callback: Callable[[Any, Any], None],
        *,
        deep: bool = False,
        immediate: bool = False,
    ) -> Callable[[], None]:
        """Call ``callback(new, old)`` whenever ``getter(state, getters)`` changes."""
        if self._config.debug and not callable(getter):
            raise StoreAssertionError("store.watch only accepts a function.")
        return self._reactivity.watch(
            lambda: call_handler(getter, self.state, self.getters),
            callback,
            deep=deep,
            immediate=immediate,
        )

    # ------------------------------------------------------------------
    # State and module lifecycle
    # ------------------------------------------------------------------

    def replace_state(self, state: Any) -> None:
        """Swap the whole state tree."""

        def swap() -> None:
            self._state = self._reactivity.observe(state)
            self._modules.root.state = self._state
            self._reactivity.trigger()

        self._with_commit(swap)

    def register_module(
        self,
        path: str | Sequence[str],
        raw: RawModule,
        options: RegisterOptions | Mapping[str, Any] | None = None,
    ) -> Module:
        """Add a module at runtime.

        Only the new subtree is installed, into a copy of the current
        registry that is then swapped in.
        """
        path = normalize_path(path, debug=self._config.debug)
        if self._config.debug and not path:
            raise InvalidPathError("cannot register the root module by using register_module.")
        register_options = _parse_options(RegisterOptions, options)

        with self._reactivity.batch():
            previous = self._modules.find(path)
            module = self._modules.register(path, raw, runtime=True)
            registry = self._registry.copy()
            try:
                install_module(
                    self,
                    registry,
                    self.state,
                    path,
                    module,
                    preserve_state=register_options.preserve_state,
                )
            except Exception:
                # The tree must not hold a module the registry never saw.
                self._restore_child(path, previous)
                raise
            self._registry = registry
        _logger.debug("registered module %s", "/".join(path))
        return module

    def unregister_module(self, path: str | Sequence[str]) -> None:
        """Remove a module, its state and everything it registered."""
        path = normalize_path(path, debug=self._config.debug)
        if self._config.debug and not path:
            raise InvalidPathError("cannot unregister the root module.")

        with self._reactivity.batch():
            removed = self._modules.unregister(path)
            if removed is None:
                return

            def drop_state() -> None:
                try:
                    parent_state = get_nested_state(self.state, path[:-1])
                    present = path[-1] in parent_state
                except (KeyError, IndexError, TypeError):
                    present = False
                if not present:
                    _logger.debug("unregister_module: no state at %s", "/".join(path))
                    return
                self._reactivity.delete(parent_state, path[-1])

            try:
                self._with_commit(drop_state)
                self._reset()
            except Exception:
                self._restore_child(path, removed)
                raise
        _logger.debug("unregistered module %s", "/".join(path))

    def _restore_child(self, path: ModulePath, module: Module | None) -> None:
        parent = self._modules.find(path[:-1])
        if parent is None:
            return
        if module is None:
            parent.remove_child(path[-1])
        else:
            parent.add_child(path[-1], module)

    def has_module(self, path: str | Sequence[str]) -> bool:
        return self._modules.is_registered(normalize_path(path, debug=self._config.debug))

    def hot_update(self, raw: RawModule) -> None:
        """Swap mutation/action/getter maps of existing modules in place."""
        with self._reactivity.batch():
            self._modules.update(raw)
            self._reset(hot=True)

    def module_by_namespace(self, namespace: str) -> Module | None:
        if namespace and not namespace.endswith("/"):
            namespace += "/"
        return self._registry.namespace_map.get(namespace)

    def _reset(self, *, hot: bool = False) -> None:
        # Installed state already exists, so the rebuild never grafts.
        self._registry = build_registry(self, self.state, hot=True)
        if hot:
            # Re-run getters and watchers against the swapped handlers.
            self._with_commit(self._reactivity.trigger)
