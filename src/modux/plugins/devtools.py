"""Bridge between a store and an external inspector.

The bridge is an ordinary plugin: it only uses the public subscription
API plus ``replace_state`` for time travel. When attached, failing
actions are also reported through the hook before they propagate.
"""

from __future__ import annotations

import logging
from collections import defaultdict, deque
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from modux.store import Store

_logger = logging.getLogger(__name__)

INIT_EVENT = "modux:init"
MUTATION_EVENT = "modux:mutation"
ERROR_EVENT = "modux:error"
TRAVEL_EVENT = "modux:travel-to-state"


class DevtoolHook(Protocol):
    """Event channel to an inspector."""

    def emit(self, event: str, *args: Any) -> None: ...

    def on(self, event: str, handler: Callable[..., None]) -> None: ...


class EventHook:
    """In-process :class:`DevtoolHook` keeping a bounded event history."""

    def __init__(self, *, history: int = 200) -> None:
        self._handlers: defaultdict[str, list[Callable[..., None]]] = defaultdict(list)
        self.history: deque[tuple[str, tuple[Any, ...]]] = deque(maxlen=history)

    def on(self, event: str, handler: Callable[..., None]) -> None:
        self._handlers[event].append(handler)

    def emit(self, event: str, *args: Any) -> None:
        self.history.append((event, args))
        for handler in list(self._handlers.get(event, ())):
            try:
                handler(*args)
            except Exception:
                _logger.warning("devtools handler for %s failed", event, exc_info=True)

    def events(self, name: str) -> list[tuple[Any, ...]]:
        return [args for event, args in self.history if event == name]


def devtool_plugin(hook: DevtoolHook) -> Callable[[Store], None]:
    """Return a plugin wiring *store* to *hook*."""

    def plugin(store: Store) -> None:
        store._devtool_hook = hook
        hook.emit(INIT_EVENT, store)
        hook.on(TRAVEL_EVENT, store.replace_state)
        store.subscribe(lambda mutation, state: hook.emit(MUTATION_EVENT, mutation, state))

    return plugin
