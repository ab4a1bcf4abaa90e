"""Reactivity provider used by the store.

The store needs three things from a reactivity layer:

* state containers whose writes are observable (:meth:`ReactivityProvider.observe`),
* memoized derived values recomputed only after state changed
  (:meth:`ReactivityProvider.computed`),
* watchers delivered synchronously after a change (:meth:`ReactivityProvider.watch`).

:class:`Reactivity` is the default in-process implementation. Plain ``dict``
and ``list`` values are wrapped into :class:`ReactiveDict` /
:class:`ReactiveList`, whose mutating methods report every write. Other
objects (dataclasses, pydantic models, ...) are stored as-is and their
internal changes are not observed.
"""

from __future__ import annotations

import contextlib
import copy
import logging
from collections.abc import Callable, Iterable, Iterator
from typing import Any, Generic, Protocol, TypeVar

_logger = logging.getLogger(__name__)

T = TypeVar("T")

WriteListener = Callable[[Any, Any], None]
WatchCallback = Callable[[Any, Any], None]


class ReactivityProvider(Protocol):
    """Capabilities the store requires from a reactivity layer."""

    def observe(self, value: Any) -> Any: ...

    def set(self, target: Any, key: Any, value: Any) -> Any: ...

    def delete(self, target: Any, key: Any) -> None: ...

    def computed(self, fn: Callable[[], T]) -> Computed[T]: ...

    def watch(
        self,
        fn: Callable[[], Any],
        callback: WatchCallback,
        *,
        deep: bool = False,
        immediate: bool = False,
    ) -> Callable[[], None]: ...

    def on_write(self, listener: WriteListener) -> Callable[[], None]: ...

    def batch(self) -> contextlib.AbstractContextManager[None]: ...

    def trigger(self) -> None: ...


def to_raw(value: Any) -> Any:
    """Return a plain ``dict``/``list`` deep copy of reactive containers."""
    if isinstance(value, dict):
        return {key: to_raw(item) for key, item in value.items()}
    if isinstance(value, list):
        return [to_raw(item) for item in value]
    return value


def _shallow(value: Any) -> Any:
    if isinstance(value, dict):
        return dict(value)
    if isinstance(value, list):
        return list(value)
    return value


class ReactiveDict(dict):  # type: ignore[type-arg]
    """A ``dict`` that reports every write to its provider."""

    __slots__ = ("_reactivity",)

    def __init__(self, data: Any = (), reactivity: Reactivity | None = None) -> None:
        super().__init__()
        if reactivity is None:
            raise TypeError("ReactiveDict requires a Reactivity instance")
        self._reactivity = reactivity
        for key, value in dict(data).items():
            dict.__setitem__(self, key, reactivity.observe(value))

    def __setitem__(self, key: Any, value: Any) -> None:
        dict.__setitem__(self, key, self._reactivity.observe(value))
        self._reactivity.notify(self, key)

    def __delitem__(self, key: Any) -> None:
        dict.__delitem__(self, key)
        self._reactivity.notify(self, key)

    def __ior__(self, other: Any) -> ReactiveDict:
        self.update(other)
        return self

    def update(self, *args: Any, **kwargs: Any) -> None:
        items = dict(*args, **kwargs)
        if not items:
            return
        for key, value in items.items():
            dict.__setitem__(self, key, self._reactivity.observe(value))
        self._reactivity.notify(self, None)

    def setdefault(self, key: Any, default: Any = None) -> Any:
        if key not in self:
            self[key] = default
        return dict.__getitem__(self, key)

    def pop(self, key: Any, *default: Any) -> Any:
        if key not in self:
            return dict.pop(self, key, *default)
        value = dict.pop(self, key)
        self._reactivity.notify(self, key)
        return value

    def popitem(self) -> tuple[Any, Any]:
        item = dict.popitem(self)
        self._reactivity.notify(self, item[0])
        return item

    def clear(self) -> None:
        if not self:
            return
        dict.clear(self)
        self._reactivity.notify(self, None)

    def __copy__(self) -> dict[Any, Any]:
        return dict(self)

    def __deepcopy__(self, memo: dict[int, Any]) -> dict[Any, Any]:
        return {copy.deepcopy(key, memo): copy.deepcopy(value, memo) for key, value in self.items()}

    def __reduce__(self) -> tuple[Any, ...]:
        return (dict, (to_raw(self),))


class ReactiveList(list):  # type: ignore[type-arg]
    """A ``list`` that reports every write to its provider."""

    __slots__ = ("_reactivity",)

    def __init__(self, data: Iterable[Any] = (), reactivity: Reactivity | None = None) -> None:
        if reactivity is None:
            raise TypeError("ReactiveList requires a Reactivity instance")
        self._reactivity = reactivity
        super().__init__(reactivity.observe(item) for item in data)

    def _observe_all(self, items: Iterable[Any]) -> list[Any]:
        return [self._reactivity.observe(item) for item in items]

    def __setitem__(self, index: Any, value: Any) -> None:
        if isinstance(index, slice):
            list.__setitem__(self, index, self._observe_all(value))
        else:
            list.__setitem__(self, index, self._reactivity.observe(value))
        self._reactivity.notify(self, index)

    def __delitem__(self, index: Any) -> None:
        list.__delitem__(self, index)
        self._reactivity.notify(self, index)

    def __iadd__(self, other: Iterable[Any]) -> ReactiveList:  # type: ignore[override]
        self.extend(other)
        return self

    def __imul__(self, count: int) -> ReactiveList:  # type: ignore[override]
        list.__imul__(self, count)
        self._reactivity.notify(self, None)
        return self

    def append(self, value: Any) -> None:
        list.append(self, self._reactivity.observe(value))
        self._reactivity.notify(self, len(self) - 1)

    def extend(self, values: Iterable[Any]) -> None:
        items = self._observe_all(values)
        if not items:
            return
        list.extend(self, items)
        self._reactivity.notify(self, None)

    def insert(self, index: Any, value: Any) -> None:
        list.insert(self, index, self._reactivity.observe(value))
        self._reactivity.notify(self, index)

    def pop(self, index: Any = -1) -> Any:
        value = list.pop(self, index)
        self._reactivity.notify(self, index)
        return value

    def remove(self, value: Any) -> None:
        list.remove(self, value)
        self._reactivity.notify(self, None)

    def clear(self) -> None:
        if not self:
            return
        list.clear(self)
        self._reactivity.notify(self, None)

    def sort(self, *args: Any, **kwargs: Any) -> None:
        list.sort(self, *args, **kwargs)
        self._reactivity.notify(self, None)

    def reverse(self) -> None:
        list.reverse(self)
        self._reactivity.notify(self, None)

    def __copy__(self) -> list[Any]:
        return list(self)

    def __deepcopy__(self, memo: dict[int, Any]) -> list[Any]:
        return [copy.deepcopy(item, memo) for item in self]

    def __reduce__(self) -> tuple[Any, ...]:
        return (list, (to_raw(self),))


class Computed(Generic[T]):
    """A derived value cached until the provider's version moves on."""

    __slots__ = ("_fn", "_reactivity", "_value", "_version")

    def __init__(self, reactivity: Reactivity, fn: Callable[[], T]) -> None:
        self._reactivity = reactivity
        self._fn = fn
        self._version = -1
        self._value: T | None = None

    @property
    def value(self) -> T:
        current = self._reactivity.version
        if self._version != current:
            self._value = self._fn()
            self._version = current
        return self._value  # type: ignore[return-value]

    @property
    def dirty(self) -> bool:
        return self._version != self._reactivity.version


class Watcher:
    """Re-evaluates *fn* on each flush and calls back when the result changed.

    A shallow watcher notices a replaced value and changes to its direct
    keys or items. A deep watcher also notices changes nested further down.
    """

    def __init__(
        self,
        fn: Callable[[], Any],
        callback: WatchCallback,
        *,
        deep: bool = False,
        immediate: bool = False,
    ) -> None:
        self._fn = fn
        self._callback = callback
        self._deep = deep
        self.active = True
        self._value = fn()
        self._snapshot = self._take(self._value)
        if immediate:
            callback(self._value, None)

    def _take(self, value: Any) -> Any:
        return to_raw(value) if self._deep else _shallow(value)

    def run(self) -> None:
        if not self.active:
            return
        value = self._fn()
        snapshot = self._take(value)
        if snapshot == self._snapshot:
            return
        old = self._value
        self._value = value
        self._snapshot = snapshot
        self._callback(value, old)

    def teardown(self) -> None:
        self.active = False


class Reactivity:
    """Default synchronous reactivity provider.

    Every write bumps a version counter, runs the write listeners
    immediately and then flushes watchers, unless a :meth:`batch` is
    open, in which case watchers flush once when the outermost batch
    closes.
    """

    def __init__(self, *, max_flush: int = 100) -> None:
        self._version = 0
        self._max_flush = max_flush
        self._write_listeners: list[WriteListener] = []
        self._watchers: list[Watcher] = []
        self._batch_depth = 0
        self._dirty = False
        self._flushing = False

    @property
    def version(self) -> int:
        return self._version

    def observe(self, value: Any) -> Any:
        if isinstance(value, (ReactiveDict, ReactiveList)) and value._reactivity is self:
            return value
        if isinstance(value, dict):
            return ReactiveDict(value, self)
        if isinstance(value, list):
            return ReactiveList(value, self)
        return value

    def is_reactive(self, value: Any) -> bool:
        return isinstance(value, (ReactiveDict, ReactiveList)) and value._reactivity is self

    def set(self, target: Any, key: Any, value: Any) -> Any:
        """Assign ``target[key] = value`` so the new value is observed from creation."""
        observed = self.observe(value)
        target[key] = observed
        if not self.is_reactive(target):
            self.notify(target, key)
        return observed

    def delete(self, target: Any, key: Any) -> None:
        if key not in target:
            return
        del target[key]
        if not self.is_reactive(target):
            self.notify(target, key)

    def computed(self, fn: Callable[[], T]) -> Computed[T]:
        return Computed(self, fn)

    def watch(
        self,
        fn: Callable[[], Any],
        callback: WatchCallback,
        *,
        deep: bool = False,
        immediate: bool = False,
    ) -> Callable[[], None]:
        watcher = Watcher(fn, callback, deep=deep, immediate=immediate)
        self._watchers.append(watcher)

        def unwatch() -> None:
            watcher.teardown()
            with contextlib.suppress(ValueError):
                self._watchers.remove(watcher)

        return unwatch

    def on_write(self, listener: WriteListener) -> Callable[[], None]:
        self._write_listeners.append(listener)

        def remove() -> None:
            with contextlib.suppress(ValueError):
                self._write_listeners.remove(listener)

        return remove

    def notify(self, target: Any, key: Any) -> None:
        self._version += 1
        self._dirty = True
        for listener in list(self._write_listeners):
            listener(target, key)
        self.flush()

    def trigger(self) -> None:
        """Invalidate every computed value and re-run every watcher."""
        self._version += 1
        self._dirty = True
        self.flush()

    @contextlib.contextmanager
    def batch(self) -> Iterator[None]:
        self._batch_depth += 1
        try:
            yield
        finally:
            self._batch_depth -= 1
        self.flush()

    def flush(self) -> None:
        if self._flushing or self._batch_depth:
            return
        self._flushing = True
        try:
            rounds = 0
            while self._dirty:
                rounds += 1
                if rounds > self._max_flush:
                    _logger.error(
                        "possible infinite update loop in watcher callbacks; stopped after %d rounds",
                        self._max_flush,
                    )
                    self._dirty = False
                    break
                self._dirty = False
                for watcher in list(self._watchers):
                    try:
                        watcher.run()
                    except Exception:
                        _logger.error("watcher callback failed", exc_info=True)
        finally:
            self._flushing = False
