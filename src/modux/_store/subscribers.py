"""Ordered subscriber lists shared by mutation and action subscriptions."""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from modux.models.records import ActionRecord, MutationRecord

S = TypeVar("S")

MutationSubscriber = Callable[[MutationRecord, Any], None]
ActionHook = Callable[[ActionRecord, Any], None]


@dataclass(frozen=True, slots=True)
class ActionSubscriber:
    """Pair of hooks run around every dispatched action."""

    before: ActionHook | None = None
    after: ActionHook | None = None

    @classmethod
    def coerce(cls, value: ActionSubscriber | ActionHook | Mapping[str, ActionHook]) -> ActionSubscriber:
        """A bare callable subscribes as a ``before`` hook."""
        if isinstance(value, ActionSubscriber):
            return value
        if isinstance(value, Mapping):
            return cls(before=value.get("before"), after=value.get("after"))
        if callable(value):
            return cls(before=value)
        raise TypeError(f"cannot subscribe {type(value).__name__} as an action subscriber")


class SubscriberRegistry(Generic[S]):
    """Identity-deduplicated subscriber list preserving registration order."""

    def __init__(self) -> None:
        self._subscribers: list[S] = []

    def add(self, subscriber: S) -> Callable[[], None]:
        """Register *subscriber*; returns a callable that removes it again."""
        if not self._contains(subscriber):
            self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            for index, existing in enumerate(self._subscribers):
                if existing is subscriber:
                    del self._subscribers[index]
                    return

        return unsubscribe

    def _contains(self, subscriber: S) -> bool:
        return any(existing is subscriber for existing in self._subscribers)

    def __iter__(self) -> Iterator[S]:
        # Snapshot: a subscriber may unsubscribe while being notified.
        return iter(list(self._subscribers))

    def __len__(self) -> int:
        return len(self._subscribers)
