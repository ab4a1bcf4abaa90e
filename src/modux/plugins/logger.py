"""Plugin that logs every mutation with the state before and after it."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from modux._redact import redact_for_log
from modux.models.records import ActionRecord, MutationRecord
from modux.reactivity import to_raw

if TYPE_CHECKING:
    from modux.store import Store


def logger_plugin(
    logger: logging.Logger | None = None,
    *,
    level: int = logging.DEBUG,
    log_actions: bool = True,
    transformer: Callable[[Any], Any] = to_raw,
) -> Callable[[Store], None]:
    """Return a plugin logging mutations (and optionally actions) on *logger*.

    State snapshots pass through *transformer* and are redacted before
    they are formatted.
    """
    log = logger or logging.getLogger("modux.mutations")

    def plugin(store: Store) -> None:
        previous: dict[str, Any] = {"state": transformer(store.state)}

        def on_mutation(mutation: MutationRecord, state: Any) -> None:
            if not log.isEnabledFor(level):
                return
            next_state = transformer(state)
            log.log(
                level,
                "mutation %s payload=%s prev=%s next=%s",
                mutation.type,
                redact_for_log(mutation.payload),
                redact_for_log(previous["state"]),
                redact_for_log(next_state),
            )
            previous["state"] = next_state

        store.subscribe(on_mutation)

        if log_actions:

            def on_action(action: ActionRecord, _state: Any) -> None:
                log.log(level, "action %s payload=%s", action.type, redact_for_log(action.payload))

            store.subscribe_action(on_action)

    return plugin
