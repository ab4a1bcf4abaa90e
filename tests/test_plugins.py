from __future__ import annotations

import logging
from typing import Any

import pytest

from modux import EventHook, MutationRecord, Store, devtool_plugin, logger_plugin


def _login(state: Any, payload: Any) -> None:
    state["user"] = payload["user"]


def _make_definition() -> dict[str, Any]:
    return {
        "state": {"user": None},
        "mutations": {"login": _login},
        "actions": {"noop": lambda _context: None},
    }


def test_plugins_run_in_order_after_install() -> None:
    order: list[str] = []

    def first(store: Store) -> None:
        order.append(f"first:{'login' in store._registry.mutations}")  # noqa: SLF001

    def second(_store: Store) -> None:
        order.append("second")

    Store(_make_definition(), plugins=[first, second])

    assert order == ["first:True", "second"]


def test_devtool_plugin_reports_init_and_mutations() -> None:
    hook = EventHook()
    store = Store(_make_definition(), plugins=[devtool_plugin(hook)])

    store.commit("login", {"user": "ada"})

    assert store.devtool_hook is hook
    assert hook.events("modux:init") == [(store,)]
    mutations = hook.events("modux:mutation")
    assert len(mutations) == 1
    record, state = mutations[0]
    assert record == MutationRecord(type="login", payload={"user": "ada"})
    assert state is store.state


def test_devtool_travel_replaces_state() -> None:
    hook = EventHook()
    store = Store(_make_definition(), plugins=[devtool_plugin(hook)])

    hook.emit("modux:travel-to-state", {"user": "grace"})

    assert store.state == {"user": "grace"}


def test_devtools_option_attaches_default_hook() -> None:
    store = Store(_make_definition(), devtools=True)

    assert isinstance(store.devtool_hook, EventHook)
    assert store.devtool_hook.events("modux:init") == [(store,)]


def test_explicit_hook_wins_over_devtools_option() -> None:
    hook = EventHook()
    store = Store(_make_definition(), plugins=[devtool_plugin(hook)], devtools=True)

    assert store.devtool_hook is hook


def test_event_hook_history_is_bounded_and_handler_errors_logged(caplog: pytest.LogCaptureFixture) -> None:
    hook = EventHook(history=2)

    def broken(*_args: Any) -> None:
        raise RuntimeError("boom")

    hook.on("ping", broken)
    with caplog.at_level(logging.WARNING, logger="modux.plugins.devtools"):
        for index in range(3):
            hook.emit("ping", index)

    assert hook.events("ping") == [(1,), (2,)]
    assert "devtools handler for ping failed" in caplog.text


@pytest.mark.asyncio
async def test_logger_plugin_logs_mutations_and_actions(caplog: pytest.LogCaptureFixture) -> None:
    store = Store(_make_definition(), plugins=[logger_plugin()])

    with caplog.at_level(logging.DEBUG, logger="modux.mutations"):
        store.commit("login", {"user": "ada", "password": "hunter2"})
        await store.dispatch("noop")

    assert "mutation login" in caplog.text
    assert "prev={'user': None}" in caplog.text
    assert "next={'user': 'ada'}" in caplog.text
    assert "hunter2" not in caplog.text
    assert "action noop" in caplog.text


def test_logger_plugin_skips_work_when_level_disabled(caplog: pytest.LogCaptureFixture) -> None:
    logger = logging.getLogger("modux.tests.quiet")
    store = Store(_make_definition(), plugins=[logger_plugin(logger, log_actions=False)])

    with caplog.at_level(logging.INFO, logger="modux.tests.quiet"):
        store.commit("login", {"user": "ada"})

    assert caplog.records == []
