from __future__ import annotations

import copy
import logging
import pickle
from typing import Any

import pytest

from modux.reactivity import Reactivity, ReactiveDict, ReactiveList, to_raw


def test_observe_wraps_nested_containers() -> None:
    reactivity = Reactivity()

    state = reactivity.observe({"user": {"tags": ["a"]}, "n": 1})

    assert isinstance(state, ReactiveDict)
    assert isinstance(state["user"], ReactiveDict)
    assert isinstance(state["user"]["tags"], ReactiveList)
    assert reactivity.observe(state) is state
    assert reactivity.observe(3) == 3


def test_assigned_values_are_observed() -> None:
    reactivity = Reactivity()
    state = reactivity.observe({})

    state["items"] = [{"id": 1}]
    state["items"].append({"id": 2})

    assert isinstance(state["items"], ReactiveList)
    assert all(isinstance(item, ReactiveDict) for item in state["items"])


def test_write_listeners_see_each_write() -> None:
    reactivity = Reactivity()
    state = reactivity.observe({"a": 1, "items": []})
    writes: list[Any] = []
    remove = reactivity.on_write(lambda _target, key: writes.append(key))

    state["a"] = 2
    state["items"].append("x")
    del state["a"]
    state.pop("missing", None)
    remove()
    state["b"] = 1

    assert writes == ["a", 0, "a"]


def test_plain_copies_drop_instrumentation() -> None:
    reactivity = Reactivity()
    state = reactivity.observe({"user": {"tags": ["a"]}})

    raw = to_raw(state)
    deep = copy.deepcopy(state)
    restored = pickle.loads(pickle.dumps(state))

    for value in (raw, deep, restored):
        assert value == {"user": {"tags": ["a"]}}
        assert type(value) is dict
        assert type(value["user"]["tags"]) is list
    assert type(copy.copy(state)) is dict


def test_computed_is_cached_until_a_write() -> None:
    reactivity = Reactivity()
    state = reactivity.observe({"n": 2})
    calls = {"n": 0}

    def square() -> int:
        calls["n"] += 1
        return state["n"] ** 2

    value = reactivity.computed(square)

    assert value.value == 4
    assert value.value == 4
    assert calls["n"] == 1
    assert not value.dirty

    state["n"] = 3

    assert value.dirty
    assert value.value == 9
    assert calls["n"] == 2


def test_shallow_watch_ignores_nested_changes_that_deep_watch_sees() -> None:
    reactivity = Reactivity()
    state = reactivity.observe({"user": {"name": "ada", "address": {"city": "London"}}})
    shallow: list[Any] = []
    deep: list[Any] = []
    reactivity.watch(lambda: state["user"], lambda new, _old: shallow.append(to_raw(new)))
    reactivity.watch(lambda: state["user"], lambda new, _old: deep.append(to_raw(new)), deep=True)

    state["user"]["address"]["city"] = "Paris"

    assert shallow == []
    assert deep == [{"name": "ada", "address": {"city": "Paris"}}]

    state["user"]["name"] = "grace"

    assert len(shallow) == 1
    assert len(deep) == 2


def test_watch_immediate_and_unwatch() -> None:
    reactivity = Reactivity()
    state = reactivity.observe({"n": 0})
    seen: list[tuple[Any, Any]] = []

    unwatch = reactivity.watch(lambda: state["n"], lambda new, old: seen.append((new, old)), immediate=True)
    state["n"] = 1
    unwatch()
    state["n"] = 2

    assert seen == [(0, None), (1, 0)]


def test_batch_defers_watchers_until_outermost_exit() -> None:
    reactivity = Reactivity()
    state = reactivity.observe({"n": 0})
    seen: list[tuple[Any, Any]] = []
    reactivity.watch(lambda: state["n"], lambda new, old: seen.append((new, old)))

    with reactivity.batch():
        state["n"] = 1
        with reactivity.batch():
            state["n"] = 2
        assert seen == []

    assert seen == [(2, 0)]


def test_trigger_reruns_watchers_and_computeds() -> None:
    reactivity = Reactivity()
    box = {"n": 1}
    seen: list[Any] = []
    value = reactivity.computed(lambda: box["n"])
    reactivity.watch(lambda: box["n"], lambda new, _old: seen.append(new))
    assert value.value == 1

    # Plain dicts are not observed; trigger forces re-evaluation.
    box["n"] = 5
    assert value.value == 1
    reactivity.trigger()

    assert value.value == 5
    assert seen == [5]


def test_set_and_delete_on_plain_targets_notify() -> None:
    reactivity = Reactivity()
    target: dict[str, Any] = {}
    writes: list[Any] = []
    reactivity.on_write(lambda _target, key: writes.append(key))

    observed = reactivity.set(target, "child", {"x": 1})
    reactivity.delete(target, "child")
    reactivity.delete(target, "child")

    assert isinstance(observed, ReactiveDict)
    assert target == {}
    assert writes == ["child", "child"]


def test_watcher_loop_is_stopped(caplog: pytest.LogCaptureFixture) -> None:
    reactivity = Reactivity(max_flush=5)
    state = reactivity.observe({"n": 0})

    def bump(new: int, _old: int) -> None:
        state["n"] = new + 1

    reactivity.watch(lambda: state["n"], bump)

    with caplog.at_level(logging.ERROR, logger="modux.reactivity"):
        state["n"] = 1

    assert "possible infinite update loop" in caplog.text


def test_failing_watcher_is_logged_and_others_still_run(caplog: pytest.LogCaptureFixture) -> None:
    reactivity = Reactivity()
    state = reactivity.observe({"n": 0})
    seen: list[Any] = []

    def broken(_new: Any, _old: Any) -> None:
        raise RuntimeError("boom")

    reactivity.watch(lambda: state["n"], broken)
    reactivity.watch(lambda: state["n"], lambda new, _old: seen.append(new))

    with caplog.at_level(logging.ERROR, logger="modux.reactivity"):
        state["n"] = 1

    assert seen == [1]
    assert "watcher callback failed" in caplog.text


def test_reactive_containers_require_a_provider() -> None:
    with pytest.raises(TypeError):
        ReactiveDict({"a": 1})
    with pytest.raises(TypeError):
        ReactiveList([1])
