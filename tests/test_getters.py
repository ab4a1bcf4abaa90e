from __future__ import annotations

import logging
from typing import Any

import pytest

from modux import Store


def _increment(state: Any, payload: Any = None) -> None:
    state["count"] += 1 if payload is None else payload


def test_getters_are_memoized_until_state_changes() -> None:
    calls = {"n": 0}

    def doubled(state: Any) -> int:
        calls["n"] += 1
        return state["count"] * 2

    store = Store({"state": {"count": 1}, "getters": {"doubled": doubled}, "mutations": {"increment": _increment}})

    assert store.getters["doubled"] == 2
    assert store.getters["doubled"] == 2
    assert calls["n"] == 1

    store.commit("increment")

    assert store.getters["doubled"] == 4
    assert calls["n"] == 2


def test_getter_receives_local_and_root_views() -> None:
    def summary(state: Any, getters: Any, root_state: Any, root_getters: Any) -> str:
        return f"{root_state['owner']}:{state['count']}:{getters['double']}:{root_getters['label']}"

    store = Store(
        {
            "state": {"owner": "ada"},
            "getters": {"label": lambda state: state["owner"].upper()},
            "modules": {
                "stats": {
                    "namespaced": True,
                    "state": {"count": 3},
                    "getters": {"double": lambda state: state["count"] * 2, "summary": summary},
                },
            },
        }
    )

    assert store.getters["stats/summary"] == "ada:3:6:ADA"


def test_non_namespaced_child_inherits_parent_prefix() -> None:
    store = Store(
        {
            "modules": {
                "a": {
                    "namespaced": True,
                    "modules": {
                        "b": {
                            "namespaced": False,
                            "state": {"count": 0},
                            "mutations": {"m": _increment},
                            "getters": {"g": lambda state: state["count"]},
                        },
                    },
                },
            },
        }
    )

    assert "a/m" in store._registry.mutations  # noqa: SLF001
    assert "m" not in store._registry.mutations  # noqa: SLF001

    store.commit("a/m", 4)

    assert store.state["a"]["b"]["count"] == 4
    assert store.getters["a/g"] == 4


def test_duplicate_getter_keeps_first_registration(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.ERROR, logger="modux._store.install"):
        store = Store(
            {
                "modules": {
                    "first": {"getters": {"g": lambda state: "first"}},
                    "second": {"getters": {"g": lambda state: "second"}},
                },
            }
        )

    assert "duplicate getter key: g" in caplog.text
    assert store.getters["g"] == "first"


def test_local_getters_strip_namespace_prefix() -> None:
    store = Store(
        {
            "getters": {"top": lambda state: "top"},
            "modules": {
                "ns": {
                    "namespaced": True,
                    "state": {"value": 2},
                    "getters": {"value": lambda state: state["value"], "other": lambda state: "other"},
                },
            },
        }
    )
    context = store._modules.get(["ns"]).context  # noqa: SLF001
    assert context is not None

    local = context.getters
    assert sorted(local) == ["other", "value"]
    assert len(local) == 2
    assert "value" in local
    assert "top" not in local
    assert local["value"] == 2
    with pytest.raises(KeyError):
        local["top"]


def test_root_context_getters_are_the_store_getters() -> None:
    store = Store({"getters": {"top": lambda state: "top"}})
    context = store._modules.root.context  # noqa: SLF001
    assert context is not None

    assert context.getters is store.getters
    assert context.commit == store.commit


def test_getter_tree_is_read_only_mapping() -> None:
    store = Store({"state": {"n": 1}, "getters": {"n": lambda state: state["n"]}})

    assert dict(store.getters) == {"n": 1}
    assert "n" in store.getters
    with pytest.raises(KeyError):
        store.getters["missing"]
    with pytest.raises(TypeError):
        store.getters["n"] = 2  # type: ignore[index]


def test_module_by_namespace() -> None:
    store = Store({"modules": {"a": {"namespaced": True, "modules": {"b": {"namespaced": True}}}}})

    assert store.module_by_namespace("a/") is store._modules.get(["a"])  # noqa: SLF001
    assert store.module_by_namespace("a/b") is store._modules.get(["a", "b"])  # noqa: SLF001
    assert store.module_by_namespace("missing/") is None
