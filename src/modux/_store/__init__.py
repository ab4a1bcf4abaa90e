"""Store internals: install walk, local contexts, subscribers and strict mode.

These modules keep ``store.py`` small without changing the public API.
"""

from modux._store.context import ActionContext, GetterTree, LocalContext, LocalGetters
from modux._store.install import Registry, build_registry, install_module
from modux._store.strict import StrictModeGuard
from modux._store.subscribers import ActionSubscriber, SubscriberRegistry

__all__ = [
    "ActionContext",
    "ActionSubscriber",
    "GetterTree",
    "LocalContext",
    "LocalGetters",
    "Registry",
    "StrictModeGuard",
    "SubscriberRegistry",
    "build_registry",
    "install_module",
]
