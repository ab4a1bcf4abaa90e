"""modux - centralized, module-composable state container."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("modux")
except PackageNotFoundError:
    __version__ = "0+local"
from modux._store import ActionContext, ActionSubscriber, LocalContext
from modux.config import StoreConfig
from modux.exceptions import (
    InvalidModuleError,
    InvalidPathError,
    InvalidTypeError,
    ModuxError,
    StoreAssertionError,
    StrictModeViolation,
)
from modux.models import (
    ActionRecord,
    ActionSpec,
    CommitOptions,
    DispatchOptions,
    ModuleDefinition,
    MutationRecord,
    RegisterOptions,
)
from modux.module import Module, ModuleTree
from modux.plugins import DevtoolHook, EventHook, devtool_plugin, logger_plugin
from modux.reactivity import Reactivity, ReactivityProvider, to_raw
from modux.store import Store

__all__ = [
    "__version__",
    "ActionContext",
    "ActionRecord",
    "ActionSpec",
    "ActionSubscriber",
    "CommitOptions",
    "DevtoolHook",
    "DispatchOptions",
    "EventHook",
    "InvalidModuleError",
    "InvalidPathError",
    "InvalidTypeError",
    "LocalContext",
    "Module",
    "ModuleDefinition",
    "ModuleTree",
    "ModuxError",
    "MutationRecord",
    "Reactivity",
    "ReactivityProvider",
    "RegisterOptions",
    "Store",
    "StoreConfig",
    "StoreAssertionError",
    "StrictModeViolation",
    "devtool_plugin",
    "logger_plugin",
    "to_raw",
]
