"""Store configuration for modux."""

from __future__ import annotations

import dataclasses
import os
from typing import Any


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class StoreConfig:
    """Store configuration.

    Parameters
    ----------
    strict : bool
        Report any state write that happens outside a mutation handler.
    devtools : bool
        Attach the default in-process devtools hook on construction.
    debug : bool
        Enable usage assertions (invalid paths, non-string types, strict
        mode violations, direct ``state`` assignment). Defaults to
        ``__debug__`` so that ``python -O`` behaves like a production
        build and skips the checks.
    max_watcher_flush : int
        Upper bound on consecutive watcher flush rounds before the
        reactivity layer assumes an infinite update loop and stops.
    """

    strict: bool = False
    devtools: bool = False
    debug: bool = __debug__
    max_watcher_flush: int = 100

    @classmethod
    def from_env(cls, **overrides: Any) -> StoreConfig:
        """Create configuration from environment variables.

        Reads the optional ``MODUX_STRICT``, ``MODUX_DEVTOOLS``,
        ``MODUX_DEBUG`` and ``MODUX_MAX_WATCHER_FLUSH`` variables.
        Explicit keyword arguments override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        StoreConfig
            Populated configuration.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        if "strict" not in overrides:
            config_kwargs["strict"] = _env_bool(env.get("MODUX_STRICT"), False)

        if "devtools" not in overrides:
            config_kwargs["devtools"] = _env_bool(env.get("MODUX_DEVTOOLS"), False)

        if "debug" not in overrides:
            config_kwargs["debug"] = _env_bool(env.get("MODUX_DEBUG"), __debug__)

        flush_env = env.get("MODUX_MAX_WATCHER_FLUSH")
        if flush_env is not None and "max_watcher_flush" not in overrides:
            config_kwargs["max_watcher_flush"] = int(flush_env)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
