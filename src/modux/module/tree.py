"""The module tree: path resolution, namespaces and structural edits."""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from modux.models.definition import ModuleDefinition, parse_definition
from modux.module.module import Module

_logger = logging.getLogger(__name__)


class ModuleTree:
    """Owns the root :class:`Module` and every module registered below it."""

    def __init__(self, raw_root: ModuleDefinition | Mapping[str, Any] | None = None) -> None:
        self.root = self._build(parse_definition(raw_root), (), runtime=False)

    def _build(self, raw: ModuleDefinition, path: tuple[str, ...], *, runtime: bool) -> Module:
        module = Module(raw, runtime=runtime)
        for key, raw_child in raw.modules.items():
            child_path = (*path, key)
            module.add_child(key, self._build(parse_definition(raw_child, path=child_path), child_path, runtime=runtime))
        return module

    def get(self, path: Sequence[str]) -> Module:
        """Resolve *path* to a module; ``KeyError`` when any segment is missing."""
        module = self.root
        for index, key in enumerate(path):
            child = module.get_child(key)
            if child is None:
                raise KeyError("/".join(path[: index + 1]))
            module = child
        return module

    def find(self, path: Sequence[str]) -> Module | None:
        try:
            return self.get(path)
        except KeyError:
            return None

    def get_namespace(self, path: Sequence[str]) -> str:
        """Concatenate ``key + "/"`` for every namespaced module along *path*."""
        module = self.root
        namespace = ""
        for key in path:
            module = module.get_child(key)  # type: ignore[assignment]
            if module is None:
                raise KeyError("/".join(path))
            if module.namespaced:
                namespace += key + "/"
        return namespace

    def register(
        self,
        path: Sequence[str],
        raw: ModuleDefinition | Mapping[str, Any],
        *,
        runtime: bool = True,
    ) -> Module:
        """Build a module from *raw* and attach it under ``path[-1]``.

        An empty *path* replaces the root; callers above this layer reject
        that for runtime registration.
        """
        path = tuple(path)
        module = self._build(parse_definition(raw, path=path), path, runtime=runtime)
        if not path:
            self.root = module
            return module
        parent = self.get(path[:-1])
        parent.add_child(path[-1], module)
        return module

    def unregister(self, path: Sequence[str]) -> Module | None:
        """Detach the module at *path*; a missing module is logged and ignored."""
        path = tuple(path)
        parent = self.find(path[:-1])
        removed = parent.remove_child(path[-1]) if parent is not None else None
        if removed is None:
            _logger.warning("unregister_module: no module registered at %s", "/".join(path))
        return removed

    def is_registered(self, path: Sequence[str]) -> bool:
        return self.find(path) is not None

    def update(self, raw_root: ModuleDefinition | Mapping[str, Any]) -> None:
        """Hot-swap handler maps across the existing tree.

        Keys that exist in *raw_root* but not in the current tree are
        skipped: hot updates never add modules.
        """
        self._update((), self.root, parse_definition(raw_root))

    def _update(self, path: tuple[str, ...], target: Module, raw: ModuleDefinition) -> None:
        target.update(raw)
        for key, raw_child in raw.modules.items():
            child = target.get_child(key)
            child_path = (*path, key)
            if child is None:
                _logger.debug(
                    "hot_update: ignoring new module %s, a full reload is needed to add it",
                    "/".join(child_path),
                )
                continue
            self._update(child_path, child, parse_definition(raw_child, path=child_path))
