"""Module tree primitives."""

from modux.module.module import Module
from modux.module.tree import ModuleTree

__all__ = ["Module", "ModuleTree"]
