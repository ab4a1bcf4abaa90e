"""Strict mode: flag state writes made outside a mutation handler."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from modux.exceptions import StrictModeViolation
from modux.reactivity import ReactivityProvider

_logger = logging.getLogger(__name__)


class StrictModeGuard:
    """Write listener that checks the store's committing flag.

    The check runs after the write has been applied. In debug mode a
    violation raises :class:`~modux.exceptions.StrictModeViolation` to the
    code that performed the write; otherwise nothing happens.
    """

    def __init__(self, is_committing: Callable[[], bool], *, debug: bool) -> None:
        self._is_committing = is_committing
        self._debug = debug
        self._detach: Callable[[], None] | None = None

    @property
    def attached(self) -> bool:
        return self._detach is not None

    def attach(self, reactivity: ReactivityProvider) -> None:
        if self._detach is None:
            self._detach = reactivity.on_write(self._check)

    def detach(self) -> None:
        if self._detach is not None:
            self._detach()
            self._detach = None

    def _check(self, _target: Any, key: Any) -> None:
        if not self._debug or self._is_committing():
            return
        _logger.debug("state write outside mutation handler key=%r", key)
        raise StrictModeViolation("do not mutate store state outside mutation handlers.", key=key)
