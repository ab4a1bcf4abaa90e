"""Custom exception hierarchy for modux."""

from __future__ import annotations


class ModuxError(Exception):
    """Base exception for all modux errors."""


class StoreAssertionError(ModuxError, AssertionError):
    """A debug-mode assertion about store usage failed.

    Only raised when :attr:`modux.config.StoreConfig.debug` is enabled.
    With debug disabled the offending call proceeds unchecked.
    """


class InvalidPathError(StoreAssertionError):
    """Module path is not a string/sequence, or is empty where a module is required."""


class InvalidTypeError(StoreAssertionError):
    """Mutation or action type is not a string."""


class StrictModeViolation(StoreAssertionError):
    """State was mutated outside a mutation handler.

    Purely diagnostic: the write has already been applied when this is
    raised and is never rolled back.
    """

    def __init__(self, message: str, *, key: object = None) -> None:
        self.key = key
        super().__init__(message)


class InvalidModuleError(ModuxError, ValueError):
    """A raw module definition failed validation."""

    def __init__(self, message: str, *, path: tuple[str, ...] = ()) -> None:
        self.path = path
        super().__init__(message)
