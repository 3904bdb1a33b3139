"""Result type for explicit error handling at cache boundaries.

Provides Ok and Err variants so recoverable failures (e.g. a corrupt cache
record) are returned as values instead of raised.

Usage:
    result = codec.decode(raw)
    if result.is_ok():
        envelope = result.unwrap()
    else:
        error = result.unwrap_err()
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar, Union, final

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E", bound=Exception)


class UnwrapError(Exception):
    """Raised when unwrap() is called on an Err or unwrap_err() on an Ok."""


@final
@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful result containing a value."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Return the contained value."""
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def unwrap_err(self) -> Exception:
        """Raise UnwrapError since this is not an Err."""
        raise UnwrapError("Called unwrap_err on Ok value")

    def map(self, fn: Callable[[T], U]) -> Ok[U]:
        """Apply fn to the contained value, returning Ok(fn(value))."""
        return Ok(fn(self.value))


@final
@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failed result containing an error."""

    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> object:
        """Raise UnwrapError chained to the contained error."""
        raise UnwrapError(f"Called unwrap on Err value: {self.error}") from self.error

    def unwrap_or(self, default: U) -> U:
        return default

    def unwrap_err(self) -> E:
        """Return the contained error."""
        return self.error

    def map(self, fn: Callable[[object], object]) -> Err[E]:
        """Return self unchanged since this is Err."""
        return self


Result = Union[Ok[T], Err[E]]
