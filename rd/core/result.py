"""Result type for explicit error handling.

Every step of a deploy can fail (a remote command, a transfer, a missing
build directory). Instead of raising, steps return ``Ok(value)`` or
``Err(error)`` and the caller decides how to report it.

Usage:
    def allocate(root: str) -> Result[str, DeployError]:
        if exists(root):
            return Err(DeployError(kind="release_exists", message=root))
        return Ok(root)

    match allocate("/srv/app/releases/20260103143022"):
        case Ok(path):
            print(f"Allocated: {path}")
        case Err(error):
            print(f"Error: {error.message}")
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True, slots=True)
class Ok[T]:
    """A successful result carrying ``value``."""

    value: T

    def unwrap_or(self, default: T) -> T:
        return self.value

    def map(self, f: Callable[[T], U]) -> Ok[U]:
        """Apply ``f`` to the contained value."""
        return Ok(f(self.value))

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err[E]:
    """A failed result carrying ``error``."""

    error: E

    def unwrap_or(self, default: T) -> T:
        return default

    def map(self, f: Callable[[T], U]) -> Err[E]:
        """No value to map; returns self."""
        return self

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


type Result[T, E] = Ok[T] | Err[E]
