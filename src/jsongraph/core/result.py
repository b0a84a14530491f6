"""
Result Type Implementation.

Graph lookups that can legitimately miss (an unknown document, a parent path
that was never materialized, a key that is not in the parent payload) return
an explicit Ok/Err value instead of raising, so callers decide how to
surface the failure and the store is never left half-mutated.
"""

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")
U = TypeVar("U")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """A successful computation carrying its value."""
    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value


@dataclass(frozen=True)
class Err(Generic[E]):
    """A failed computation carrying a structured error value."""
    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self):
        raise ValueError(f"Called unwrap on Err: {self.error}")

    def unwrap_or(self, default):
        return default


Result = Union[Ok[T], Err[E]]


def map_ok(result: Result[T, E], func: Callable[[T], U]) -> Result[U, E]:
    """Apply ``func`` to the contained value if Ok, otherwise pass the Err through."""
    if isinstance(result, Ok):
        return Ok(func(result.value))
    return result  # type: ignore
