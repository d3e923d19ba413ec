"""Discriminated success/failure values for fallible vault operations.

Expected outcomes (missing note, empty folder, empty query) are plain values
wrapped in :class:`Ok`. Only genuine failures travel as :class:`Err`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, NoReturn, Tuple, Type, TypeVar, Union

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E", bound=BaseException)
F = TypeVar("F", bound=BaseException)


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def map(self, fn: Callable[[T], U]) -> "Ok[U]":
        return Ok(fn(self.value))

    def map_err(self, fn: Callable[[E], F]) -> "Ok[T]":
        return self


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> NoReturn:
        raise self.error

    def unwrap_or(self, default: T) -> T:
        return default

    def map(self, fn: Callable[[T], U]) -> "Err[E]":
        return self

    def map_err(self, fn: Callable[[E], F]) -> "Err[F]":
        return Err(fn(self.error))


Result = Union[Ok[T], Err[E]]


def from_call(
    fn: Callable[..., T],
    *args: object,
    catch: Tuple[Type[E], ...] | Type[E] = Exception,  # type: ignore[assignment]
) -> Result[T, E]:
    """Run ``fn`` and wrap its return value, or the caught exception, in a result."""
    try:
        return Ok(fn(*args))
    except catch as exc:
        return Err(exc)
