"""
Result values for the extraction pipeline stages.

A stage returns Ok(value) or Err(error) instead of raising. attempt()
converts an exception-raising call into a Result, and fall_through()
runs producers in order until one succeeds. A chain whose last producer
cannot fail therefore cannot fail as a whole, and that is visible from
the types at the call site.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value

    def map(self, fn: Callable[[T], U]) -> Result[U]:
        return attempt(fn, self.value)


@dataclass(frozen=True)
class Err:
    error: Exception
    stage: str = ""

    @property
    def ok(self) -> bool:
        return False

    def unwrap(self):
        raise self.error

    def map(self, fn: Callable) -> Err:
        return self


Result = Ok[T] | Err


def attempt(fn: Callable[..., T], *args, stage: str = "", **kwargs) -> Result[T]:
    """Call ``fn`` and capture any exception as Err."""
    try:
        return Ok(fn(*args, **kwargs))
    except Exception as e:
        return Err(e, stage or getattr(fn, "__name__", ""))


def fall_through(*producers: Callable[[], Result[T]], on_error: Callable[[Err], None] | None = None) -> Result[T]:
    """
    Return the first Ok produced, trying producers in order.

    ``on_error`` sees every Err that causes a fall-through. When every
    producer fails, the last Err is returned.
    """
    if not producers:
        raise ValueError("fall_through needs at least one producer")

    result: Result[T] = Err(RuntimeError("no producer ran"))
    for producer in producers:
        result = producer()
        if result.ok:
            return result
        if on_error is not None:
            on_error(result)
    return result
