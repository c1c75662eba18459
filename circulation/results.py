"""Success-or-failure result type for pure calculations.

Strategies and calculators never raise for business failures; they return
a ``Result`` carrying either a value or a typed ``CirculationError``. The
boundary decides whether to raise (``Result.get()``) or to collect the
failure (``Result.failure``).
"""

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from circulation.errors import CirculationError

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a calculation that may fail with a business error."""

    value: T | None = None
    failure: CirculationError | None = None

    @property
    def succeeded(self) -> bool:
        return self.failure is None

    @property
    def failed(self) -> bool:
        return self.failure is not None

    def get(self) -> T:
        """Return the value, raising the carried failure if there is one."""
        if self.failure is not None:
            raise self.failure
        return self.value

    def map(self, fn: Callable[[T], U]) -> "Result[U]":
        if self.failure is not None:
            return Result(failure=self.failure)
        return Result(value=fn(self.value))

    def then(self, fn: Callable[[T], "Result[U]"]) -> "Result[U]":
        """Chain another calculation that itself returns a Result."""
        if self.failure is not None:
            return Result(failure=self.failure)
        return fn(self.value)


def succeeded(value: T) -> Result[T]:
    return Result(value=value)


def failed(error: CirculationError) -> Result:
    return Result(failure=error)
