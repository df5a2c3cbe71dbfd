"""Success/error result returned by every restaurant service operation."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from restodir.constants.errors import ErrorKind, get_error_message
from restodir.restaurants.exceptions import RestaurantServiceError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or a single error kind, never both."""

    value: Optional[T] = None
    error: Optional[ErrorKind] = None
    cause: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: ErrorKind, cause: Optional[BaseException] = None) -> "Result[T]":
        return cls(error=error, cause=cause)

    @property
    def message(self) -> Optional[str]:
        return get_error_message(self.error) if self.error is not None else None

    def unwrap(self) -> T:
        """Return the value, raising if the result is a failure."""
        if self.error is not None:
            raise RestaurantServiceError(self.error) from self.cause
        return self.value  # type: ignore[return-value]
