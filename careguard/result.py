"""
Explicit success/failure values for engine operations.

Expected domain conditions (missing fields, blocked restraints, locked
records, storage failures) are returned as ``Err`` rather than raised.
Exceptions are reserved for programmer errors such as calling
``unwrap()`` on a failure.
"""

from __future__ import annotations

from typing import Any, Callable, Generic, Optional, TypeVar, Union

from pydantic import BaseModel

from careguard.models import ErrorKind

T = TypeVar("T")
U = TypeVar("U")


class EngineError(BaseModel):
    """Failure payload carried by ``Err``."""

    code: ErrorKind
    message: str
    details: Optional[Any] = None


class UnwrapError(Exception):
    """Raised when ``unwrap()`` is called on an ``Err``."""
    pass


class Ok(Generic[T]):
    """Successful result carrying ``value``."""

    __slots__ = ("value",)

    def __init__(self, value: T) -> None:
        self.value = value

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

    def map_err(self, fn: Callable[[EngineError], EngineError]) -> "Ok[T]":
        return self

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Ok) and other.value == self.value

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


class Err:
    """Failed result carrying an ``EngineError``."""

    __slots__ = ("error",)

    def __init__(self, error: EngineError) -> None:
        self.error = error

    @classmethod
    def of(cls, code: ErrorKind, message: str, details: Any = None) -> "Err":
        return cls(EngineError(code=code, message=message, details=details))

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> Any:
        raise UnwrapError(
            f"unwrap() called on Err: {self.error.code.value}: {self.error.message}"
        )

    def unwrap_or(self, default: T) -> T:
        return default

    def map(self, fn: Callable[[Any], Any]) -> "Err":
        return self

    def map_err(self, fn: Callable[[EngineError], EngineError]) -> "Err":
        return Err(fn(self.error))

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Err) and other.error == self.error

    def __repr__(self) -> str:
        return f"Err({self.error.code.value}: {self.error.message!r})"


Result = Union[Ok[T], Err]
