from __future__ import annotations

from collections.abc import Awaitable
from dataclasses import dataclass
from enum import StrEnum
from typing import Generic, TypeVar


T = TypeVar("T")


class ErrorKind(StrEnum):
    invalid_argument = "invalid_argument"
    not_found = "not_found"
    conflict = "conflict"
    store_failure = "store_failure"
    upstream_failure = "upstream_failure"


class MastermindError(Exception):
    """Base error. Every subclass carries an explicit `kind` tag."""

    kind: ErrorKind = ErrorKind.invalid_argument

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidArgument(MastermindError):
    kind = ErrorKind.invalid_argument


class DigitOutOfRange(InvalidArgument):
    def __init__(self, digit: int, *, digit_min: int, digit_max: int) -> None:
        super().__init__(f"Guess digit {digit} is out of range [{digit_min}, {digit_max}].")
        self.digit = digit
        self.digit_min = digit_min
        self.digit_max = digit_max


class NotFound(MastermindError):
    kind = ErrorKind.not_found


class Conflict(MastermindError):
    kind = ErrorKind.conflict


class StoreFailure(MastermindError):
    kind = ErrorKind.store_failure


class UpstreamFailure(MastermindError):
    kind = ErrorKind.upstream_failure


@dataclass(frozen=True, slots=True)
class Result(Generic[T]):
    """Outcome of one operation: exactly one of `value` / `error` is meaningful."""

    value: T | None = None
    error: MastermindError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def kind(self) -> ErrorKind | None:
        return self.error.kind if self.error is not None else None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


async def capture(operation: Awaitable[T]) -> Result[T]:
    """Await `operation` and fold a MastermindError into a Result.

    Anything else (including cancellation) propagates unchanged.
    """

    try:
        return Result(value=await operation)
    except MastermindError as e:
        return Result(error=e)
