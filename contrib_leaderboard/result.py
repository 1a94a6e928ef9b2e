"""
Stage results for the leaderboard pipeline.

Every stage returns a StageResult instead of swallowing failures, so callers
can tell "empty but valid" apart from "failed, value is a fallback".
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    TRANSPORT = "transport"  # Network unreachable, non-2xx status
    RATE_LIMITED = "rate_limited"  # HTTP 403/429 from the API
    DATA_SHAPE = "data_shape"  # Malformed payload or input
    STORAGE = "storage"  # Persistent cache unavailable


@dataclass(frozen=True)
class StageResult(Generic[T]):
    """
    Outcome of one pipeline stage.

    `value` is always usable: on failure it holds whatever partial or empty
    value the stage could still produce. `partial` marks a failure after
    some input was already received.
    """

    value: T
    error: ErrorKind | None = None
    message: str = ""
    partial: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "StageResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, value: T, error: ErrorKind, message: str = "", partial: bool = False) -> "StageResult[T]":
        return cls(value=value, error=error, message=message, partial=partial)

    def describe(self) -> str:
        if self.ok:
            return "ok"
        return f"{self.error.value}: {self.message}" if self.message else self.error.value
