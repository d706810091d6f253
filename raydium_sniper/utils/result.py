"""
Tagged results for external calls.

HTTP clients return a ``FetchResult`` instead of raising, so callers can
tell a transient outage (worth waiting for) from a permanent answer.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class Outcome(str, Enum):
    OK = "OK"
    TRANSIENT = "TRANSIENT"
    FATAL = "FATAL"


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    outcome: Outcome
    value: T | None = None
    reason: str = ""

    @classmethod
    def ok(cls, value: T) -> "FetchResult[T]":
        return cls(Outcome.OK, value=value)

    @classmethod
    def transient(cls, reason: str) -> "FetchResult[Any]":
        return cls(Outcome.TRANSIENT, reason=reason)

    @classmethod
    def fatal(cls, reason: str) -> "FetchResult[Any]":
        return cls(Outcome.FATAL, reason=reason)

    @property
    def is_ok(self) -> bool:
        return self.outcome is Outcome.OK


def classify_status(status: int) -> Outcome:
    """Map an HTTP status code onto the result taxonomy."""
    if 200 <= status < 300:
        return Outcome.OK
    if status == 429 or status >= 500:
        return Outcome.TRANSIENT
    return Outcome.FATAL
