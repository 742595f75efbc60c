# nfl_stats/result.py
"""
Result types threaded through every fallible pipeline stage.

Stages return Ok(value) or Err(error) instead of raising, so the reason a
branch degraded to partial data survives long enough to be logged by the
orchestration layer.

Error variants:
  - FetchFailure: network / timeout / non-2xx from an external source
  - TableNotFound: expected markup structure absent
  - Malformed: payload present but not in the expected shape

Exceptions in this module are reserved for the caller boundary (HTTP layer).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, Sequence, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful stage outcome."""
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err(Generic[E]):
    """Failed stage outcome carrying a typed error variant."""
    error: E

    @property
    def ok(self) -> bool:
        return False


Result = Union[Ok[T], Err[E]]


@dataclass(frozen=True)
class FetchFailure:
    """An outbound request that did not produce a 2xx payload."""
    url: str
    status: Optional[int] = None  # None => network-level failure (DNS, timeout, reset)
    reason: str = ""

    @property
    def retryable(self) -> bool:
        """Network failures, 5xx and 429 are worth retrying; other 4xx are terminal."""
        if self.status is None:
            return True
        return self.status == 429 or 500 <= self.status <= 599

    def __str__(self) -> str:
        status = self.status if self.status is not None else "network"
        return f"fetch failed ({status}) for {self.url}: {self.reason}"


@dataclass(frozen=True)
class TableNotFound:
    """None of the candidate table identifiers were present in the document."""
    candidates: Sequence[str]

    def __str__(self) -> str:
        return f"no table matching {list(self.candidates)}"


@dataclass(frozen=True)
class Malformed:
    """A payload that decoded but does not match the expected structure."""
    source: str
    reason: str

    def __str__(self) -> str:
        return f"malformed {self.source}: {self.reason}"


def unwrap_or(result: Result, default):
    """Return the Ok value, or default for any Err."""
    return result.value if isinstance(result, Ok) else default


class StatsError(Exception):
    """Base class for errors surfaced to callers of the handlers."""
    code = "internal_error"
    status = 500


class InvalidInput(StatsError, ValueError):
    """Malformed caller input (bad week, bad game id, unknown query value)."""
    code = "validation_error"
    status = 400


class GameNotFound(StatsError, LookupError):
    """The requested game id is not on the schedule for its week."""
    code = "game_not_found"
    status = 404


class SourceUnavailable(StatsError):
    """Every upstream source failed and no cached fallback exists."""
    code = "source_unavailable"
    status = 503
