"""Explicit best-effort folding of external fetches.

Every call to an external dependency (token list, prices, node resources,
lending positions, market data) is captured into a :class:`FetchResult`.
Aggregation code then folds each result with a declared default, so the
degradation policy lives in one place instead of scattered ``try`` blocks.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Generic, TypeVar

from aptomizer.core.telemetry import record_degraded_fetch

logger = logging.getLogger(__name__)

T = TypeVar("T")


class FetchError(RuntimeError):
    """Raised when an external dependency cannot deliver a data point."""

    def __init__(self, source: str, message: str, *, key: str | None = None) -> None:
        super().__init__(message)
        self.source = source
        self.key = key

    def describe(self) -> str:
        target = f"{self.source}[{self.key}]" if self.key else self.source
        return f"{target}: {self}"


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    value: T | None = None
    error: FetchError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "FetchResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: FetchError) -> "FetchResult[T]":
        return cls(error=error)


async def capture(source: str, awaitable: Awaitable[T], *, key: str | None = None) -> FetchResult[T]:
    """Await an external call and capture its outcome instead of raising."""

    try:
        return FetchResult.success(await awaitable)
    except FetchError as exc:
        return FetchResult.failure(exc)
    except Exception as exc:  # best-effort boundary: any dependency failure degrades
        return FetchResult.failure(FetchError(source, str(exc) or exc.__class__.__name__, key=key))


def fold(result: FetchResult[T], default: T) -> T:
    """Return the fetched value, or log and count the failure and return ``default``."""

    if result.ok:
        return result.value  # type: ignore[return-value]
    error = result.error
    if error is None:
        raise RuntimeError("FetchResult carries neither a value nor an error")
    logger.warning("Degraded fetch from %s, using default %r", error.describe(), default)
    record_degraded_fetch(error.source)
    return default


__all__ = ["FetchError", "FetchResult", "capture", "fold"]
