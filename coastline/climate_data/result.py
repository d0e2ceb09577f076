"""
FetchResult - Explicit success/failure for external data calls.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Generic, TypeVar

from ..engine_core.errors import TransientFetchError

T = TypeVar("T")


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """Either a value or the TransientFetchError explaining its absence."""
    value: T | None = None
    error: TransientFetchError | None = None

    @classmethod
    def ok(cls, value: T) -> FetchResult[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: TransientFetchError | str) -> FetchResult[T]:
        if isinstance(error, str):
            error = TransientFetchError(error)
        return cls(error=error)

    @property
    def is_ok(self) -> bool:
        return self.error is None

    def unwrap_or(self, default: T) -> T:
        return self.value if self.is_ok else default
