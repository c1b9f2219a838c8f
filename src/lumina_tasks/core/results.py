# src/lumina_tasks/core/results.py

"""
Result type for enrichment calls.

Every enrichment operation returns either `Success(value)` or `Unavailable(reason)`
instead of raising. Callers branch on the type and fall back to a deterministic
default when the service could not help.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeAlias, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Success(Generic[T]):
    value: T


@dataclass(frozen=True, slots=True)
class Unavailable:
    """The enrichment service failed (network, quota, malformed output, bad input)."""

    reason: str = "unavailable"


EnrichmentResult: TypeAlias = Success[T] | Unavailable


def is_success(result: EnrichmentResult[T]) -> bool:
    return isinstance(result, Success)


def value_or(result: EnrichmentResult[T], default: T) -> T:
    if isinstance(result, Success):
        return result.value
    return default
