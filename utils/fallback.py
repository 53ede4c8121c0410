"""
utils/fallback.py — Computed vs. defaulted outcomes
====================================================
Every analysis function in this project is *total*: it returns a value for
empty, short, flat or NaN-ridden input instead of raising.  When it has to
substitute a documented default, the `*_estimate` variant of the function
returns an `Estimate` carrying the reason, so tests and the session-end
report can tell a measured value from a placeholder.

    est = estimate_rmssd(rr)
    if est.used_default:
        ...  # est.reason is a FallbackReason
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class FallbackReason(str, Enum):
    """Why a default was used instead of a computed value."""
    INSUFFICIENT_DATA = "insufficient_data"   # buffer shorter than required
    DEGENERATE_SIGNAL = "degenerate_signal"   # flat / zero-variance input
    INVALID_NUMERIC = "invalid_numeric"       # NaN, inf or out-of-range result
    SYNTHETIC_DATA = "synthetic_data"         # fabricated RR series at session end


@dataclass(frozen=True)
class Estimate(Generic[T]):
    """A value plus the reason it was defaulted (None when computed)."""
    value: T
    reason: FallbackReason | None = None

    @property
    def used_default(self) -> bool:
        return self.reason is not None

    @classmethod
    def computed(cls, value: T) -> "Estimate[T]":
        return cls(value)

    @classmethod
    def default(cls, value: T, reason: FallbackReason) -> "Estimate[T]":
        return cls(value, reason)
