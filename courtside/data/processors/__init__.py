"""Data processors - integrity checks applied before derivation."""

from .validate import (
    ValidationResult,
    BetValidator,
    MISSING_MATCH,
    INVALID_ODDS,
    INVALID_PROBABILITY,
)

__all__ = [
    "ValidationResult",
    "BetValidator",
    "MISSING_MATCH",
    "INVALID_ODDS",
    "INVALID_PROBABILITY",
]
