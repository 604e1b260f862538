"""
Data schemas package.

Re-exports all schema classes for convenient importing:
    from courtside.data.schemas import Match, Prediction, RawValueBet
"""

from .match import (
    Surface,
    Match,
    UNKNOWN_TOURNAMENT,
)

from .prediction import (
    Prediction,
    RawValueBet,
    PredictionView,
    DEFAULT_BOOKMAKER,
    parse_rows,
)


__all__ = [
    # Match schemas
    "Surface",
    "Match",
    "UNKNOWN_TOURNAMENT",
    # Prediction schemas
    "Prediction",
    "RawValueBet",
    "PredictionView",
    "DEFAULT_BOOKMAKER",
    "parse_rows",
]
