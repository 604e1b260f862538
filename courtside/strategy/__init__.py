"""Courtside Strategy Module - EV, Kelly, filters and the value-bet engine."""

from .ev import calculate_ev, ev_diverges, EV_TOLERANCE
from .kelly import kelly_fraction, resolve_kelly, stake_amount, expected_profit
from .bets import DerivedBet, SortField, sort_bets
from .filters import (
    BetFilters, FilterResult, AlertSettings, AlertFilter,
    bookmaker_matches, normalize_bookmaker,
    MIN_CONFIDENCE_PCT, ALL_BOOKMAKERS, ALERT_PRESETS,
)
from .grouping import GroupBy, confidence_bucket, group_predictions
from .engine import ValueBetEngine, EngineReport, derive_bet, bets_to_frame

__all__ = [
    # EV
    "calculate_ev",
    "ev_diverges",
    "EV_TOLERANCE",
    # Kelly
    "kelly_fraction",
    "resolve_kelly",
    "stake_amount",
    "expected_profit",
    # Bets
    "DerivedBet",
    "SortField",
    "sort_bets",
    # Filters
    "BetFilters",
    "FilterResult",
    "AlertSettings",
    "AlertFilter",
    "bookmaker_matches",
    "normalize_bookmaker",
    "MIN_CONFIDENCE_PCT",
    "ALL_BOOKMAKERS",
    "ALERT_PRESETS",
    # Grouping
    "GroupBy",
    "confidence_bucket",
    "group_predictions",
    # Engine
    "ValueBetEngine",
    "EngineReport",
    "derive_bet",
    "bets_to_frame",
]
