"""
Kelly Criterion Staking
=======================

f* = (b*p - q) / b   where b = odds - 1, p = prob, q = 1 - p

The fraction is clamped to [0, 1]: a negative-edge bet gets no stake
rather than a short position, and a stake never exceeds the bankroll.
Stakes are always sized from the caller's current bankroll.
"""

from typing import Optional
import logging
import math

from ..data.schemas import RawValueBet

logger = logging.getLogger(__name__)


def kelly_fraction(prob: float, odds: float) -> float:
    """
    Calculate full Kelly fraction.
    
    Returns:
        Fraction of bankroll to bet, clamped to [0, 1]. Inputs that
        make the formula undefined (odds <= 1, prob outside [0, 1])
        return 0.0.
    """
    if not (0.0 <= prob <= 1.0) or not odds > 1.0 or math.isinf(odds):
        return 0.0
    
    b = odds - 1
    p = prob
    q = 1 - p
    
    kelly = (b * p - q) / b
    
    return min(1.0, max(0.0, kelly))


def resolve_kelly(raw: RawValueBet, ev: float) -> float:
    """
    Kelly fraction for a row: the stored value when usable, else derived.
    
    A stored fraction may be a fractional-Kelly figure from upstream, so
    it is kept as long as it is finite; it is still clamped to [0, 1] and
    forced to 0 for non-positive EV.
    """
    if ev <= 0:
        return 0.0
    
    stored = raw.kelly_fraction
    if stored is not None and math.isfinite(stored):
        return min(1.0, max(0.0, stored))
    
    return kelly_fraction(raw.prob, raw.odds)


def stake_amount(bankroll: Optional[float], stake_pct: float) -> float:
    """Absolute stake for a percentage of bankroll. Bad bankrolls stake 0."""
    if bankroll is None or not math.isfinite(bankroll) or bankroll <= 0:
        return 0.0
    return bankroll * stake_pct / 100


def expected_profit(stake: float, ev_pct: float) -> float:
    """Expected profit of a stake at the given EV percentage."""
    return stake * ev_pct / 100
