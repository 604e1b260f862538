"""
Expected Value (EV) Calculator
==============================

The core formula: EV = probability * odds - 1

EV is the fractional return on a unit stake. The store also carries a
precomputed `ev` per row; it is never trusted over the recomputed value,
only compared against it as a data-quality signal.
"""

from typing import Optional
import logging
import math

logger = logging.getLogger(__name__)

# Max |stored - recomputed| before a stored EV is reported as divergent
EV_TOLERANCE = 1e-4


def calculate_ev(prob: float, odds: float) -> float:
    """
    Basic EV formula: EV = p * odds - 1
    
    Args:
        prob: Model probability (0-1)
        odds: Decimal odds (e.g., 2.5)
    
    Returns:
        Expected value (-1 to infinity). Invalid inputs return -1.0.
    """
    if not (0.0 <= prob <= 1.0):
        return -1.0
    if not odds > 1.0 or math.isinf(odds):
        return -1.0
    return prob * odds - 1.0


def ev_diverges(
    stored_ev: Optional[float],
    prob: float,
    odds: float,
    tolerance: float = EV_TOLERANCE,
) -> bool:
    """True when a stored EV disagrees with prob * odds - 1."""
    if stored_ev is None:
        return False
    if not math.isfinite(stored_ev):
        return True
    return abs(stored_ev - calculate_ev(prob, odds)) > tolerance
