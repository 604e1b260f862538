"""
Derived bets and their ordering.
"""

from dataclasses import dataclass, asdict
from enum import Enum
from typing import List, Sequence, Union

# Decimal places kept on percentage figures; float noise beyond this is dropped
PCT_PRECISION = 9


@dataclass
class DerivedBet:
    """A value bet annotated with stake sizing for the current bankroll."""
    event_key: str
    match_label: str
    tournament: str
    backed_player: str
    odds: float
    model_probability_pct: float
    ev_pct: float
    bookmaker: str
    kelly_fraction: float
    stake_pct: float
    stake_amount: float
    expected_profit: float
    ev_diverged: bool = False  # stored EV disagreed with prob * odds - 1
    
    @property
    def is_value(self) -> bool:
        return self.ev_pct > 0
    
    def to_dict(self) -> dict:
        return asdict(self)


class SortField(str, Enum):
    """Numeric fields a bet list can be ordered by."""
    ODDS = "odds"
    MODEL_PROBABILITY = "model_probability_pct"
    EV = "ev_pct"
    STAKE = "stake_amount"
    EXPECTED_PROFIT = "expected_profit"


def sort_bets(
    bets: Sequence[DerivedBet],
    field: Union[SortField, str] = SortField.EV,
    descending: bool = True,
) -> List[DerivedBet]:
    """
    Stable sort by one numeric field.
    
    Ties keep their input order in both directions (sorted() preserves
    the relative order of equal keys even with reverse=True). Keys are
    compared at PCT_PRECISION so 0.6 * 2.0 and 0.75 * 1.6 tie.
    """
    attr = SortField(field).value
    return sorted(bets, key=lambda b: round(getattr(b, attr), PCT_PRECISION), reverse=descending)
