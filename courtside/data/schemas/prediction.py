"""
Prediction and value-bet row schemas.

These mirror the rows the hosted store returns. Numeric fields on
RawValueBet are deliberately unconstrained: out-of-range odds and
probabilities are excluded by the engine with a reason, not rejected
at parse time.
"""

from __future__ import annotations

from datetime import date
from typing import Optional, List, Tuple, Type, TypeVar, Iterable, Dict, Any
import logging

from pydantic import BaseModel, Field, ValidationError, field_validator

from .match import Surface

logger = logging.getLogger(__name__)

DEFAULT_BOOKMAKER = "Best Available"

ModelT = TypeVar("ModelT", bound=BaseModel)


class Prediction(BaseModel):
    """Model prediction for a single match."""
    
    event_key: str
    model_version: str
    predicted_winner: str
    prob_p1: float
    prob_p2: float
    
    # Diagnostics, not used for staking
    elo_diff_overall: Optional[float] = None
    elo_diff_surface: Optional[float] = None
    
    @field_validator("event_key", mode="before")
    @classmethod
    def coerce_key(cls, v):
        return str(v) if v is not None else v


class RawValueBet(BaseModel):
    """A candidate opportunity as stored upstream."""
    
    event_key: str
    player_name: str
    odds: float
    prob: float
    ev: Optional[float] = None
    bookmaker: str = DEFAULT_BOOKMAKER
    
    # Precomputed upstream against a reference bankroll
    kelly_fraction: Optional[float] = None
    stake_amount: Optional[float] = None
    expected_profit: Optional[float] = None
    
    @field_validator("event_key", mode="before")
    @classmethod
    def coerce_key(cls, v):
        return str(v) if v is not None else v
    
    @field_validator("bookmaker", mode="before")
    @classmethod
    def default_bookmaker(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return DEFAULT_BOOKMAKER
        return v


class PredictionView(BaseModel):
    """One row of the prediction board."""
    
    event_key: str
    match_label: str
    predicted_winner: str
    winner_is_p1: bool
    tournament: str
    surface: Surface
    probability: float = Field(..., description="Model probability of the predicted winner")
    elo_diff: Optional[float] = None
    surface_elo_diff: Optional[float] = None
    event_date: date
    event_time: Optional[str] = None


def parse_rows(model: Type[ModelT], rows: Iterable[Dict[str, Any]]) -> Tuple[List[ModelT], int]:
    """
    Validate raw store rows into schema objects.
    
    Returns:
        (parsed models, number of rejected rows)
    """
    parsed: List[ModelT] = []
    rejected = 0
    for row in rows:
        try:
            parsed.append(model.model_validate(row))
        except ValidationError as e:
            rejected += 1
            logger.debug(f"Rejected {model.__name__} row {row.get('event_key')}: {e.error_count()} errors")
    if rejected:
        logger.info(f"Rejected {rejected} malformed {model.__name__} rows")
    return parsed, rejected
