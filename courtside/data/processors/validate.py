"""
Data validation processors.

Detects data-integrity faults in value-bet and prediction rows.
Faulty rows are excluded one at a time; a bad row never fails the batch.
"""

from typing import List, Optional
from dataclasses import dataclass, field
import logging
import math

import numpy as np

from ..schemas import Match, Prediction, RawValueBet

logger = logging.getLogger(__name__)

# Exclusion reasons
MISSING_MATCH = "missing_match"
INVALID_ODDS = "invalid_odds"
INVALID_PROBABILITY = "invalid_probability"


@dataclass
class ValidationResult:
    """Result of data validation."""
    is_valid: bool = True
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    
    def add_error(self, msg: str) -> None:
        self.errors.append(msg)
        self.is_valid = False
    
    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


class BetValidator:
    """
    Integrity checks for raw value-bet rows.
    
    Odds must be a finite payout multiplier strictly above 1.0
    (Kelly divides by odds - 1). Probabilities must be finite and
    within [0, 1].
    """
    
    MIN_ODDS = 1.0  # exclusive
    PROB_SUM_TOLERANCE = 0.01
    
    @staticmethod
    def is_finite(value: Optional[float]) -> bool:
        return value is not None and bool(np.isfinite(value))
    
    @classmethod
    def valid_odds(cls, odds: Optional[float]) -> bool:
        return cls.is_finite(odds) and odds > cls.MIN_ODDS
    
    @classmethod
    def valid_probability(cls, prob: Optional[float]) -> bool:
        return cls.is_finite(prob) and 0.0 <= prob <= 1.0
    
    @classmethod
    def check(cls, raw: RawValueBet, match: Optional[Match]) -> Optional[str]:
        """Return the exclusion reason for a row, or None if it is usable."""
        if match is None:
            return MISSING_MATCH
        if not cls.valid_odds(raw.odds):
            return INVALID_ODDS
        if not cls.valid_probability(raw.prob):
            return INVALID_PROBABILITY
        return None
    
    @classmethod
    def check_prediction(cls, pred: Prediction) -> ValidationResult:
        """Validate a prediction's probability pair."""
        result = ValidationResult()
        
        for name, value in [("prob_p1", pred.prob_p1), ("prob_p2", pred.prob_p2)]:
            if not cls.valid_probability(value):
                result.add_error(f"{name} {value} outside [0, 1]")
        
        if result.is_valid:
            total = pred.prob_p1 + pred.prob_p2
            if not math.isclose(total, 1.0, abs_tol=cls.PROB_SUM_TOLERANCE):
                result.add_warning(f"prob_p1 + prob_p2 = {total:.3f}, expected 1.0")
        
        return result
