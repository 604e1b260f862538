"""
Betting Filters (Guardrails)
============================

Display filters applied to derived bets, in order:
1. Confidence floor (fixed, not user-configurable)
2. EV threshold (user-configurable, may be negative)
3. Bookmaker selection (tolerant name matching)

Also holds the alert-preference filter that decides which bets a
subscriber should be notified about.
"""

from typing import Dict, List, Optional, Sequence, Any
from dataclasses import dataclass, field
import logging
import copy
import re

from pydantic import BaseModel, Field

from .bets import DerivedBet

logger = logging.getLogger(__name__)

# Bets below this model confidence are statistically unreliable
MIN_CONFIDENCE_PCT = 55.0

# Sentinel for "no bookmaker filter"
ALL_BOOKMAKERS = "all"

_WHITESPACE = re.compile(r"\s+")


def normalize_bookmaker(name: Optional[str]) -> str:
    """Lowercase with all whitespace removed ("Bet 365" -> "bet365")."""
    if not name:
        return ""
    return _WHITESPACE.sub("", name).lower()


def bookmaker_matches(candidate: Optional[str], selection: Optional[str]) -> bool:
    """
    Tolerant bookmaker comparison.
    
    Matches on equality or containment either way after normalisation,
    so "Bet365", "bet 365" and "Bet365 UK" all select each other.
    """
    wanted = normalize_bookmaker(selection)
    if not wanted or wanted == ALL_BOOKMAKERS:
        return True
    
    have = normalize_bookmaker(candidate)
    if not have:
        return False
    return have == wanted or wanted in have or have in wanted


@dataclass
class FilterResult:
    """Result of filter application."""
    passed: bool
    reason: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class BetFilters:
    """
    Dashboard filters for derived bets.
    
    The confidence floor is a class constant on purpose; only the EV
    threshold and bookmaker are user settings.
    """
    ev_threshold: float = 0.0          # in percent, like ev_pct
    bookmaker: Optional[str] = ALL_BOOKMAKERS
    
    MIN_CONFIDENCE_PCT = MIN_CONFIDENCE_PCT
    
    def check(self, bet: DerivedBet) -> FilterResult:
        """Apply all filters to one bet."""
        # 1. Confidence floor
        if bet.model_probability_pct < self.MIN_CONFIDENCE_PCT:
            return FilterResult(False, f"Low confidence: {bet.model_probability_pct:.1f}%")
        
        # 2. EV threshold
        if bet.ev_pct < self.ev_threshold:
            return FilterResult(False, f"EV below threshold: {bet.ev_pct:.1f}% < {self.ev_threshold:.1f}%")
        
        # 3. Bookmaker
        if not bookmaker_matches(bet.bookmaker, self.bookmaker):
            return FilterResult(False, f"Bookmaker not selected: {bet.bookmaker}")
        
        return FilterResult(True, details={
            "ev_pct": bet.ev_pct,
            "model_probability_pct": bet.model_probability_pct,
        })
    
    def apply(self, bets: Sequence[DerivedBet]) -> List[DerivedBet]:
        """Keep passing bets in their input order."""
        kept = [b for b in bets if self.check(b).passed]
        logger.debug(
            f"Filtered {len(kept)}/{len(bets)} bets "
            f"(EV >= {self.ev_threshold:.1f}%, bookmaker={self.bookmaker})"
        )
        return kept


# ---------------------------------------------------------------------------
# Alert preferences
# ---------------------------------------------------------------------------

CUSTOM_PRESET = "custom"

ALERT_PRESETS: Dict[str, Dict[str, Any]] = {
    "sniper": {
        "min_ev": 0.25,
        "min_confidence": 0.65,
        "tournaments": ["Atp", "Wta"],
        "bookmakers": [],
    },
    "balanced": {
        "min_ev": 0.15,
        "min_confidence": 0.55,
        "tournaments": ["Atp", "Wta", "Challenger"],
        "bookmakers": [],
    },
    "everything": {
        "min_ev": 0.10,
        "min_confidence": 0.50,
        "tournaments": [],
        "bookmakers": [],
    },
}


class AlertSettings(BaseModel):
    """
    Subscriber alert preferences. Thresholds are fractions, not percent.
    Empty bookmaker/tournament lists mean "any".
    """
    preset: str = "balanced"
    min_ev: float = Field(0.15, ge=-1.0)
    min_confidence: float = Field(0.55, ge=0.0, le=1.0)
    bookmakers: List[str] = Field(default_factory=list)
    tournaments: List[str] = Field(default_factory=lambda: ["Atp", "Wta", "Challenger"])
    sleep_mode: bool = False
    
    def apply_preset(self, name: str) -> "AlertSettings":
        """New settings from a named preset, keeping sleep mode."""
        if name not in ALERT_PRESETS:
            raise ValueError(f"Unknown alert preset: {name}")
        return AlertSettings(
            **copy.deepcopy(ALERT_PRESETS[name]),
            preset=name,
            sleep_mode=self.sleep_mode,
        )
    
    def with_setting(self, key: str, value: Any) -> "AlertSettings":
        """New settings with one field changed; the preset becomes custom."""
        if key not in AlertSettings.model_fields or key == "preset":
            raise ValueError(f"Unknown alert setting: {key}")
        data = self.model_dump()
        data[key] = value
        data["preset"] = CUSTOM_PRESET
        return AlertSettings.model_validate(data)
    
    def toggle(self, key: str, item: str) -> "AlertSettings":
        """Add or remove one bookmaker/tournament id."""
        if key not in ("bookmakers", "tournaments"):
            raise ValueError(f"Cannot toggle {key}")
        current = list(getattr(self, key))
        if item in current:
            current.remove(item)
        else:
            current.append(item)
        return self.with_setting(key, current)


class AlertFilter:
    """Decides whether a derived bet should trigger a subscriber alert."""
    
    def __init__(self, settings: Optional[AlertSettings] = None):
        self.settings = settings or AlertSettings()
    
    def check(self, bet: DerivedBet) -> FilterResult:
        s = self.settings
        
        if s.sleep_mode:
            return FilterResult(False, "Sleep mode")
        
        if bet.ev_pct / 100 < s.min_ev:
            return FilterResult(False, f"EV too low: {bet.ev_pct:.1f}%")
        
        if bet.model_probability_pct / 100 < s.min_confidence:
            return FilterResult(False, f"Low confidence: {bet.model_probability_pct:.1f}%")
        
        if s.bookmakers and not any(bookmaker_matches(bet.bookmaker, b) for b in s.bookmakers):
            return FilterResult(False, f"Bookmaker not subscribed: {bet.bookmaker}")
        
        if s.tournaments:
            tournament = bet.tournament.lower()
            if not any(t.lower() in tournament for t in s.tournaments):
                return FilterResult(False, f"Tournament not subscribed: {bet.tournament}")
        
        return FilterResult(True)
    
    def should_alert(self, bet: DerivedBet) -> bool:
        return self.check(bet).passed
    
    def select(self, bets: Sequence[DerivedBet]) -> List[DerivedBet]:
        return [b for b in bets if self.should_alert(b)]
