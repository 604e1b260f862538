"""
Match schema.

Matches are produced upstream and are read-only here. Dates and times
are stored naive in a reference timezone chosen by the caller.
"""

from __future__ import annotations

from datetime import date, datetime, time
from enum import Enum
from typing import Optional, Dict, Any
from zoneinfo import ZoneInfo
from pydantic import BaseModel, Field, field_validator, computed_field


UNKNOWN_TOURNAMENT = "Unknown"


class Surface(str, Enum):
    """Court surface."""
    HARD = "Hard"
    CLAY = "Clay"
    GRASS = "Grass"
    UNKNOWN = "Unknown"
    
    @classmethod
    def parse(cls, value: Any) -> "Surface":
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return cls.UNKNOWN
        for member in cls:
            if member.value.lower() == value.strip().lower():
                return member
        return cls.UNKNOWN


class Match(BaseModel):
    """
    A scheduled tennis match keyed by the store's opaque event_key.
    """
    
    event_key: str = Field(..., min_length=1)
    event_date: date
    event_time: Optional[str] = None  # "HH:MM"
    
    first_player_name: str
    second_player_name: str
    
    surface: Surface = Surface.UNKNOWN
    tournament_name: str = UNKNOWN_TOURNAMENT
    event_type: Optional[str] = None
    
    # Live/finished state as reported by the store
    status: Optional[str] = None
    winner: Optional[str] = None
    
    # {bookmaker: decimal odds}
    odds: Dict[str, float] = Field(default_factory=dict)
    
    @field_validator("event_key", mode="before")
    @classmethod
    def coerce_key(cls, v):
        return str(v) if v is not None else v
    
    @field_validator("event_date", mode="before")
    @classmethod
    def truncate_datetime(cls, v):
        # Store sends either "YYYY-MM-DD" or a full ISO timestamp
        if isinstance(v, datetime):
            return v.date()
        if isinstance(v, str) and len(v) > 10:
            return v[:10]
        return v
    
    @field_validator("surface", mode="before")
    @classmethod
    def parse_surface(cls, v):
        return Surface.parse(v)
    
    @field_validator("tournament_name", mode="before")
    @classmethod
    def default_tournament(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return UNKNOWN_TOURNAMENT
        return v
    
    @field_validator("odds", mode="before")
    @classmethod
    def default_odds(cls, v):
        return v or {}
    
    @computed_field
    @property
    def label(self) -> str:
        """Display label, players in stored order."""
        return f"{self.first_player_name} vs {self.second_player_name}"
    
    @computed_field
    @property
    def is_finished(self) -> bool:
        return self.winner is not None or (self.status or "").lower() == "finished"
    
    def start_time(self) -> Optional[time]:
        """Parsed event_time, None when missing or malformed."""
        if not self.event_time:
            return None
        try:
            return time.fromisoformat(self.event_time.strip())
        except ValueError:
            return None
    
    def scheduled_at(self, tz: str = "UTC") -> Optional[datetime]:
        """Aware kickoff datetime in the reference timezone."""
        start = self.start_time()
        if start is None:
            return None
        return datetime.combine(self.event_date, start, tzinfo=ZoneInfo(tz))
