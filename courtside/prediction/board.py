"""
Prediction Board
================

Joins the current model's predictions to their matches and produces
the rows shown for a selected day:

1. Keep predictions whose model_version equals the pinned tag exactly
2. Join to matches by event_key (unmatched rows on either side are dropped)
3. Resolve the predicted winner's probability
4. Optionally hide matches that have already started or finished
5. Order by date and start time
"""

from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from zoneinfo import ZoneInfo
import logging

from ..config import DEFAULT_MODEL_VERSION
from ..data.schemas import Match, Prediction, PredictionView
from ..data.processors import BetValidator

logger = logging.getLogger(__name__)


def eligible_predictions(
    predictions: Iterable[Prediction],
    model_version: str = DEFAULT_MODEL_VERSION,
) -> List[Prediction]:
    """Predictions from the pinned model only (exact string match)."""
    return [p for p in predictions if p.model_version == model_version]


def day_window(day: date, tz: str = "UTC") -> Tuple[datetime, datetime]:
    """Half-open [start, end) bounds of a calendar day in the reference timezone."""
    start = datetime.combine(day, time.min, tzinfo=ZoneInfo(tz))
    return start, start + timedelta(days=1)


def matches_on(matches: Iterable[Match], day: date, tz: str = "UTC") -> List[Match]:
    """Matches whose kickoff falls inside the day's window; untimed matches by date."""
    start, end = day_window(day, tz)
    selected = []
    for m in matches:
        kickoff = m.scheduled_at(tz)
        if kickoff is None:
            if m.event_date == day:
                selected.append(m)
        elif start <= kickoff < end:
            selected.append(m)
    return selected


def _to_view(pred: Prediction, match: Match) -> PredictionView:
    winner_is_p1 = pred.predicted_winner == match.first_player_name
    probability = pred.prob_p1 if winner_is_p1 else pred.prob_p2
    
    return PredictionView(
        event_key=pred.event_key,
        match_label=match.label,
        predicted_winner=pred.predicted_winner,
        winner_is_p1=winner_is_p1,
        tournament=match.tournament_name,
        surface=match.surface,
        probability=probability,
        elo_diff=pred.elo_diff_overall,
        surface_elo_diff=pred.elo_diff_surface,
        event_date=match.event_date,
        event_time=match.event_time,
    )


def _has_started(match: Match, now: datetime, tz: str) -> bool:
    kickoff = match.scheduled_at(tz)
    if kickoff is None:
        # No usable start time: keep showing it
        return False
    if now.tzinfo is None:
        now = now.replace(tzinfo=ZoneInfo(tz))
    return kickoff < now


def build_board(
    matches: Sequence[Match],
    predictions: Sequence[Prediction],
    model_version: str = DEFAULT_MODEL_VERSION,
    now: Optional[datetime] = None,
    tz: str = "UTC",
) -> List[PredictionView]:
    """
    Build the prediction board.
    
    Args:
        matches: Matches for the selected window
        predictions: Prediction rows for those matches (any model version)
        model_version: Pinned model tag
        now: If given, finished matches and those starting before this
            instant are hidden
        tz: Reference timezone of match dates/times
    
    Returns:
        Board rows sorted by date, then event_time; rows without a time go last
    """
    match_map: Dict[str, Match] = {m.event_key: m for m in matches}
    
    views: List[PredictionView] = []
    for pred in eligible_predictions(predictions, model_version):
        match = match_map.get(pred.event_key)
        if match is None:
            continue
        
        check = BetValidator.check_prediction(pred)
        if not check.is_valid:
            logger.warning(f"Skipping prediction {pred.event_key}: {'; '.join(check.errors)}")
            continue
        for warning in check.warnings:
            logger.debug(f"Prediction {pred.event_key}: {warning}")
        
        if now is not None and (match.is_finished or _has_started(match, now, tz)):
            continue
        
        views.append(_to_view(pred, match))
    
    views.sort(key=lambda v: (v.event_date, v.event_time is None, v.event_time or ""))
    
    logger.info(f"Board: {len(views)} predictions for {len(matches)} matches ({model_version})")
    return views


def visible_event_keys(board: Sequence[PredictionView]) -> List[str]:
    """Event keys on the board, in board order."""
    return [v.event_key for v in board]
