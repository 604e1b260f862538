"""Prediction board: version-pinned predictions joined to their matches."""

from .board import (
    eligible_predictions,
    day_window,
    matches_on,
    build_board,
    visible_event_keys,
)

__all__ = [
    "eligible_predictions",
    "day_window",
    "matches_on",
    "build_board",
    "visible_event_keys",
]
