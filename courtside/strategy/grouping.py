"""
Prediction board grouping.

Buckets use strict ">" edges: a probability of exactly 0.80 is "High",
not "Very High".
"""

from collections import OrderedDict
from enum import Enum
from typing import Dict, List, Sequence, Union

from ..data.schemas import PredictionView

VERY_HIGH_THRESHOLD = 0.80
HIGH_THRESHOLD = 0.70
MEDIUM_THRESHOLD = 0.60

VERY_HIGH = "Very High"
HIGH = "High"
MEDIUM = "Medium"
LOW = "Low"

NO_TIME = "TBD"


class GroupBy(str, Enum):
    TOURNAMENT = "tournament"
    CONFIDENCE = "confidence"
    TIME = "time"


def confidence_bucket(probability: float) -> str:
    """Map a win probability (0-1) to its confidence label."""
    if probability > VERY_HIGH_THRESHOLD:
        return VERY_HIGH
    if probability > HIGH_THRESHOLD:
        return HIGH
    if probability > MEDIUM_THRESHOLD:
        return MEDIUM
    return LOW


def group_key(view: PredictionView, by: Union[GroupBy, str]) -> str:
    by = GroupBy(by)
    if by is GroupBy.TOURNAMENT:
        return view.tournament
    if by is GroupBy.CONFIDENCE:
        return confidence_bucket(view.probability)
    return view.event_time or NO_TIME


def group_predictions(
    views: Sequence[PredictionView],
    by: Union[GroupBy, str] = GroupBy.TOURNAMENT,
) -> Dict[str, List[PredictionView]]:
    """Group board rows, groups and members in first-seen order."""
    groups: Dict[str, List[PredictionView]] = OrderedDict()
    for view in views:
        groups.setdefault(group_key(view, by), []).append(view)
    return groups
