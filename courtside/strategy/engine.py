"""
Value Bet Engine
================

Pure transformation, run on every refresh or filter/sort/bankroll change:

    raw value-bet rows ──join──▶ match ──derive──▶ DerivedBet
                                        ──filter──▶ ──sort──▶ display

Nothing is cached between runs; stake and profit always come from the
bankroll passed in. Faulty rows are dropped and counted, never raised.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Union
import logging

import pandas as pd

from ..config import DEFAULT_MODEL_VERSION
from ..data.schemas import Match, Prediction, PredictionView, RawValueBet
from ..data.processors import BetValidator
from ..prediction.board import build_board, visible_event_keys
from .bets import PCT_PRECISION, DerivedBet, SortField, sort_bets
from .ev import EV_TOLERANCE, calculate_ev, ev_diverges
from .filters import BetFilters
from .kelly import expected_profit, resolve_kelly, stake_amount

logger = logging.getLogger(__name__)

NO_PREDICTION = "no_prediction"


@dataclass
class EngineReport:
    """Output of one engine run."""
    bets: List[DerivedBet]
    predictions: List[PredictionView] = field(default_factory=list)
    excluded: Counter = field(default_factory=Counter)   # reason -> rows
    ev_divergences: List[str] = field(default_factory=list)  # event keys
    total_rows: int = 0
    
    @property
    def n_excluded(self) -> int:
        return sum(self.excluded.values())
    
    def summary(self) -> Dict[str, object]:
        return {
            "total_rows": self.total_rows,
            "shown": len(self.bets),
            "excluded": dict(self.excluded),
            "ev_divergences": len(self.ev_divergences),
        }


def derive_bet(
    raw: RawValueBet,
    match: Match,
    bankroll: Optional[float],
    ev_tolerance: float = EV_TOLERANCE,
) -> DerivedBet:
    """
    Derive display figures for one validated row.
    
    Callers must run BetValidator.check first; odds <= 1 or an
    out-of-range probability have no meaningful Kelly stake.
    """
    ev = calculate_ev(raw.prob, raw.odds)
    ev_pct = round(ev * 100, PCT_PRECISION)
    
    kelly = resolve_kelly(raw, ev)
    stake_pct = kelly * 100
    stake = stake_amount(bankroll, stake_pct)
    
    return DerivedBet(
        event_key=raw.event_key,
        match_label=match.label,
        tournament=match.tournament_name,
        backed_player=raw.player_name,
        odds=raw.odds,
        model_probability_pct=round(raw.prob * 100, PCT_PRECISION),
        ev_pct=ev_pct,
        bookmaker=raw.bookmaker,
        kelly_fraction=kelly,
        stake_pct=stake_pct,
        stake_amount=stake,
        expected_profit=expected_profit(stake, ev_pct),
        ev_diverged=ev_diverges(raw.ev, raw.prob, raw.odds, ev_tolerance),
    )


class ValueBetEngine:
    """
    Join → derive → filter → sort over fully materialised rows.
    
    Holds only configuration; every call to run() is independent.
    """
    
    def __init__(
        self,
        model_version: str = DEFAULT_MODEL_VERSION,
        ev_tolerance: float = EV_TOLERANCE,
        tz: str = "UTC",
    ):
        self.model_version = model_version
        self.ev_tolerance = ev_tolerance
        self.tz = tz
    
    def derive(
        self,
        matches: Sequence[Match],
        raw_bets: Sequence[RawValueBet],
        bankroll: Optional[float],
        report: Optional[EngineReport] = None,
    ) -> EngineReport:
        """Derive every usable row, in join order, without filtering."""
        report = report or EngineReport(bets=[])
        match_map: Dict[str, Match] = {m.event_key: m for m in matches}
        
        for raw in raw_bets:
            report.total_rows += 1
            match = match_map.get(raw.event_key)
            
            reason = BetValidator.check(raw, match)
            if reason is not None:
                report.excluded[reason] += 1
                logger.debug(f"Excluded {raw.event_key} ({raw.player_name}): {reason}")
                continue
            
            bet = derive_bet(raw, match, bankroll, self.ev_tolerance)
            if bet.ev_diverged:
                report.ev_divergences.append(raw.event_key)
            report.bets.append(bet)
        
        if report.ev_divergences:
            logger.warning(
                f"{len(report.ev_divergences)} stored EV values disagree with prob * odds - 1; "
                f"using recomputed EV"
            )
        
        return report
    
    def run(
        self,
        matches: Sequence[Match],
        raw_bets: Sequence[RawValueBet],
        bankroll: Optional[float],
        filters: Optional[BetFilters] = None,
        sort_by: Union[SortField, str] = SortField.EV,
        descending: bool = True,
        predictions: Optional[Sequence[Prediction]] = None,
        now: Optional[datetime] = None,
    ) -> EngineReport:
        """
        Produce the ranked bet list for the current settings.
        
        Args:
            matches: Matches of the selected window
            raw_bets: Value-bet rows for those matches
            bankroll: User's current bankroll (<= 0 sizes every stake at 0)
            filters: Display filters (default: EV >= 0, all bookmakers)
            sort_by: Numeric field to order by
            descending: Sort direction
            predictions: If given, only bets on matches shown on the
                prediction board are kept
            now: Passed to the board to hide started matches
        
        Returns:
            EngineReport with filtered, sorted bets and exclusion counts
        """
        filters = filters or BetFilters()
        report = EngineReport(bets=[])
        
        if predictions is not None:
            report.predictions = build_board(
                matches, predictions, self.model_version, now=now, tz=self.tz,
            )
            visible = set(visible_event_keys(report.predictions))
            kept = [b for b in raw_bets if b.event_key in visible]
            dropped = len(raw_bets) - len(kept)
            if dropped:
                report.excluded[NO_PREDICTION] += dropped
                report.total_rows += dropped
            raw_bets = kept
        
        self.derive(matches, raw_bets, bankroll, report)
        
        report.bets = sort_bets(filters.apply(report.bets), sort_by, descending)
        
        logger.info(
            f"Value bets: {len(report.bets)} shown / {report.total_rows} rows "
            f"(bankroll={bankroll}, EV >= {filters.ev_threshold:.1f}%)"
        )
        return report


def bets_to_frame(bets: Sequence[DerivedBet]) -> pd.DataFrame:
    """Tabular view of derived bets for display or export."""
    columns = list(DerivedBet.__dataclass_fields__)
    return pd.DataFrame([b.to_dict() for b in bets], columns=columns)
