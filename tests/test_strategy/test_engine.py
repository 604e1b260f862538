"""
Tests for strategy.engine — join, derive, filter, sort
"""

from collections import Counter
from dataclasses import replace
from datetime import date, datetime, timezone

import pytest

from courtside.data.schemas import Match, Prediction, RawValueBet
from courtside.strategy.bets import SortField, sort_bets
from courtside.strategy.engine import ValueBetEngine, derive_bet, bets_to_frame, NO_PREDICTION
from courtside.strategy.filters import BetFilters


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

MODEL = "v4_sota_singles"


def _match(key="M1", p1="Sinner", p2="Alcaraz", time="14:00", tournament="ATP Paris") -> Match:
    return Match(
        event_key=key,
        event_date=date(2026, 10, 18),
        event_time=time,
        first_player_name=p1,
        second_player_name=p2,
        surface="Hard",
        tournament_name=tournament,
    )


def _raw(key="M1", player="Sinner", odds=2.0, prob=0.7, bookmaker="Bet365", **extra) -> RawValueBet:
    return RawValueBet(
        event_key=key,
        player_name=player,
        odds=odds,
        prob=prob,
        bookmaker=bookmaker,
        **extra,
    )


def _prediction(key="M1", winner="Sinner", p1=0.7, version=MODEL) -> Prediction:
    return Prediction(
        event_key=key,
        model_version=version,
        predicted_winner=winner,
        prob_p1=p1,
        prob_p2=1 - p1,
    )


@pytest.fixture
def engine():
    return ValueBetEngine(model_version=MODEL)


# ---------------------------------------------------------------------------
# Derivation
# ---------------------------------------------------------------------------

class TestDeriveBet:

    def test_scenario_positive_value(self):
        bet = derive_bet(_raw(), _match(), bankroll=1000)
        assert bet.match_label == "Sinner vs Alcaraz"
        assert bet.backed_player == "Sinner"
        assert bet.model_probability_pct == pytest.approx(70.0)
        assert bet.ev_pct == pytest.approx(40.0)
        assert bet.kelly_fraction == pytest.approx(0.4)
        assert bet.stake_pct == pytest.approx(40.0)
        assert bet.stake_amount == pytest.approx(400.0)
        assert bet.expected_profit == pytest.approx(160.0)

    def test_label_uses_stored_order(self):
        bet = derive_bet(_raw(player="Alcaraz"), _match(p1="Zverev", p2="Alcaraz"), bankroll=100)
        assert bet.match_label == "Zverev vs Alcaraz"

    def test_negative_ev_shown_with_zero_stake(self):
        bet = derive_bet(_raw(odds=1.3), _match(), bankroll=1000)
        assert bet.ev_pct == pytest.approx(-9.0)
        assert bet.kelly_fraction == 0.0
        assert bet.stake_amount == 0.0
        assert bet.expected_profit == 0.0

    def test_stored_ev_ignored_and_flagged(self):
        bet = derive_bet(_raw(ev=0.9), _match(), bankroll=1000)
        assert bet.ev_pct == pytest.approx(40.0)
        assert bet.ev_diverged is True

    def test_consistent_stored_ev_not_flagged(self):
        bet = derive_bet(_raw(ev=0.4), _match(), bankroll=1000)
        assert bet.ev_diverged is False

    def test_stale_stake_and_profit_ignored(self):
        raw = _raw(stake_amount=25.0, expected_profit=10.0)
        bet = derive_bet(raw, _match(), bankroll=500)
        assert bet.stake_amount == pytest.approx(200.0)
        assert bet.expected_profit == pytest.approx(80.0)

    def test_bankroll_change_rescales(self):
        raw, match = _raw(), _match()
        assert derive_bet(raw, match, 1000).stake_amount == pytest.approx(400.0)
        assert derive_bet(raw, match, 50).stake_amount == pytest.approx(20.0)

    @pytest.mark.parametrize("bankroll", [0, -500])
    def test_non_positive_bankroll(self, bankroll):
        bet = derive_bet(_raw(), _match(), bankroll=bankroll)
        assert bet.stake_amount == 0.0
        assert bet.expected_profit == 0.0
        assert bet.stake_pct == pytest.approx(40.0)

    def test_output_ranges(self):
        for prob, odds in [(0.0, 3.0), (1.0, 1.5), (0.55, 2.1), (0.9, 10.0)]:
            bet = derive_bet(_raw(prob=prob, odds=odds), _match(), bankroll=1000)
            assert bet.odds > 1.0
            assert 0.0 <= bet.model_probability_pct <= 100.0
            assert 0.0 <= bet.stake_pct <= 100.0


# ---------------------------------------------------------------------------
# Engine runs
# ---------------------------------------------------------------------------

class TestValueBetEngine:

    def test_scenario_positive_value_end_to_end(self, engine):
        report = engine.run(
            [_match()], [_raw()], bankroll=1000,
            filters=BetFilters(ev_threshold=0), predictions=[_prediction()],
        )
        assert len(report.bets) == 1
        bet = report.bets[0]
        assert bet.ev_pct == pytest.approx(40.0)
        assert bet.stake_amount == pytest.approx(400.0)
        assert bet.expected_profit == pytest.approx(160.0)

    def test_scenario_negative_ev_filtered(self, engine):
        report = engine.run([_match()], [_raw(odds=1.3)], bankroll=1000,
                            filters=BetFilters(ev_threshold=0))
        assert report.bets == []

    def test_scenario_below_confidence_floor(self, engine):
        # prob 0.5 at 2.4 → EV +20% but under the 55% floor
        raw = _raw(prob=0.50, odds=2.4)
        report = engine.run([_match()], [raw], bankroll=1000,
                            filters=BetFilters(ev_threshold=-100))
        assert report.bets == []

    def test_scenario_ties_keep_join_order(self, engine):
        matches = [_match("M1"), _match("M2", p1="Medvedev", p2="Rune")]
        raws = [
            _raw("M1", odds=2.0, prob=0.6),     # EV 20%
            _raw("M2", player="Medvedev", odds=2.0, prob=0.6),  # EV 20%
            _raw("M1", player="Alcaraz", odds=2.2, prob=0.6),   # EV 32%
        ]
        report = engine.run(matches, raws, bankroll=1000)
        assert [b.backed_player for b in report.bets] == ["Alcaraz", "Sinner", "Medvedev"]

    def test_ties_with_different_prices_keep_join_order(self, engine):
        # 0.6 * 2.0 and 0.75 * 1.6 are both +20% EV
        matches = [_match("M1"), _match("M2", p1="Medvedev", p2="Rune")]
        raws = [
            _raw("M1", odds=2.0, prob=0.6),
            _raw("M2", player="Medvedev", odds=1.6, prob=0.75),
        ]
        report = engine.run(matches, raws, bankroll=1000)
        assert [b.backed_player for b in report.bets] == ["Sinner", "Medvedev"]
        assert report.bets[0].ev_pct == report.bets[1].ev_pct == 20.0

    def test_ev_threshold_inclusive_on_computed_ev(self, engine):
        # 0.7 * 2.0 - 1 is 0.3999... in floating point
        report = engine.run([_match()], [_raw(odds=2.0, prob=0.7, ev=0.4)], bankroll=1000,
                            filters=BetFilters(ev_threshold=40.0))
        assert len(report.bets) == 1
        assert report.bets[0].ev_pct == 40.0

    def test_empty_inputs(self, engine):
        report = engine.run([], [], bankroll=1000)
        assert report.bets == []
        assert report.n_excluded == 0

    def test_integrity_faults_counted(self, engine):
        raws = [
            _raw(),
            _raw(key="GHOST"),
            _raw(odds=1.0),
            _raw(odds=0.8),
            _raw(prob=1.2),
            _raw(prob=float("nan")),
        ]
        report = engine.run([_match()], raws, bankroll=1000)
        assert len(report.bets) == 1
        assert report.excluded == Counter({
            "missing_match": 1,
            "invalid_odds": 2,
            "invalid_probability": 2,
        })
        assert report.total_rows == 6

    def test_ev_divergences_reported(self, engine):
        report = engine.run([_match()], [_raw(ev=0.1), _raw(player="Alcaraz", prob=0.6, ev=0.2)], bankroll=1000)
        assert report.ev_divergences == ["M1"]

    def test_predictions_restrict_to_board(self, engine):
        matches = [_match("M1"), _match("M2", p1="Medvedev", p2="Rune")]
        preds = [_prediction("M1"), _prediction("M2", winner="Medvedev", version="v3_legacy")]
        raws = [_raw("M1"), _raw("M2", player="Medvedev")]
        report = engine.run(matches, raws, bankroll=1000, predictions=preds)
        assert [b.event_key for b in report.bets] == ["M1"]
        assert report.excluded[NO_PREDICTION] == 1
        assert [p.event_key for p in report.predictions] == ["M1"]

    def test_started_matches_hidden_when_now_given(self, engine):
        matches = [_match("M1", time="10:00"), _match("M2", p1="Medvedev", p2="Rune", time="18:00")]
        preds = [_prediction("M1"), _prediction("M2", winner="Medvedev")]
        raws = [_raw("M1"), _raw("M2", player="Medvedev")]
        now = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)
        report = engine.run(matches, raws, bankroll=1000, predictions=preds, now=now)
        assert [b.event_key for b in report.bets] == ["M2"]

    def test_bookmaker_filter(self, engine):
        raws = [_raw(bookmaker="Bet365"), _raw(bookmaker="Pinnacle"), _raw(bookmaker="bet 365")]
        report = engine.run([_match()], raws, bankroll=1000, filters=BetFilters(bookmaker="BET365"))
        assert [b.bookmaker for b in report.bets] == ["Bet365", "bet 365"]

    def test_missing_bookmaker_defaults(self, engine):
        raw = RawValueBet(event_key="M1", player_name="Sinner", odds=2.0, prob=0.7, bookmaker=None)
        report = engine.run([_match()], [raw], bankroll=1000)
        assert report.bets[0].bookmaker == "Best Available"

    def test_runs_are_independent(self, engine):
        matches, raws = [_match()], [_raw()]
        first = engine.run(matches, raws, bankroll=1000)
        second = engine.run(matches, raws, bankroll=250)
        assert first.bets[0].stake_amount == pytest.approx(400.0)
        assert second.bets[0].stake_amount == pytest.approx(100.0)

    def test_summary(self, engine):
        report = engine.run([_match()], [_raw(), _raw(odds=1.0)], bankroll=1000)
        summary = report.summary()
        assert summary["shown"] == 1
        assert summary["excluded"] == {"invalid_odds": 1}


# ---------------------------------------------------------------------------
# Sorting
# ---------------------------------------------------------------------------

class TestSortBets:

    @pytest.fixture
    def bets(self):
        match = _match()
        raws = [
            _raw(odds=2.0, prob=0.7),
            _raw(player="Alcaraz", odds=3.0, prob=0.56),
            _raw(odds=1.8, prob=0.62),
            _raw(player="Alcaraz", odds=2.5, prob=0.6),
        ]
        return [derive_bet(r, match, 1000) for r in raws]

    def test_default_is_ev_descending(self, bets):
        ordered = sort_bets(bets)
        evs = [b.ev_pct for b in ordered]
        assert evs == sorted(evs, reverse=True)

    @pytest.mark.parametrize("field", list(SortField))
    @pytest.mark.parametrize("descending", [True, False])
    def test_sorting_twice_is_noop(self, bets, field, descending):
        once = sort_bets(bets, field, descending)
        assert sort_bets(once, field, descending) == once

    def test_ascending_by_odds(self, bets):
        assert [b.odds for b in sort_bets(bets, "odds", descending=False)] == [1.8, 2.0, 2.5, 3.0]

    def test_ties_stable_both_directions(self):
        match = _match()
        a = derive_bet(_raw(player="A", odds=2.0, prob=0.6), match, 1000)
        b = derive_bet(_raw(player="B", odds=2.0, prob=0.6), match, 1000)
        assert [x.backed_player for x in sort_bets([a, b], SortField.EV, True)] == ["A", "B"]
        assert [x.backed_player for x in sort_bets([a, b], SortField.EV, False)] == ["A", "B"]

    def test_float_noise_does_not_break_ties(self):
        match = _match()
        base = derive_bet(_raw(player="A", odds=2.0, prob=0.6), match, 1000)
        a = replace(base, ev_pct=(0.6 * 2.0 - 1) * 100)
        b = replace(base, backed_player="B", ev_pct=(0.75 * 1.6 - 1) * 100)
        assert [x.backed_player for x in sort_bets([a, b], SortField.EV, True)] == ["A", "B"]
        assert [x.backed_player for x in sort_bets([a, b], SortField.EV, False)] == ["A", "B"]

    def test_unknown_field(self, bets):
        with pytest.raises(ValueError):
            sort_bets(bets, "bookmaker")


class TestBetsToFrame:

    def test_columns(self):
        frame = bets_to_frame([derive_bet(_raw(), _match(), 1000)])
        assert len(frame) == 1
        assert frame.loc[0, "stake_amount"] == pytest.approx(400.0)
        assert "ev_pct" in frame.columns

    def test_empty(self):
        frame = bets_to_frame([])
        assert frame.empty
        assert "match_label" in frame.columns
