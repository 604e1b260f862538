"""
Courtside Command Line Interface
================================

Works on JSON exports of the store's rows (a list of objects per file).

Usage:
    courtside rank -m matches.json -b value_bets.json --bankroll 500 --min-ev 5
    courtside board -m matches.json -p predictions.json --group-by confidence
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, List, Dict, Any

import click

from courtside.config import get_config, setup_logging
from courtside.data.schemas import Match, Prediction, RawValueBet, parse_rows
from courtside.prediction.board import build_board, matches_on
from courtside.strategy import (
    BetFilters,
    SortField,
    ValueBetEngine,
    GroupBy,
    group_predictions,
    bets_to_frame,
    ALL_BOOKMAKERS,
)

logger = logging.getLogger(__name__)


def _load_rows(path: Optional[str]) -> List[Dict[str, Any]]:
    if not path:
        return []
    try:
        data = json.loads(Path(path).read_text())
    except (OSError, ValueError) as e:
        raise click.ClickException(f"Cannot read {path}: {e}")
    if not isinstance(data, list):
        raise click.ClickException(f"{path} must contain a JSON list of rows")
    return [row for row in data if isinstance(row, dict)]


def _load_matches(path: str, day: Optional[datetime], tz: str = "UTC") -> List[Match]:
    matches, _ = parse_rows(Match, _load_rows(path))
    if day is not None:
        matches = matches_on(matches, day.date(), tz)
    return matches


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.pass_context
def cli(ctx, verbose: bool):
    """Courtside - Tennis Value Bet Engine"""
    ctx.ensure_object(dict)
    ctx.obj["config"] = get_config()
    
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


@cli.command()
@click.option("--matches", "-m", "matches_path", type=click.Path(exists=True), required=True, help="Match rows JSON")
@click.option("--bets", "-b", "bets_path", type=click.Path(exists=True), required=True, help="Value-bet rows JSON")
@click.option("--predictions", "-p", "predictions_path", type=click.Path(exists=True), help="Prediction rows JSON (restricts bets to predicted matches)")
@click.option("--date", "day", type=click.DateTime(formats=["%Y-%m-%d"]), help="Only matches on this day")
@click.option("--bankroll", type=float, help="Bankroll for stake sizing")
@click.option("--min-ev", type=float, help="Minimum EV in percent (may be negative)")
@click.option("--bookmaker", default=ALL_BOOKMAKERS, show_default=True, help="Bookmaker filter")
@click.option("--sort", "sort_by", type=click.Choice([f.value for f in SortField]), default=SortField.EV.value, show_default=True)
@click.option("--ascending", is_flag=True, help="Sort ascending")
@click.option("--json", "as_json", is_flag=True, help="Print JSON instead of a table")
@click.option("--output", "-o", type=click.Path(), help="Write bets to a CSV file")
@click.pass_context
def rank(ctx, matches_path: str, bets_path: str, predictions_path: Optional[str],
         day: Optional[datetime], bankroll: Optional[float], min_ev: Optional[float],
         bookmaker: str, sort_by: str, ascending: bool, as_json: bool, output: Optional[str]):
    """Rank value bets with stake sizing."""
    config = ctx.obj["config"]
    
    matches = _load_matches(matches_path, day, config.reference_tz)
    raw_bets, rejected = parse_rows(RawValueBet, _load_rows(bets_path))
    predictions = None
    if predictions_path:
        predictions, _ = parse_rows(Prediction, _load_rows(predictions_path))
    
    engine = ValueBetEngine(model_version=config.model_version, tz=config.reference_tz)
    report = engine.run(
        matches,
        raw_bets,
        bankroll=config.default_bankroll if bankroll is None else bankroll,
        filters=BetFilters(
            ev_threshold=config.default_ev_threshold if min_ev is None else min_ev,
            bookmaker=bookmaker,
        ),
        sort_by=sort_by,
        descending=not ascending,
        predictions=predictions,
    )
    
    if as_json:
        summary = report.summary()
        summary["rejected_rows"] = rejected
        click.echo(json.dumps({
            "bets": [b.to_dict() for b in report.bets],
            "summary": summary,
        }, indent=2))
    elif not report.bets:
        click.echo("No value bets found")
    else:
        frame = bets_to_frame(report.bets)[[
            "match_label", "backed_player", "odds", "model_probability_pct",
            "ev_pct", "bookmaker", "stake_amount", "stake_pct", "expected_profit",
        ]]
        click.echo(frame.to_string(index=False, float_format=lambda x: f"{x:.2f}"))
        click.echo(f"\n{len(report.bets)} bets shown, {report.n_excluded + rejected} rows excluded")
    
    if output:
        bets_to_frame(report.bets).to_csv(output, index=False)
        click.echo(f"Saved to {output}", err=True)


@cli.command()
@click.option("--matches", "-m", "matches_path", type=click.Path(exists=True), required=True, help="Match rows JSON")
@click.option("--predictions", "-p", "predictions_path", type=click.Path(exists=True), required=True, help="Prediction rows JSON")
@click.option("--date", "day", type=click.DateTime(formats=["%Y-%m-%d"]), help="Only matches on this day")
@click.option("--upcoming", is_flag=True, help="Hide matches that have started or finished")
@click.option("--group-by", type=click.Choice([g.value for g in GroupBy]), help="Group rows")
@click.pass_context
def board(ctx, matches_path: str, predictions_path: str, day: Optional[datetime],
          upcoming: bool, group_by: Optional[str]):
    """Show the prediction board."""
    config = ctx.obj["config"]
    
    matches = _load_matches(matches_path, day, config.reference_tz)
    predictions, _ = parse_rows(Prediction, _load_rows(predictions_path))
    
    views = build_board(
        matches,
        predictions,
        model_version=config.model_version,
        now=datetime.now(timezone.utc) if upcoming else None,
        tz=config.reference_tz,
    )
    
    if not views:
        click.echo("No predictions found")
        return
    
    groups = group_predictions(views, group_by) if group_by else {"": views}
    for name, rows in groups.items():
        if name:
            click.echo(f"\n== {name} ({len(rows)})")
        for v in rows:
            click.echo(
                f"{v.event_time or '--:--'}  {v.match_label:<40} "
                f"{v.predicted_winner:<22} {v.probability * 100:5.1f}%  {v.tournament}"
            )


def main():
    config = get_config()
    setup_logging(level=config.log_level)
    cli(obj={})


if __name__ == "__main__":
    main()
