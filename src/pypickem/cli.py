"""Command-line interface for player pools, scoring snapshots and lineups."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from pypickem import service
from pypickem.config.settings import Settings
from pypickem.config_loader import SettingsProfile
from pypickem.errors import PickemError
from pypickem.models import BasketballPeriod, FootballPeriod
from pypickem.period import current_basketball_period, current_football_period, parse_date
from pypickem.pool.export import export_records_to_csv
from pypickem.scoring import ScoringMode


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--sport", default="NFL", help="Sport key (NFL or NBA)")
    common.add_argument("--season", type=int, default=None, help="NFL season (defaults to the current one)")
    common.add_argument("--week", type=int, default=None, help="NFL week (defaults to the current one)")
    common.add_argument("--date", default=None, help="NBA slate date, YYYY-MM-DD (defaults to today)")
    common.add_argument("--mode", default="ppr", help="Scoring mode: std, half or ppr")
    common.add_argument("--json", action="store_true", help="Print machine-readable JSON")
    common.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    common.add_argument("--load-profile", type=Path, default=None, help="Load settings overrides JSON")
    common.add_argument("--save-profile", type=Path, default=None, help="Save the effective overrides JSON")
    common.add_argument(
        "--set",
        dest="overrides",
        action="append",
        default=[],
        help="Settings override (e.g., merge_policy=sum)",
    )

    parser = argparse.ArgumentParser(description="Fantasy pick'em pools and scoring snapshots")
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("meta", parents=[common], help="Show the current scoring period")
    commands.add_parser("players", parents=[common], help="List the selectable player pool")
    stats = commands.add_parser("stats", parents=[common], help="Score every player for a period")
    stats.add_argument("--output", type=Path, default=None, help="Write the ranked records as CSV")
    stats.add_argument("--best", action="store_true", help="NFL only: each player's best week of the season")
    stats.add_argument("--limit", type=int, default=25, help="Rows to print (0 for all)")
    commands.add_parser("auto", parents=[common], help="Find the latest NFL week with data")
    lineup = commands.add_parser("lineup", parents=[common], help="Total a lineup against the target")
    lineup.add_argument(
        "--pick",
        action="append",
        default=[],
        help="Slot assignment (e.g., QB=00-0033873); repeat per slot",
    )
    lineup.add_argument("--autofill", action="store_true", help="Fill every slot with its best scorer")
    lineup.add_argument("--target", type=float, default=None, help="Points needed to win (defaults to 100)")
    return parser.parse_args(argv)


def _parse_pairs(entries: list[str], what: str) -> dict[str, str]:
    pairs: dict[str, str] = {}
    for entry in entries:
        if "=" not in entry:
            raise ValueError(f"Invalid {what} entry '{entry}', expected key=value")
        key, value = entry.split("=", 1)
        pairs[key.strip()] = value.strip()
    return pairs


def _coerce_override(key: str, value: str) -> Any:
    if key == "probe_seasons":
        return [int(part) for part in value.split(",") if part.strip()]
    field = Settings.__dataclass_fields__.get(key)
    if field is None:
        return value
    if field.type in ("int", int):
        return int(value)
    if field.type in ("float", float):
        return float(value)
    return value


def _settings(args: argparse.Namespace) -> Settings:
    overrides: dict[str, Any] = {}
    if args.load_profile:
        overrides.update(SettingsProfile.load(args.load_profile).overrides)
    for key, value in _parse_pairs(args.overrides, "setting").items():
        overrides[key] = _coerce_override(key, value)
    profile = SettingsProfile(overrides)
    settings = profile.apply(Settings.from_env())
    if args.save_profile:
        profile.save(args.save_profile)
        print(f"Saved settings profile to {args.save_profile}")
    return settings


def _period(args: argparse.Namespace, sport: str, settings: Settings) -> FootballPeriod | BasketballPeriod:
    if sport == "NFL":
        current = current_football_period()
        return FootballPeriod(
            season=args.season if args.season is not None else current.season,
            week=args.week if args.week is not None else current.week,
        )
    if args.date:
        return BasketballPeriod(date=parse_date(args.date))
    return current_basketball_period(timezone=settings.reference_timezone)


def _emit(payload: dict[str, Any], as_json: bool, lines: list[str]) -> None:
    if as_json:
        print(json.dumps(payload, indent=2, default=str))
        return
    for line in lines:
        print(line)
    for warning in payload.get("warnings", []):
        print(f"warning: {warning}", file=sys.stderr)


async def _run_meta(args: argparse.Namespace, sport: str, settings: Settings) -> None:
    period = service.get_current_period(sport, settings=settings)
    payload = period.model_dump(mode="json")
    _emit(payload, args.json, [f"{sport} current period: {period}"])


async def _run_players(args: argparse.Namespace, sport: str, settings: Settings) -> None:
    if sport == "NFL" and args.week is None:
        scope: Any = args.season if args.season is not None else _period(args, sport, settings).season
    else:
        scope = _period(args, sport, settings)
    pool = await service.get_player_pool(sport, scope, settings=settings)
    payload = {
        "count": len(pool.players),
        "season_used": pool.season_used,
        "source_url": pool.source_url,
        "teams_tried": pool.teams_tried,
        "rosters_ok": pool.rosters_ok,
        "used_fallback_teams": pool.used_fallback_teams,
        "players": [player.model_dump() for player in pool.players],
        "warnings": pool.warnings,
    }
    lines = [f"{player.id:<28} {player.position:<3} {player.team or '-':<4} {player.name}" for player in pool.players]
    lines.append(f"{len(pool.players)} players")
    _emit(payload, args.json, lines)


async def _run_stats(args: argparse.Namespace, sport: str, settings: Settings) -> None:
    mode = ScoringMode.parse(args.mode)
    if args.best:
        if sport != "NFL":
            raise ValueError("--best is only available for NFL")
        season = args.season if args.season is not None else _period(args, sport, settings).season
        snapshot = await service.get_season_best(season, mode, settings=settings)
    else:
        period = _period(args, sport, settings)
        snapshot = await service.get_scoring_snapshot(sport, period, mode, settings=settings)

    if args.output:
        args.output.write_text(export_records_to_csv(snapshot.records, sport=sport), encoding="utf-8")
        print(f"Wrote {len(snapshot.records)} records to {args.output}")

    shown = snapshot.records if args.limit <= 0 else snapshot.records[: args.limit]
    payload = {
        "count": len(snapshot.records),
        "season_used": snapshot.season_used,
        "source_url": snapshot.source_url,
        "parsed_rows": snapshot.parsed_rows,
        "matched_rows": snapshot.matched_rows,
        "events": snapshot.events,
        "events_processed": snapshot.events_processed,
        "points": snapshot.points,
        "stats": {player_id: line.model_dump() for player_id, line in snapshot.stats.items()},
        "warnings": snapshot.warnings,
    }
    lines = [
        f"{rank:>3}. {record.points:7.2f}  {record.name} ({record.team or '-'}) [{record.period}]"
        for rank, record in enumerate(shown, start=1)
    ]
    lines.append(f"{len(snapshot.records)} players scored ({mode.value})")
    _emit(payload, args.json, lines)


async def _run_auto(args: argparse.Namespace, sport: str, settings: Settings) -> None:
    if sport != "NFL":
        raise ValueError("auto period probing is only available for NFL")
    seasons = [args.season] if args.season is not None else None
    period = await service.find_latest_period(args.mode, settings=settings, seasons=seasons)
    _emit(period.model_dump(mode="json"), args.json, [f"Latest populated period: {period}"])


async def _run_lineup(args: argparse.Namespace, sport: str, settings: Settings) -> None:
    period = _period(args, sport, settings)
    picks: dict[str, str | None] = dict(_parse_pairs(args.pick, "pick"))
    outcome = await service.evaluate_period_lineup(
        sport,
        period,
        picks,
        args.mode,
        target=args.target,
        autofill=args.autofill,
        settings=settings,
    )
    result, snapshot = outcome.result, outcome.snapshot
    players = {player.id: player for player in outcome.pool}
    payload = {
        "picks": dict(result.picks),
        "slot_points": dict(result.slot_points),
        "total_points": result.total_points,
        "target_points": result.target_points,
        "hit": result.hit,
        "complete": result.complete,
        "warnings": outcome.warnings,
    }
    lines = []
    for slot, player_id in result.picks.items():
        player = (snapshot.players.get(player_id) or players.get(player_id)) if player_id else None
        label = player.name if player else (player_id or "(empty)")
        lines.append(f"{slot:<3} {result.slot_points[slot]:7.2f}  {label}")
    verdict = "HIT" if result.hit else f"{result.distance:+.2f} from target"
    lines.append(f"Total {result.total_points:.2f} / {result.target_points:.0f}: {verdict}")
    _emit(payload, args.json, lines)


_COMMANDS = {
    "meta": _run_meta,
    "players": _run_players,
    "stats": _run_stats,
    "auto": _run_auto,
    "lineup": _run_lineup,
}


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = _settings(args)
        sport = service.normalize_sport(args.sport)
        asyncio.run(_COMMANDS[args.command](args, sport, settings))
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
    except PickemError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
