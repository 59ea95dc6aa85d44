#!/usr/bin/env python3
"""
Command-line interface for the hockey pick'em pool.

Usage:
    pickem pick alice league1 2024020001 8478403
    pickem resolve 2024020001
    pickem standings
"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime
from typing import Any, Optional

import httpx
from loguru import logger

from pickem.collectors import (
    HistoricalGameDataProvider,
    LiveGameDataProvider,
    NHLApiClient,
    RosterProvider,
    sync_schedule,
)
from pickem.config import load_config
from pickem.database import Database, get_database
from pickem.errors import PickemError
from pickem.models import Game, GameStatus
from pickem.processors import StatNormalizer, StatsSimulator
from pickem.service import (
    DraftOrderService,
    PickService,
    ResolutionOutcome,
    ResultResolver,
)


def configure_logging(verbose: bool = False, level: str = "WARNING") -> None:
    """Configure logging for CLI usage."""
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if verbose else level,
        format="<level>{level}</level>: {message}",
    )


def open_database(args: argparse.Namespace, config: dict[str, Any]) -> Database:
    return get_database(args.db or config["database"]["path"])


def build_resolver(db: Database, config: dict[str, Any], seed: Optional[int] = None) -> ResultResolver:
    team = config["team"]
    simulator = StatsSimulator(seed=seed if seed is not None else config["simulation"]["seed"])
    normalizer = StatNormalizer(
        team_id=team["team_id"],
        team_abbrev=team["abbrev"],
        simulator=simulator,
    )
    return ResultResolver(db, normalizer)


def load_roster(api: NHLApiClient, config: dict[str, Any]) -> list:
    roster = RosterProvider(api, config["team"]["abbrev"]).get_roster()
    if not roster:
        print("WARNING: roster unavailable, player picks will score 0")
    return roster


def print_outcome(outcome: ResolutionOutcome) -> None:
    if not outcome.is_resolved:
        print(f"Game {outcome.game_id}: {outcome.message}")
        return

    result = outcome.result
    print(f"Game {outcome.game_id} resolved: {result.team_goals}-{result.opponent_goals}", end="")
    if result.shootout:
        print(" (SO)")
    elif result.overtime:
        print(" (OT)")
    else:
        print()

    for league_id, scores in sorted(outcome.user_points.items()):
        print(f"\nLeague {league_id}:")
        for user_id, points in sorted(scores.items(), key=lambda item: -item[1]):
            print(f"  {user_id:<20} {points:>4}")

    if outcome.draft_order is not None:
        print(f"\nNext draft order: {', '.join(outcome.draft_order) or '(empty)'}")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def cmd_sync(args: argparse.Namespace, config: dict[str, Any]) -> int:
    """Store the tracked team's season schedule."""
    db = open_database(args, config)
    with NHLApiClient(config=config) as api:
        count = sync_schedule(api, db, config["team"]["abbrev"])
    print(f"Synced {count} games")
    return 0


def cmd_add_game(args: argparse.Namespace, config: dict[str, Any]) -> int:
    """Add or update a game by hand."""
    db = open_database(args, config)
    game = Game(
        id=args.game_id,
        opponent=args.opponent,
        start_time=datetime.fromisoformat(args.start),
        is_home=not args.away,
        status=GameStatus(args.status),
        external_id=args.external_id,
    )
    db.upsert_game(game)
    print(f"Game {game.id} saved")
    return 0


def cmd_set_status(args: argparse.Namespace, config: dict[str, Any]) -> int:
    db = open_database(args, config)
    db.update_game_status(args.game_id, GameStatus(args.status))
    print(f"Game {args.game_id} is now {args.status}")
    return 0


def cmd_add_user(args: argparse.Namespace, config: dict[str, Any]) -> int:
    db = open_database(args, config)
    db.add_user(args.user_id, args.name or args.user_id)
    print(f"User {args.user_id} added")
    return 0


def cmd_pick(args: argparse.Namespace, config: dict[str, Any]) -> int:
    """Submit a pick."""
    db = open_database(args, config)
    pick = PickService(db).create_pick(
        user_id=args.user_id,
        league_id=args.league_id,
        game_id=args.game_id,
        player_id=args.player_id,
        player_name=args.name or "",
    )
    print(f"Pick {pick.id} saved: {pick.user_id} -> {pick.player_name or pick.player_id}")
    return 0


def cmd_unpick(args: argparse.Namespace, config: dict[str, Any]) -> int:
    db = open_database(args, config)
    PickService(db).delete_pick(args.pick_id, args.user)
    print(f"Pick {args.pick_id} deleted")
    return 0


def cmd_lock(args: argparse.Namespace, config: dict[str, Any]) -> int:
    """Lock picks of every game past its lock time."""
    db = open_database(args, config)
    count = PickService(db).lock_due_picks()
    print(f"Locked {count} picks")
    return 0


def cmd_resolve(args: argparse.Namespace, config: dict[str, Any]) -> int:
    """Resolve a finished game from live or historical data."""
    db = open_database(args, config)
    game = db.get_game(args.game_id)
    if game is None:
        print(f"ERROR: Game {args.game_id} not found")
        return 1

    with NHLApiClient(config=config) as api:
        roster = load_roster(api, config)

        payload = None
        if game.external_id is not None and not args.historical:
            payload = LiveGameDataProvider(api).fetch(game.external_id)
        if payload is None and args.historical:
            payload = HistoricalGameDataProvider(api, config["team"]["abbrev"]).fetch_last_completed()

    if payload is None:
        print(f"Game {args.game_id}: results not available yet")
        return 0

    outcome = build_resolver(db, config).resolve_game(game.id, roster, payload, force=args.force)
    print_outcome(outcome)
    return 0


def cmd_simulate(args: argparse.Namespace, config: dict[str, Any]) -> int:
    """Complete a game with simulated stats and resolve it."""
    db = open_database(args, config)
    with NHLApiClient(config=config) as api:
        roster = load_roster(api, config)

    outcome = build_resolver(db, config, seed=args.seed).simulate_game(args.game_id, roster)
    print_outcome(outcome)
    return 0


def cmd_order(args: argparse.Namespace, config: dict[str, Any]) -> int:
    """Show or change the draft order."""
    db = open_database(args, config)
    service = DraftOrderService(db)

    if args.action == "rotate":
        order = service.rotate()
    elif args.action == "set":
        order = service.set_order(args.user_ids)
    elif args.action == "remove":
        if len(args.user_ids) != 1:
            print("ERROR: Specify exactly one user to remove")
            return 1
        order = service.remove_user(args.user_ids[0])
    else:
        order = service.visible_order()

    if not order:
        print("Draft order is empty")
        return 0

    print("Draft order:")
    for position, user_id in enumerate(order, start=1):
        print(f"  {position}. {user_id}")
    return 0


def cmd_standings(args: argparse.Namespace, config: dict[str, Any]) -> int:
    """Show season totals."""
    db = open_database(args, config)
    if args.league:
        totals = build_resolver(db, config).season_totals(args.league)
        scores = sorted(totals.items(), key=lambda item: (-item[1], item[0]))
    else:
        scores = [(score.user_id, score.total_points) for score in db.get_season_scores()]

    if not scores:
        print("No scores yet")
        return 0

    print("=" * 30)
    print("Standings")
    print("=" * 30)
    for rank, (user_id, points) in enumerate(scores, start=1):
        print(f"{rank:>3}. {user_id:<20} {points:>4}")
    return 0


def cmd_reset_season(args: argparse.Namespace, config: dict[str, Any]) -> int:
    """Zero season totals."""
    if not args.yes:
        confirm = input("This will reset every season total to 0.\nContinue? [y/N]: ")
        if confirm.lower() != "y":
            print("Cancelled.")
            return 0

    db = open_database(args, config)
    build_resolver(db, config).reset_season()
    print("Season scores reset.")
    return 0


def cmd_status(args: argparse.Namespace, config: dict[str, Any]) -> int:
    db = open_database(args, config)
    stats = db.get_database_stats()
    print("Database:")
    print(f"  Games: {stats['resolved_games']} resolved ({stats['total_games']} total)")
    print(f"  Picks: {stats['total_picks']}")
    print(f"  Users: {stats['total_users']}")
    return 0


COMMANDS = {
    "sync": cmd_sync,
    "add-game": cmd_add_game,
    "set-status": cmd_set_status,
    "add-user": cmd_add_user,
    "pick": cmd_pick,
    "unpick": cmd_unpick,
    "lock": cmd_lock,
    "resolve": cmd_resolve,
    "simulate": cmd_simulate,
    "order": cmd_order,
    "standings": cmd_standings,
    "reset-season": cmd_reset_season,
    "status": cmd_status,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pickem",
        description="Hockey pick'em pool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pickem sync                                   # Load the season schedule
  pickem pick alice league1 2024020001 team     # Pick the team
  pickem resolve 2024020001                     # Score a finished game
  pickem resolve 2024020001 --historical        # Score using the last real game
  pickem simulate 2024020001 --seed 7           # Score with simulated stats
  pickem order rotate                           # Rotate the draft order
        """,
    )
    parser.add_argument("--config", default=None, help="Path to config YAML")
    parser.add_argument("--db", default=None, help="Path to SQLite database")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    subparsers.add_parser("sync", help="Store the team's season schedule")

    add_game = subparsers.add_parser("add-game", help="Add a game by hand")
    add_game.add_argument("game_id")
    add_game.add_argument("--start", required=True, help="Start time, ISO 8601")
    add_game.add_argument("--opponent", default="")
    add_game.add_argument("--away", action="store_true", help="Tracked team plays away")
    add_game.add_argument("--external-id", type=int, default=None, help="NHL game id")
    add_game.add_argument(
        "--status", default=GameStatus.SCHEDULED.value, choices=[s.value for s in GameStatus]
    )

    set_status = subparsers.add_parser("set-status", help="Change a game's status")
    set_status.add_argument("game_id")
    set_status.add_argument("status", choices=[s.value for s in GameStatus])

    add_user = subparsers.add_parser("add-user", help="Register a user")
    add_user.add_argument("user_id")
    add_user.add_argument("--name", default=None)

    pick = subparsers.add_parser("pick", help="Submit a pick")
    pick.add_argument("user_id")
    pick.add_argument("league_id")
    pick.add_argument("game_id")
    pick.add_argument("player_id", help="Roster player id, or 'team'")
    pick.add_argument("--name", default=None, help="Player display name")

    unpick = subparsers.add_parser("unpick", help="Withdraw a pick")
    unpick.add_argument("pick_id", type=int)
    unpick.add_argument("--user", default=None, help="Only if owned by this user")

    subparsers.add_parser("lock", help="Lock picks of games past lock time")

    resolve = subparsers.add_parser("resolve", help="Score a finished game")
    resolve.add_argument("game_id")
    resolve.add_argument(
        "--historical", action="store_true", help="Use the team's last completed game"
    )
    resolve.add_argument("--force", action="store_true", help="Re-resolve a resolved game")

    simulate = subparsers.add_parser("simulate", help="Score a game with simulated stats")
    simulate.add_argument("game_id")
    simulate.add_argument("--seed", type=int, default=None)

    order = subparsers.add_parser("order", help="Show or change the draft order")
    order.add_argument(
        "action", nargs="?", default="show", choices=["show", "rotate", "set", "remove"]
    )
    order.add_argument("user_ids", nargs="*")

    standings = subparsers.add_parser("standings", help="Show season totals")
    standings.add_argument("--league", default=None, help="Show totals for one league only")

    reset = subparsers.add_parser("reset-season", help="Zero season totals")
    reset.add_argument("--yes", action="store_true", help="Skip confirmation")

    subparsers.add_parser("status", help="Show database summary")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    config = load_config(args.config)
    configure_logging(args.verbose, config["logging"]["level"])

    command = COMMANDS.get(args.command)
    if command is None:
        parser.print_help()
        return 0

    try:
        return command(args, config)
    except PickemError as e:
        logger.debug(f"{type(e).__name__}: {e}")
        print(f"ERROR: {e.user_message}")
        return 1
    except httpx.HTTPError as e:
        print(f"ERROR: NHL API request failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
