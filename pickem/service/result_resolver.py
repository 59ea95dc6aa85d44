"""
Result Resolver

Turns a finished game into points for every pick on it.

Flow for one game:
    1. Guard: game exists, is complete, and has not been resolved yet
    2. Normalize the payload (live, historical or simulated) into canonical stats
    3. Score every pick against the stats
    4. Persist in one transaction: final figures, result snapshot, pick points,
       pick locks, recomputed season totals
    5. Rotate the draft order on the first resolution, in the same transaction

Season totals are always recomputed from the stored history, so repeated
or forced resolutions never double-count.
"""

import threading
from collections import defaultdict
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable, Generator

from loguru import logger

from pickem.analytics.scoring import player_points
from pickem.database.db import Database
from pickem.errors import AlreadyResolvedError, GameNotFinalError, GameNotFoundError
from pickem.models.game import Game, GameResult, GameStatus
from pickem.models.pick import Pick
from pickem.models.player import Player
from pickem.processors.normalized import NormalizedGame
from pickem.processors.stat_normalizer import StatNormalizer
from pickem.service.draft_order import DraftOrderService
from pickem.service.pick_lifecycle import as_utc, utc_now

NOT_READY_MESSAGE = "results not available yet"


class ResolutionStatus(str, Enum):
    RESOLVED = "resolved"
    NOT_READY = "not_ready"


@dataclass
class ResolutionOutcome:
    """What happened when a game was resolved."""

    game_id: str
    status: ResolutionStatus
    # league id -> user id -> points earned this game
    user_points: dict[str, dict[str, int]] = field(default_factory=dict)
    result: GameResult | None = None
    season_totals: dict[str, int] = field(default_factory=dict)
    draft_order: list[str] | None = None
    message: str = ""

    @property
    def is_resolved(self) -> bool:
        return self.status == ResolutionStatus.RESOLVED


def pick_points(pick: Pick, result: GameResult, roster: list[Player] | None = None) -> int:
    """
    Points earned by a single pick.

    Team picks earn the team bonus. Player picks are matched by roster id
    first, then by the external id kept on unmatched records.
    """
    if pick.is_team_pick:
        return result.team_points

    stats = None
    player = next((p for p in roster or [] if p.id == pick.player_id), None)
    if player is not None:
        stats = result.find_stats(player)
    if stats is None:
        stats = result.find_stats_by_id(pick.player_id)

    if stats is None:
        logger.warning(
            f"No stats for picked player {pick.player_id} ({pick.player_name or 'unknown'}) "
            f"in game {result.game_id}, scoring 0"
        )
        return 0

    return player_points(stats, result.opponent_goals, result.empty_net_goals)


def calculate_user_scores(
    picks: list[Pick],
    result: GameResult,
    roster: list[Player] | None = None,
) -> dict[str, int]:
    """
    Map each user to the points earned this game.

    Args:
        picks: Picks for the game, normally from a single league
        result: Canonical result snapshot
        roster: Roster used to resolve external ids of picked players

    Returns:
        Dictionary of user id to points
    """
    scores: dict[str, int] = defaultdict(int)
    for pick in picks:
        scores[pick.user_id] += pick_points(pick, result, roster)
    return dict(scores)


class ResultResolver:
    """
    Resolves finished games and keeps season totals consistent.

    Example:
        resolver = ResultResolver(db, StatNormalizer(team_id=17))
        outcome = resolver.resolve_game("g1", roster, payload)
        if not outcome.is_resolved:
            print(outcome.message)
    """

    def __init__(
        self,
        db: Database,
        normalizer: StatNormalizer | None = None,
        draft_order: DraftOrderService | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Initialize the resolver.

        Args:
            db: Persistence collaborator
            normalizer: Stat normalizer; a default one simulates when no payload is given
            draft_order: Draft order service rotated after each resolution
            clock: Returns the current time; defaults to UTC wall clock
        """
        self.db = db
        self.normalizer = normalizer or StatNormalizer()
        self.clock = clock or utc_now
        self.draft_order = draft_order or DraftOrderService(db, clock=self.clock)

        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _game_lock(self, game_id: str) -> Generator[None, None, None]:
        with self._locks_guard:
            lock = self._locks.setdefault(game_id, threading.Lock())
        with lock:
            yield

    def _check_resolvable(self, game_id: str, force: bool) -> tuple[Game, list[Pick]]:
        game = self.db.get_game(game_id)
        if game is None:
            raise GameNotFoundError(f"Game not found: {game_id}")

        if not game.is_complete:
            logger.warning(f"Refusing to resolve game {game_id} with status {game.status.value}")
            raise GameNotFinalError(f"Game {game_id} is {game.status.value}, not final")

        picks = self.db.picks_for_game(game_id)
        if not force:
            scored = any(pick.points_earned != 0 for pick in picks)
            if game.is_resolved or scored or self.db.has_game_result(game_id):
                logger.warning(f"Game {game_id} already resolved")
                raise AlreadyResolvedError(f"Game {game_id} has already been resolved")

        return game, picks

    def resolve_game(
        self,
        game_id: str,
        roster: list[Player],
        payload: object = None,
        force: bool = False,
    ) -> ResolutionOutcome:
        """
        Resolve a finished game.

        Args:
            game_id: Internal game id
            roster: Eligible roster players
            payload: Live or historical payload; None simulates stats
            force: Re-resolve a game that already has a result

        Returns:
            ResolutionOutcome; NOT_READY leaves storage untouched

        Raises:
            GameNotFoundError: Unknown game
            GameNotFinalError: Game is not complete
            AlreadyResolvedError: Game already resolved and force is False
        """
        with self._game_lock(game_id):
            game, picks = self._check_resolvable(game_id, force)

            normalized = self.normalizer.normalize(game, payload, roster)
            if not normalized.available:
                logger.info(f"Game {game_id}: {NOT_READY_MESSAGE}")
                return ResolutionOutcome(
                    game_id=game_id,
                    status=ResolutionStatus.NOT_READY,
                    message=NOT_READY_MESSAGE,
                )

            now = self.clock()
            result = self._build_result(game_id, normalized, now)

            by_league: dict[str, dict[str, int]] = defaultdict(dict)
            pick_scores = []
            for pick in picks:
                points = pick_points(pick, result, roster)
                pick_scores.append((pick, points))
                league = by_league[pick.league_id]
                league[pick.user_id] = league.get(pick.user_id, 0) + points

            first_resolution = not game.is_resolved
            with self.db.transaction():
                self.db.finalize_game(self._finalized_game(game, normalized, now))
                self.db.insert_game_result(result)
                for pick, points in pick_scores:
                    self.db.set_pick_points(pick.id, points)
                self.db.lock_picks(game_id, now)
                totals = self.recompute_season_totals()

                order = None
                if first_resolution:
                    order = self._rotate_draft_order()

            logger.info(
                f"Resolved game {game_id} ({normalized.source}): "
                f"{result.team_goals}-{result.opponent_goals}, {len(picks)} picks scored"
            )

            return ResolutionOutcome(
                game_id=game_id,
                status=ResolutionStatus.RESOLVED,
                user_points=dict(by_league),
                result=result,
                season_totals=totals,
                draft_order=order,
                message=f"{len(picks)} picks scored",
            )

    def simulate_game(self, game_id: str, roster: list[Player]) -> ResolutionOutcome:
        """Complete a simulated game and resolve it with generated stats."""
        game = self.db.get_game(game_id)
        if game is None:
            raise GameNotFoundError(f"Game not found: {game_id}")
        if not game.is_complete:
            self.db.update_game_status(game_id, GameStatus.COMPLETED)
        return self.resolve_game(game_id, roster, payload=None)

    @staticmethod
    def _build_result(game_id: str, normalized: NormalizedGame, now: datetime) -> GameResult:
        return GameResult(
            game_id=game_id,
            player_stats=normalized.player_stats,
            unmatched_stats=normalized.unmatched_stats,
            team_points=normalized.team_points,
            team_goals=normalized.team_goals,
            opponent_goals=normalized.opponent_goals,
            overtime=normalized.overtime,
            shootout=normalized.shootout,
            empty_net_goals=normalized.empty_net_goals,
            completed_at=now,
        )

    @staticmethod
    def _finalized_game(game: Game, normalized: NormalizedGame, now: datetime) -> Game:
        return game.model_copy(
            update={
                "team_goals": normalized.team_goals,
                "opponent_goals": normalized.opponent_goals,
                "overtime": normalized.overtime,
                "shootout": normalized.shootout,
                "empty_net_goals": normalized.empty_net_goals,
                "resolved_at": now,
            }
        )

    def _rotate_draft_order(self) -> list[str] | None:
        if not self.draft_order.has_order():
            logger.info("No draft order stored, skipping rotation")
            return None
        return self.draft_order.rotate()

    def season_totals(self, league_id: str | None = None) -> dict[str, int]:
        """
        Compute season totals from the stored result history without saving them.

        Only games whose latest result falls inside the current season
        count. Every known user appears, with 0 if they scored nothing.

        Args:
            league_id: Restrict to one league; None sums every league

        Returns:
            Dictionary of user id to total points
        """
        season_start = self.db.get_season_start()

        latest: dict[str, GameResult] = {}
        for result in self.db.game_results():
            latest[result.game_id] = result

        counted = {
            game_id
            for game_id, result in latest.items()
            if season_start is None or as_utc(result.completed_at) >= as_utc(season_start)
        }

        totals: dict[str, int] = {user_id: 0 for user_id in self.db.get_user_ids()}
        for pick in self.db.all_picks(league_id):
            totals.setdefault(pick.user_id, 0)
            if pick.game_id in counted:
                totals[pick.user_id] += pick.points_earned
        return totals

    def recompute_season_totals(self) -> dict[str, int]:
        """Recompute totals across every league and store them as the season scores."""
        totals = self.season_totals()
        self.db.replace_season_scores(totals)
        logger.debug(f"Season totals recomputed for {len(totals)} users")
        return totals

    def reset_season(self) -> None:
        """Zero every season total; earlier results stop counting."""
        self.db.reset_season_scores(self.clock())
