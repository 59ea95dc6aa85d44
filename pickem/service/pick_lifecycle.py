"""
Pick Lifecycle

Decides whether picks for a game may still be created or deleted.

States:
    OPEN      game not started and before lock time (start - 30 minutes)
    LOCKED    lock time reached, or the game left its pre-game status
    RESOLVED  points have been assigned; set only by the result resolver
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable

from loguru import logger

from pickem.database.db import Database
from pickem.errors import (
    GameNotFoundError,
    PickConflictError,
    PickNotFoundError,
    PickOwnershipError,
    PicksLockedError,
    PlayerNotEligibleError,
)
from pickem.models.game import Game
from pickem.models.pick import TEAM_PICK, Pick, PickState

LOCK_WINDOW = timedelta(minutes=30)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def lock_time(game: Game) -> datetime:
    """Moment after which picks for the game are frozen."""
    return as_utc(game.start_time) - LOCK_WINDOW


def pick_state(game: Game, now: datetime) -> PickState:
    """Current lifecycle state of picks for a game."""
    if game.is_resolved:
        return PickState.RESOLVED
    if not game.is_pregame or as_utc(now) >= lock_time(game):
        return PickState.LOCKED
    return PickState.OPEN


class PickService:
    """
    Creates, deletes and locks picks according to the lifecycle.

    The one-pick-per-(user, league, game) rule is checked here for a
    friendly error and enforced atomically by the database constraint.
    """

    def __init__(self, db: Database, clock: Clock | None = None):
        """
        Initialize the pick service.

        Args:
            db: Persistence collaborator
            clock: Returns the current time; defaults to UTC wall clock
        """
        self.db = db
        self.clock = clock or utc_now

    def _get_game(self, game_id: str) -> Game:
        game = self.db.get_game(game_id)
        if game is None:
            raise GameNotFoundError(f"Game not found: {game_id}")
        return game

    def state_for_game(self, game_id: str) -> PickState:
        return pick_state(self._get_game(game_id), self.clock())

    def create_pick(
        self,
        user_id: str,
        league_id: str,
        game_id: str,
        player_id: str,
        player_name: str = "",
        eligible_player_ids: Iterable[str] | None = None,
    ) -> Pick:
        """
        Submit a pick.

        Args:
            user_id: User making the pick
            league_id: League the pick counts for
            game_id: Game being picked
            player_id: Roster player id, or "team"
            player_name: Display name stored with the pick
            eligible_player_ids: When given, player_id must be one of these

        Returns:
            The stored pick

        Raises:
            PicksLockedError: The game is no longer open for picks
            PickConflictError: The user already picked this game in this league
        """
        now = self.clock()
        game = self._get_game(game_id)

        state = pick_state(game, now)
        if state != PickState.OPEN:
            logger.warning(
                f"Rejected pick by {user_id} for game {game_id}: picks are {state.value}"
            )
            raise PicksLockedError(
                f"Picks for game {game_id} locked at {lock_time(game).isoformat()}"
            )

        if eligible_player_ids is not None and player_id != TEAM_PICK:
            if player_id not in set(eligible_player_ids):
                raise PlayerNotEligibleError(f"Player {player_id} is not eligible")

        if self.db.find_pick(user_id, league_id, game_id) is not None:
            logger.warning(f"Rejected duplicate pick by {user_id} for game {game_id}")
            raise PickConflictError(
                f"User {user_id} already picked game {game_id} in league {league_id}"
            )

        pick = self.db.insert_pick(
            Pick(
                user_id=user_id,
                league_id=league_id,
                game_id=game_id,
                player_id=player_id,
                player_name=player_name,
                created_at=now,
            )
        )
        logger.info(f"Pick {pick.id}: {user_id} took {player_id} for game {game_id}")
        return pick

    def delete_pick(self, pick_id: int, user_id: str | None = None) -> None:
        """
        Withdraw a pick while the game is still open.

        Raises:
            PicksLockedError: The pick or its game is locked
        """
        pick = self.db.get_pick(pick_id)
        if pick is None:
            raise PickNotFoundError(f"Pick not found: {pick_id}")
        if user_id is not None and pick.user_id != user_id:
            raise PickOwnershipError(f"Pick {pick_id} belongs to another user")

        game = self._get_game(pick.game_id)
        if pick.is_locked or pick_state(game, self.clock()) != PickState.OPEN:
            logger.warning(f"Rejected deletion of locked pick {pick_id}")
            raise PicksLockedError(f"Pick {pick_id} is locked")

        self.db.delete_pick(pick_id)
        logger.info(f"Pick {pick_id} deleted")

    def get_user_pick(self, user_id: str, league_id: str, game_id: str) -> Pick | None:
        return self.db.find_pick(user_id, league_id, game_id)

    def picks_for_game(self, game_id: str) -> list[Pick]:
        return self.db.picks_for_game(game_id)

    def lock_due_picks(self) -> int:
        """
        Stamp locked_at on picks of every game that has reached LOCKED.

        Returns:
            Number of picks newly locked
        """
        now = self.clock()
        locked = 0
        for game in self.db.list_games():
            if pick_state(game, now) == PickState.LOCKED:
                locked += self.db.lock_picks(game.id, now)
        if locked:
            logger.info(f"Locked {locked} picks")
        return locked
