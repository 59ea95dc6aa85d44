"""
Game Data Model

Pydantic models for games, the canonical per-player goal/assist events,
and the per-game result snapshot produced at resolution time.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from pickem.models.player import Player, PlayerPosition, normalize_position


class GameStatus(str, Enum):
    """Game status enumeration."""

    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    FINAL = "final"
    POSTPONED = "postponed"
    CANCELLED = "cancelled"

    # Simulated-game variant
    UPCOMING = "upcoming"
    COMPLETED = "completed"


PREGAME_STATUSES = {GameStatus.SCHEDULED, GameStatus.UPCOMING}
COMPLETE_STATUSES = {GameStatus.FINAL, GameStatus.COMPLETED}


class GoalEvent(BaseModel):
    """A single goal credited to a player of the tracked team."""

    player_id: str
    is_overtime: bool = False
    is_shorthanded: bool = False
    is_empty_net: bool = False

    class Config:
        frozen = True


class AssistEvent(BaseModel):
    """A single assist credited to a player of the tracked team."""

    player_id: str
    is_shorthanded: bool = False

    class Config:
        frozen = True


class GamePlayerStats(BaseModel):
    """
    Canonical statistics for one player in one game.

    Roster players always get a record, with empty event lists when they
    did not score. Stat lines that could not be matched to the roster are
    kept with ``matched=False`` and ``player_id`` set to the raw external id.
    """

    player_id: str
    position: PlayerPosition = PlayerPosition.UNKNOWN
    goals: list[GoalEvent] = Field(default_factory=list)
    assists: list[AssistEvent] = Field(default_factory=list)
    external_id: int | None = None
    matched: bool = True

    @field_validator("position", mode="before")
    @classmethod
    def _normalize_position(cls, value):
        return normalize_position(value)

    @property
    def goal_count(self) -> int:
        return len(self.goals)

    @property
    def assist_count(self) -> int:
        return len(self.assists)


class Game(BaseModel):
    """
    A game of the tracked team.

    Final goal counts and status are frozen once ``resolved_at`` is set.
    """

    id: str
    opponent: str = ""
    start_time: datetime
    is_home: bool = True
    status: GameStatus = GameStatus.SCHEDULED
    external_id: int | None = None

    # Final outcome
    team_goals: int = 0
    opponent_goals: int = 0
    overtime: bool = False
    shootout: bool = False
    empty_net_goals: int = 0

    resolved_at: datetime | None = None

    @property
    def is_pregame(self) -> bool:
        """Check if the game has not started yet."""
        return self.status in PREGAME_STATUSES

    @property
    def is_complete(self) -> bool:
        """Check if game is complete."""
        return self.status in COMPLETE_STATUSES

    @property
    def is_resolved(self) -> bool:
        return self.resolved_at is not None


class GameResult(BaseModel):
    """Immutable per-game result created once per resolution."""

    game_id: str
    player_stats: list[GamePlayerStats] = Field(default_factory=list)
    unmatched_stats: list[GamePlayerStats] = Field(default_factory=list)
    team_points: int = 0
    team_goals: int = 0
    opponent_goals: int = 0
    overtime: bool = False
    shootout: bool = False
    empty_net_goals: int = 0
    completed_at: datetime

    class Config:
        frozen = True

    def find_stats(self, player: Player) -> GamePlayerStats | None:
        """
        Find the stats record for a roster player.

        Matches by roster id first, then by the external id carried on
        unmatched records.
        """
        for stats in self.player_stats:
            if stats.player_id == player.id:
                return stats

        if player.external_id is not None:
            external = str(player.external_id)
            for stats in self.player_stats + self.unmatched_stats:
                if stats.player_id == external or stats.external_id == player.external_id:
                    return stats

        return None

    def find_stats_by_id(self, player_id: str) -> GamePlayerStats | None:
        """Find stats by roster id or raw external id."""
        for stats in self.player_stats + self.unmatched_stats:
            if stats.player_id == player_id:
                return stats
            if stats.external_id is not None and str(stats.external_id) == player_id:
                return stats
        return None
