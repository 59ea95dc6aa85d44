"""
Pick Data Model

Pydantic models for user picks, the draft order and season totals.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

# Sentinel player id for picking the tracked team instead of a player
TEAM_PICK = "team"


class PickState(str, Enum):
    """Lifecycle state of the picks for one game."""

    OPEN = "open"
    LOCKED = "locked"
    RESOLVED = "resolved"


class Pick(BaseModel):
    """A user's single selection for one game in one league."""

    id: int | None = None
    user_id: str
    league_id: str
    game_id: str
    player_id: str
    player_name: str = ""
    points_earned: int = 0
    created_at: datetime
    locked_at: datetime | None = None

    @property
    def is_team_pick(self) -> bool:
        return self.player_id == TEAM_PICK

    @property
    def is_locked(self) -> bool:
        return self.locked_at is not None


class DraftOrder(BaseModel):
    """Order in which users take turns picking."""

    user_ids: list[str] = Field(default_factory=list)
    updated_at: datetime | None = None


class SeasonScore(BaseModel):
    """Cumulative points for a user across the season."""

    user_id: str
    total_points: int = 0
