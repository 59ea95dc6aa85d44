"""
Player Data Model

Pydantic models for roster players and the position codes used to pick
a scoring rule.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, field_validator


class PlayerPosition(str, Enum):
    """Player position enumeration."""

    CENTER = "C"
    LEFT_WING = "LW"
    RIGHT_WING = "RW"
    FORWARD = "F"
    DEFENSEMAN = "D"
    GOALIE = "G"
    UNKNOWN = "U"


class PositionGroup(str, Enum):
    """Scoring group a position collapses to."""

    FORWARD = "Forward"
    DEFENSE = "Defense"
    GOALIE = "Goalie"


# Aliases seen across roster, boxscore and hand-entered data
POSITION_ALIASES: dict[str, PlayerPosition] = {
    "C": PlayerPosition.CENTER,
    "CENTER": PlayerPosition.CENTER,
    "L": PlayerPosition.LEFT_WING,
    "LW": PlayerPosition.LEFT_WING,
    "LEFT WING": PlayerPosition.LEFT_WING,
    "R": PlayerPosition.RIGHT_WING,
    "RW": PlayerPosition.RIGHT_WING,
    "RIGHT WING": PlayerPosition.RIGHT_WING,
    "F": PlayerPosition.FORWARD,
    "FORWARD": PlayerPosition.FORWARD,
    "D": PlayerPosition.DEFENSEMAN,
    "DEFENSE": PlayerPosition.DEFENSEMAN,
    "DEFENSEMAN": PlayerPosition.DEFENSEMAN,
    "G": PlayerPosition.GOALIE,
    "GOALIE": PlayerPosition.GOALIE,
}

FORWARD_POSITIONS = {
    PlayerPosition.CENTER,
    PlayerPosition.LEFT_WING,
    PlayerPosition.RIGHT_WING,
    PlayerPosition.FORWARD,
}


def normalize_position(code: Any) -> PlayerPosition:
    """
    Resolve a raw position code to a PlayerPosition.

    Single-letter wing codes ("L", "R") become LW/RW. Anything
    unrecognized becomes UNKNOWN rather than raising.
    """
    if isinstance(code, PlayerPosition):
        return code
    if not isinstance(code, str):
        return PlayerPosition.UNKNOWN
    return POSITION_ALIASES.get(code.strip().upper(), PlayerPosition.UNKNOWN)


def position_group(position: Any) -> PositionGroup | None:
    """Collapse a position to its scoring group, or None if unknown."""
    normalized = normalize_position(position)
    if normalized in FORWARD_POSITIONS:
        return PositionGroup.FORWARD
    if normalized == PlayerPosition.DEFENSEMAN:
        return PositionGroup.DEFENSE
    if normalized == PlayerPosition.GOALIE:
        return PositionGroup.GOALIE
    return None


class Player(BaseModel):
    """
    A roster player eligible to be picked.

    ``id`` is the internal roster id; ``external_id`` is the NHL player id
    used to correlate boxscore lines.
    """

    id: str
    name: str
    number: int | None = None
    position: PlayerPosition = PlayerPosition.UNKNOWN
    external_id: int | None = None
    is_active: bool = True

    class Config:
        """Pydantic configuration."""

        frozen = True

    @field_validator("position", mode="before")
    @classmethod
    def _normalize_position(cls, value: Any) -> PlayerPosition:
        return normalize_position(value)

    @property
    def last_name(self) -> str:
        """Last whitespace-separated token of the display name."""
        parts = self.name.split()
        return parts[-1] if parts else ""

    @property
    def group(self) -> PositionGroup | None:
        return position_group(self.position)

    @property
    def is_goalie(self) -> bool:
        """Check if player is a goalie."""
        return self.group == PositionGroup.GOALIE

    @property
    def is_forward(self) -> bool:
        """Check if player is a forward."""
        return self.group == PositionGroup.FORWARD

    @property
    def is_defenseman(self) -> bool:
        """Check if player is a defenseman."""
        return self.group == PositionGroup.DEFENSE
