"""
Data Models Module

This module contains Pydantic models for the pick'em domain.

Models:
    - Player: Roster player and position codes
    - Game: Game record, canonical goal/assist events and results
    - Pick: User picks, draft order and season totals
"""

from pickem.models.player import (
    Player,
    PlayerPosition,
    PositionGroup,
    normalize_position,
    position_group,
)
from pickem.models.game import (
    AssistEvent,
    Game,
    GamePlayerStats,
    GameResult,
    GameStatus,
    GoalEvent,
)
from pickem.models.pick import TEAM_PICK, DraftOrder, Pick, PickState, SeasonScore

__all__ = [
    "Player",
    "PlayerPosition",
    "PositionGroup",
    "normalize_position",
    "position_group",
    "AssistEvent",
    "Game",
    "GamePlayerStats",
    "GameResult",
    "GameStatus",
    "GoalEvent",
    "TEAM_PICK",
    "DraftOrder",
    "Pick",
    "PickState",
    "SeasonScore",
]
