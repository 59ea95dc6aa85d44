"""Canonical output of stat normalization."""

from dataclasses import dataclass, field

from pickem.analytics.scoring import team_bonus
from pickem.models.game import GamePlayerStats


@dataclass
class NormalizedGame:
    """
    Per-player stats plus the final figures needed for scoring.

    ``available`` is False when the source had no stats yet; in that case
    every list is empty and the team bonus is zero.
    """

    available: bool
    player_stats: list[GamePlayerStats] = field(default_factory=list)
    unmatched_stats: list[GamePlayerStats] = field(default_factory=list)
    team_goals: int = 0
    opponent_goals: int = 0
    overtime: bool = False
    shootout: bool = False
    empty_net_goals: int = 0
    source: str = "none"

    @property
    def team_points(self) -> int:
        if not self.available:
            return 0
        return team_bonus(self.team_goals)

    @classmethod
    def not_ready(cls, source: str = "none") -> "NormalizedGame":
        return cls(available=False, source=source)
