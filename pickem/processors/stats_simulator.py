"""
Stats Simulator

Generates a plausible stat sheet for a game when no external data is
available. Used for test leagues and for off-days where the pool still
wants a result.

Distribution:
    - Team and opponent goals uniform in 1-6
    - Goal scorer: 70% forward, 25% defenseman, 5% goalie
    - Assists per goal: 0 (10%), 1 (70%), 2 (15%), 3 (5%)
    - 12% of goals are shorthanded; their assists inherit the flag
    - A tie after regulation goes to overtime; 70% of those reach a
      shootout, otherwise a coin flip decides who scores the OT goal
"""

import numpy as np
from loguru import logger

from pickem.models.game import AssistEvent, Game, GamePlayerStats, GoalEvent
from pickem.models.player import Player, PositionGroup
from pickem.processors.normalized import NormalizedGame


class StatsSimulator:
    """Random stat generator backed by a seedable numpy Generator."""

    MIN_GOALS = 1
    MAX_GOALS = 6

    FORWARD_SCORER_WEIGHT = 0.70
    DEFENSE_SCORER_WEIGHT = 0.25

    # Cumulative thresholds for 0/1/2/3 assists
    ASSIST_THRESHOLDS = (0.10, 0.80, 0.95)

    SHORTHANDED_PROBABILITY = 0.12
    SHOOTOUT_PROBABILITY = 0.70
    TEAM_WINS_OT_PROBABILITY = 0.50

    def __init__(self, seed: int | None = None):
        """
        Initialize the simulator.

        Args:
            seed: Random seed for reproducible games
        """
        self._rng = np.random.default_rng(seed)

    def _draw_goals(self) -> int:
        return int(self._rng.integers(self.MIN_GOALS, self.MAX_GOALS + 1))

    def _scorer_group(self) -> PositionGroup:
        roll = self._rng.random()
        if roll < self.FORWARD_SCORER_WEIGHT:
            return PositionGroup.FORWARD
        if roll < self.FORWARD_SCORER_WEIGHT + self.DEFENSE_SCORER_WEIGHT:
            return PositionGroup.DEFENSE
        return PositionGroup.GOALIE

    def _assist_count(self) -> int:
        roll = self._rng.random()
        for count, threshold in enumerate(self.ASSIST_THRESHOLDS):
            if roll < threshold:
                return count
        return len(self.ASSIST_THRESHOLDS)

    def _pick(self, players: list[Player]) -> Player:
        return players[int(self._rng.integers(0, len(players)))]

    def simulate(self, game: Game, roster: list[Player]) -> NormalizedGame:
        """
        Simulate final score and per-player stats for a game.

        Args:
            game: Game being simulated (only used for logging)
            roster: Eligible players; every one gets a stats record

        Returns:
            NormalizedGame with one record per roster player
        """
        team_goals = self._draw_goals()
        opponent_goals = self._draw_goals()

        overtime = team_goals == opponent_goals
        shootout = False
        team_scored_ot = False
        if overtime:
            shootout = bool(self._rng.random() < self.SHOOTOUT_PROBABILITY)
            if not shootout:
                team_scored_ot = bool(self._rng.random() < self.TEAM_WINS_OT_PROBABILITY)
                if team_scored_ot:
                    team_goals += 1
                else:
                    opponent_goals += 1

        stats = {
            player.id: GamePlayerStats(player_id=player.id, position=player.position)
            for player in roster
        }

        if not roster:
            logger.warning(f"Simulating game {game.id} with an empty roster")
        else:
            by_group: dict[PositionGroup, list[Player]] = {}
            for player in roster:
                if player.group is not None:
                    by_group.setdefault(player.group, []).append(player)

            for i in range(team_goals):
                eligible = by_group.get(self._scorer_group()) or roster
                scorer = self._pick(eligible)
                is_shorthanded = bool(self._rng.random() < self.SHORTHANDED_PROBABILITY)
                is_overtime = team_scored_ot and i == team_goals - 1

                stats[scorer.id].goals.append(
                    GoalEvent(
                        player_id=scorer.id,
                        is_overtime=is_overtime,
                        is_shorthanded=is_shorthanded,
                    )
                )

                teammates = [p for p in roster if p.id != scorer.id]
                count = min(self._assist_count(), len(teammates))
                if count:
                    chosen = self._rng.choice(len(teammates), size=count, replace=False)
                    for idx in chosen:
                        helper = teammates[int(idx)]
                        stats[helper.id].assists.append(
                            AssistEvent(player_id=helper.id, is_shorthanded=is_shorthanded)
                        )

        logger.info(
            f"Simulated game {game.id}: {team_goals}-{opponent_goals}"
            f"{' (OT)' if overtime and not shootout else ''}{' (SO)' if shootout else ''}"
        )

        return NormalizedGame(
            available=True,
            player_stats=list(stats.values()),
            team_goals=team_goals,
            opponent_goals=opponent_goals,
            overtime=overtime,
            shootout=shootout,
            empty_net_goals=0,
            source="simulated",
        )
