"""
Scoring Rules

Pure point calculations for picked players and the team bonus.

Rules:
    - Forward goal: 2 points, 7 in overtime
    - Defenseman goal: 3 points, 8 in overtime
    - Skater assist: 1 point
    - Shorthanded goals and assists are doubled (after the OT base is chosen)
    - Goalie: 5 for a shutout, 3 for 1-2 goals against, 0 for 3+,
      plus 5 per assist. Empty-net goals do not count against the goalie.
    - Team: 0 at 3 goals or fewer, otherwise the full goal count
"""

from loguru import logger

from pickem.models.game import AssistEvent, GamePlayerStats, GoalEvent
from pickem.models.player import PositionGroup, position_group

FORWARD_GOAL = 2
FORWARD_OT_GOAL = 7
DEFENSEMAN_GOAL = 3
DEFENSEMAN_OT_GOAL = 8
SKATER_ASSIST = 1
SHORTHANDED_MULTIPLIER = 2

GOALIE_SHUTOUT = 5
GOALIE_ONE_OR_TWO_AGAINST = 3
GOALIE_ASSIST = 5

TEAM_GOALS_THRESHOLD = 3


def forward_goal_points(goal: GoalEvent) -> int:
    """Points for a goal scored by a forward."""
    points = FORWARD_OT_GOAL if goal.is_overtime else FORWARD_GOAL
    if goal.is_shorthanded:
        points *= SHORTHANDED_MULTIPLIER
    return points


def defenseman_goal_points(goal: GoalEvent) -> int:
    """Points for a goal scored by a defenseman."""
    points = DEFENSEMAN_OT_GOAL if goal.is_overtime else DEFENSEMAN_GOAL
    if goal.is_shorthanded:
        points *= SHORTHANDED_MULTIPLIER
    return points


def skater_assist_points(assist: AssistEvent) -> int:
    """Points for an assist by a forward or defenseman."""
    points = SKATER_ASSIST
    if assist.is_shorthanded:
        points *= SHORTHANDED_MULTIPLIER
    return points


def goals_against(opponent_goals: int, empty_net_goals: int = 0) -> int:
    """Goals charged to the goalie, excluding empty-net goals."""
    return max(0, opponent_goals - empty_net_goals)


def goalie_points(goals_allowed: int, assists: int = 0) -> int:
    """
    Points for a goalie.

    Args:
        goals_allowed: Goals against, already net of empty-net goals
        assists: Number of assists credited to the goalie

    Returns:
        Point total
    """
    if goals_allowed <= 0:
        points = GOALIE_SHUTOUT
    elif goals_allowed <= 2:
        points = GOALIE_ONE_OR_TWO_AGAINST
    else:
        points = 0

    return points + assists * GOALIE_ASSIST


def team_bonus(team_goals: int) -> int:
    """Team pick points: the full goal count once past the threshold."""
    if team_goals <= TEAM_GOALS_THRESHOLD:
        return 0
    return team_goals


def player_points(
    stats: GamePlayerStats,
    opponent_goals: int = 0,
    empty_net_goals: int = 0,
) -> int:
    """
    Score one player's game according to their position.

    Args:
        stats: Canonical stats for the player
        opponent_goals: Goals scored against the tracked team
        empty_net_goals: Opponent goals scored into an empty net

    Returns:
        Point total; 0 for an unrecognized position
    """
    group = position_group(stats.position)

    if group == PositionGroup.GOALIE:
        allowed = goals_against(opponent_goals, empty_net_goals)
        return goalie_points(allowed, stats.assist_count)

    if group == PositionGroup.FORWARD:
        goal_rule = forward_goal_points
    elif group == PositionGroup.DEFENSE:
        goal_rule = defenseman_goal_points
    else:
        logger.warning(
            f"Unknown position {stats.position!r} for player {stats.player_id}, scoring 0"
        )
        return 0

    total = sum(goal_rule(goal) for goal in stats.goals)
    total += sum(skater_assist_points(assist) for assist in stats.assists)
    return total
