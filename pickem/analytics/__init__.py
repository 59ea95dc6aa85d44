"""
Analytics Module

Scoring rules that turn canonical game stats into pick'em points.
"""

from pickem.analytics.scoring import (
    defenseman_goal_points,
    forward_goal_points,
    goalie_points,
    goals_against,
    player_points,
    skater_assist_points,
    team_bonus,
)

__all__ = [
    "defenseman_goal_points",
    "forward_goal_points",
    "goalie_points",
    "goals_against",
    "player_points",
    "skater_assist_points",
    "team_bonus",
]
