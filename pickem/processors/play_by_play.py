"""
Play-by-Play Correlation

Extracts scoring plays from the play-by-play stream (or the landing
scoring summary) and indexes them per player so boxscore goal/assist
counts can be tagged with overtime, shorthanded and empty-net flags.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any

from loguru import logger

from pickem.processors.payloads import (
    PLAYS_EXTRACTORS,
    as_int,
    first_match,
    key,
    path,
    text,
)

REGULATION_PERIODS = 3

SCORER_EXTRACTORS = (
    path("details", "scoringPlayerId"),
    key("scoringPlayerId"),
    key("playerId"),
)

PLAY_TEAM_EXTRACTORS = (
    path("details", "eventOwnerTeamId"),
    key("teamId"),
    path("details", "teamId"),
)

SITUATION_EXTRACTORS = (
    text(key("situationCode")),
    text(path("details", "situationCode")),
)

EMPTY_NET_FLAG_EXTRACTORS = (
    path("details", "emptyNet"),
    path("details", "emptyNetGoal"),
    key("emptyNet"),
)


@dataclass(frozen=True)
class ScoringPlay:
    """A goal from the event stream with its situational flags."""

    scorer_id: int
    assist_ids: tuple[int, ...]
    period: int
    is_overtime: bool
    is_shorthanded: bool
    is_empty_net: bool
    is_shootout: bool = False
    team_id: int | None = None
    team_abbrev: str | None = None
    is_home: bool | None = None


def _is_shorthanded(situation: str | None, scoring_home: bool | None) -> bool:
    """
    Decode a situation code.

    Accepts the literal "SH" or the four-digit NHL code
    (away goalie, away skaters, home skaters, home goalie). An extra
    attacker for a pulled goalie does not count toward strength.
    """
    if not situation:
        return False
    if situation.upper() == "SH":
        return True
    if len(situation) == 4 and situation.isdigit() and scoring_home is not None:
        away_skaters = int(situation[1]) - (1 if situation[0] == "0" else 0)
        home_skaters = int(situation[2]) - (1 if situation[3] == "0" else 0)
        if scoring_home:
            return home_skaters < away_skaters
        return away_skaters < home_skaters
    return False


def _empty_net_from_code(situation: str | None, scoring_home: bool | None) -> bool:
    """Defending goalie digit of 0 means the net was empty."""
    if not situation or len(situation) != 4 or not situation.isdigit():
        return False
    if scoring_home is None:
        return False
    defending_goalie = situation[0] if scoring_home else situation[3]
    return defending_goalie == "0"


def _assist_ids(play: dict[str, Any]) -> tuple[int, ...]:
    details = play.get("details") or {}
    listed = details.get("assistPlayerIds") or play.get("assistPlayerIds")
    if isinstance(listed, list):
        return tuple(as_int(pid) for pid in listed if pid is not None)

    ids = []
    for slot in ("assist1PlayerId", "assist2PlayerId", "assist3PlayerId"):
        if details.get(slot) is not None:
            ids.append(as_int(details[slot]))
    return tuple(ids)


def parse_scoring_plays(
    play_by_play: dict[str, Any] | None,
    home_team_id: int | None = None,
) -> list[ScoringPlay]:
    """
    Pull every goal out of a play-by-play document.

    Args:
        play_by_play: Raw play-by-play payload
        home_team_id: Home team id, used to decode four-digit situation codes

    Returns:
        Goals in stream order
    """
    if not isinstance(play_by_play, dict):
        return []

    plays = first_match(PLAYS_EXTRACTORS, play_by_play, default=[])
    if not isinstance(plays, list):
        logger.warning("Play-by-play has no usable plays list")
        return []

    goals = []
    for play in plays:
        if not isinstance(play, dict) or play.get("typeDescKey") != "goal":
            continue

        scorer = first_match(SCORER_EXTRACTORS, play)
        if scorer is None:
            logger.debug(f"Skipping goal play without scorer: {play.get('eventId')}")
            continue

        descriptor = play.get("periodDescriptor") or {}
        period = as_int(descriptor.get("number"), default=1)
        period_type = str(descriptor.get("periodType") or "").upper()

        team_id = first_match(PLAY_TEAM_EXTRACTORS, play)
        team_id = as_int(team_id) if team_id is not None else None
        scoring_home = None
        if team_id is not None and home_team_id is not None:
            scoring_home = team_id == home_team_id

        situation = first_match(SITUATION_EXTRACTORS, play)
        empty_flag = first_match(EMPTY_NET_FLAG_EXTRACTORS, play)
        if empty_flag is None:
            is_empty_net = _empty_net_from_code(situation, scoring_home)
        else:
            is_empty_net = bool(empty_flag)

        goals.append(
            ScoringPlay(
                scorer_id=as_int(scorer),
                assist_ids=_assist_ids(play),
                period=period,
                is_overtime=period > REGULATION_PERIODS or period_type in ("OT", "SO"),
                is_shorthanded=_is_shorthanded(situation, scoring_home),
                is_empty_net=is_empty_net,
                is_shootout=period_type == "SO",
                team_id=team_id,
                is_home=scoring_home,
            )
        )

    return goals


def parse_landing_scoring(landing: dict[str, Any] | None) -> list[ScoringPlay]:
    """
    Pull goals out of the landing page scoring summary.

    Used when no play-by-play stream is available.
    """
    if not isinstance(landing, dict):
        return []

    periods = path("summary", "scoring")(landing)
    if not isinstance(periods, list):
        return []

    goals = []
    for period_entry in periods:
        if not isinstance(period_entry, dict):
            continue
        descriptor = period_entry.get("periodDescriptor") or {}
        period = as_int(descriptor.get("number"), default=1)
        period_type = str(descriptor.get("periodType") or "").upper()

        for goal in period_entry.get("goals") or []:
            if not isinstance(goal, dict) or goal.get("playerId") is None:
                continue
            strength = str(goal.get("strength") or "").lower()
            modifier = str(goal.get("goalModifier") or "").lower()
            abbrev = first_match((path("teamAbbrev", "default"), text(key("teamAbbrev"))), goal)
            goals.append(
                ScoringPlay(
                    scorer_id=as_int(goal["playerId"]),
                    assist_ids=tuple(
                        as_int(a.get("playerId"))
                        for a in goal.get("assists") or []
                        if isinstance(a, dict) and a.get("playerId") is not None
                    ),
                    period=period,
                    is_overtime=period > REGULATION_PERIODS or period_type in ("OT", "SO"),
                    is_shorthanded=strength == "sh",
                    is_empty_net=modifier == "empty-net",
                    is_shootout=period_type == "SO",
                    team_abbrev=abbrev,
                    is_home=goal.get("isHome"),
                )
            )

    return goals


@dataclass
class SituationIndex:
    """Scoring plays of the tracked team, grouped per player."""

    goals: dict[int, list[ScoringPlay]] = field(default_factory=lambda: defaultdict(list))
    assists: dict[int, list[ScoringPlay]] = field(default_factory=lambda: defaultdict(list))

    @classmethod
    def build(cls, plays: list[ScoringPlay]) -> "SituationIndex":
        """Index plays by scorer and by each assisting player, ordered by period."""
        index = cls()
        for play in sorted(plays, key=lambda p: (p.is_shootout, p.period)):
            index.goals[play.scorer_id].append(play)
            for assist_id in play.assist_ids:
                index.assists[assist_id].append(play)
        return index

    def goal_play(self, player_id: int | None, nth: int) -> ScoringPlay | None:
        """The player's nth goal in the stream, if known."""
        if player_id is None:
            return None
        plays = self.goals.get(player_id, [])
        return plays[nth] if nth < len(plays) else None

    def assist_play(self, player_id: int | None, nth: int) -> ScoringPlay | None:
        """The play of the player's nth assist, if known."""
        if player_id is None:
            return None
        plays = self.assists.get(player_id, [])
        return plays[nth] if nth < len(plays) else None
