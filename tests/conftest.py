"""
Pytest Configuration and Fixtures

Shared fixtures for the pick'em test suite: a small roster, gamecenter
payloads for a 5-2 home win, a temporary database and a fixed clock.
"""

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock

import pytest

from pickem.database.db import Database
from pickem.models.game import Game, GameStatus
from pickem.models.player import Player

DET_ID = 17
TOR_ID = 10

LARKIN = 8478403
DEBRINCAT = 8479337
RAYMOND = 8482078
SEIDER = 8481542
TALBOT = 8475660
CALLUP = 8470000
MATTHEWS = 8479318

GAME_START = datetime(2024, 10, 10, 23, 0, tzinfo=timezone.utc)


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: Any) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture
def roster() -> list[Player]:
    """Three forwards and a goalie."""
    return [
        Player(id=str(LARKIN), name="Dylan Larkin", number=71, position="C", external_id=LARKIN),
        Player(id=str(DEBRINCAT), name="Alex DeBrincat", number=93, position="R", external_id=DEBRINCAT),
        Player(id=str(RAYMOND), name="Lucas Raymond", number=23, position="L", external_id=RAYMOND),
        Player(id=str(TALBOT), name="Cam Talbot", number=39, position="G", external_id=TALBOT),
    ]


@pytest.fixture
def defenseman() -> Player:
    return Player(id=str(SEIDER), name="Moritz Seider", number=53, position="D", external_id=SEIDER)


def stat_entry(player_id: int, name: str, position: str, goals: int = 0, assists: int = 0) -> dict[str, Any]:
    """Boxscore skater/goalie entry in gamecenter format."""
    return {
        "playerId": player_id,
        "name": {"default": name},
        "position": position,
        "goals": goals,
        "assists": assists,
    }


@pytest.fixture
def boxscore() -> dict[str, Any]:
    """Final boxscore: DET (home) 5, TOR 2, regulation."""
    return {
        "id": 2024020001,
        "gameState": "OFF",
        "homeTeam": {"id": DET_ID, "abbrev": "DET", "score": 5},
        "awayTeam": {"id": TOR_ID, "abbrev": "TOR", "score": 2},
        "gameOutcome": {"lastPeriodType": "REG"},
        "playerByGameStats": {
            "homeTeam": {
                "forwards": [
                    stat_entry(LARKIN, "D. Larkin", "C", goals=1),
                    stat_entry(DEBRINCAT, "A. DeBrincat", "R", assists=1),
                    stat_entry(RAYMOND, "L. Raymond", "L"),
                    stat_entry(CALLUP, "J. Callup", "C", goals=4),
                ],
                "defense": [],
                "goalies": [stat_entry(TALBOT, "C. Talbot", "G")],
            },
            "awayTeam": {
                "forwards": [stat_entry(MATTHEWS, "A. Matthews", "C", goals=2)],
                "defense": [],
                "goalies": [],
            },
        },
    }


def goal_play(
    scorer: int,
    team_id: int,
    period: int = 1,
    assists: tuple[int, ...] = (),
    situation: str = "1551",
    period_type: str = "REG",
) -> dict[str, Any]:
    """Play-by-play goal event."""
    details: dict[str, Any] = {"scoringPlayerId": scorer, "eventOwnerTeamId": team_id}
    for slot, assist_id in zip(("assist1PlayerId", "assist2PlayerId"), assists):
        details[slot] = assist_id
    return {
        "typeDescKey": "goal",
        "periodDescriptor": {"number": period, "periodType": period_type},
        "situationCode": situation,
        "details": details,
    }


@pytest.fixture
def play_by_play() -> dict[str, Any]:
    """Scoring plays matching the boxscore fixture."""
    return {
        "id": 2024020001,
        "plays": [
            {"typeDescKey": "faceoff", "periodDescriptor": {"number": 1}},
            goal_play(LARKIN, DET_ID, period=1, assists=(DEBRINCAT,)),
            goal_play(CALLUP, DET_ID, period=1),
            goal_play(MATTHEWS, TOR_ID, period=2),
            goal_play(CALLUP, DET_ID, period=2),
            goal_play(CALLUP, DET_ID, period=3),
            goal_play(MATTHEWS, TOR_ID, period=3),
            goal_play(CALLUP, DET_ID, period=3),
        ],
    }


@pytest.fixture
def landing() -> dict[str, Any]:
    """Landing page with a scoring summary for a 2-1 OT win."""
    return {
        "id": 2024020002,
        "summary": {
            "scoring": [
                {
                    "periodDescriptor": {"number": 1, "periodType": "REG"},
                    "goals": [
                        {
                            "playerId": LARKIN,
                            "teamAbbrev": {"default": "DET"},
                            "strength": "sh",
                            "goalModifier": "none",
                            "assists": [{"playerId": DEBRINCAT}],
                        }
                    ],
                },
                {
                    "periodDescriptor": {"number": 2, "periodType": "REG"},
                    "goals": [
                        {
                            "playerId": MATTHEWS,
                            "teamAbbrev": {"default": "TOR"},
                            "strength": "ev",
                            "goalModifier": "none",
                            "assists": [],
                        }
                    ],
                },
                {"periodDescriptor": {"number": 3, "periodType": "REG"}, "goals": []},
                {
                    "periodDescriptor": {"number": 4, "periodType": "OT"},
                    "goals": [
                        {
                            "playerId": RAYMOND,
                            "teamAbbrev": {"default": "DET"},
                            "strength": "ev",
                            "goalModifier": "none",
                            "assists": [{"playerId": LARKIN}],
                        }
                    ],
                },
            ]
        },
    }


@pytest.fixture
def game() -> Game:
    """Scheduled home game against Toronto."""
    return Game(
        id="g1",
        opponent="TOR",
        start_time=GAME_START,
        is_home=True,
        status=GameStatus.SCHEDULED,
        external_id=2024020001,
    )


@pytest.fixture
def db(tmp_path) -> Database:
    """Initialized database in a temporary directory."""
    database = Database(tmp_path / "pickem.db")
    database.initialize()
    yield database
    database.close()


@pytest.fixture
def clock() -> FixedClock:
    """Clock set to one hour before the game."""
    return FixedClock(GAME_START - timedelta(hours=1))


@pytest.fixture
def mock_api() -> MagicMock:
    """NHL API client double."""
    return MagicMock()


@pytest.fixture
def ids() -> SimpleNamespace:
    """External ids used across the payload fixtures."""
    return SimpleNamespace(
        det=DET_ID,
        tor=TOR_ID,
        larkin=LARKIN,
        debrincat=DEBRINCAT,
        raymond=RAYMOND,
        seider=SEIDER,
        talbot=TALBOT,
        callup=CALLUP,
        matthews=MATTHEWS,
        game_start=GAME_START,
    )


@pytest.fixture
def make_goal_play():
    return goal_play


@pytest.fixture
def make_stat_entry():
    return stat_entry
