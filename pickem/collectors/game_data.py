"""
Game Data Providers

Fetch gamecenter payloads for resolution.

Providers:
    - LiveGameDataProvider: the game being resolved, once it is final
    - HistoricalGameDataProvider: the tracked team's last completed game,
      used as a substitute when no live game correlates
    - sync_schedule: stores the tracked team's season schedule as games
"""

from datetime import datetime
from typing import Any, Optional

import httpx
from loguru import logger

from pickem.collectors.nhl_api import NHLApiClient
from pickem.database.db import Database
from pickem.models.game import Game, GameStatus
from pickem.processors.payloads import (
    HistoricalPayload,
    HistoricalSummary,
    LivePayload,
    as_int,
)

# gameState values of a finished game
FINAL_GAME_STATES = {"OFF", "FINAL", "OFFICIAL"}


def _is_not_found(error: httpx.HTTPError) -> bool:
    return isinstance(error, httpx.HTTPStatusError) and error.response.status_code == 404


def _optional(fetch, game_id: int, label: str) -> Optional[dict[str, Any]]:
    """Fetch a secondary payload; failures are logged and yield None."""
    try:
        return fetch(game_id)
    except httpx.HTTPError as e:
        logger.warning(f"No {label} for game {game_id}, continuing without it: {e}")
        return None


class LiveGameDataProvider:
    """Boxscore, landing and play-by-play for one external game id."""

    def __init__(self, api_client: NHLApiClient):
        self.api = api_client

    def fetch(self, external_game_id: int) -> Optional[LivePayload]:
        """
        Fetch payloads for a finished game.

        Args:
            external_game_id: NHL game id

        Returns:
            LivePayload, or None when the game is not final yet or unknown
        """
        try:
            boxscore = self.api.get_game_boxscore(external_game_id)
        except httpx.HTTPError as e:
            if _is_not_found(e):
                logger.info(f"Game {external_game_id} not found, results not available yet")
                return None
            raise

        state = str(boxscore.get("gameState") or "").upper()
        if state not in FINAL_GAME_STATES:
            logger.info(f"Game {external_game_id} is {state or 'unknown'}, results not available yet")
            return None

        return LivePayload(
            boxscore=boxscore,
            landing=_optional(self.api.get_game_landing, external_game_id, "landing"),
            play_by_play=_optional(self.api.get_game_play_by_play, external_game_id, "play-by-play"),
        )


def summary_from_schedule(entry: dict[str, Any], team_abbrev: str) -> HistoricalSummary:
    """Final figures of a schedule entry from the tracked team's side."""
    home = entry.get("homeTeam") or {}
    away = entry.get("awayTeam") or {}
    is_home = home.get("abbrev") == team_abbrev
    ours, theirs = (home, away) if is_home else (away, home)

    period_type = str((entry.get("gameOutcome") or {}).get("lastPeriodType") or "").upper()
    return HistoricalSummary(
        team_goals=as_int(ours.get("score")),
        opponent_goals=as_int(theirs.get("score")),
        is_home=is_home,
        overtime=period_type in ("OT", "SO"),
        shootout=period_type == "SO",
    )


class HistoricalGameDataProvider:
    """Payloads of the tracked team's most recent completed game."""

    def __init__(self, api_client: NHLApiClient, team_abbrev: str = "DET"):
        self.api = api_client
        self.team_abbrev = team_abbrev

    def last_completed_entry(self, team_abbrev: Optional[str] = None) -> Optional[dict[str, Any]]:
        """Latest schedule entry whose game has finished."""
        abbrev = team_abbrev or self.team_abbrev
        schedule = self.api.get_team_season_schedule(abbrev)
        completed = [
            game
            for game in schedule.get("games") or []
            if str(game.get("gameState") or "").upper() in FINAL_GAME_STATES
        ]
        if not completed:
            return None
        return max(completed, key=lambda game: str(game.get("startTimeUTC") or game.get("gameDate") or ""))

    def fetch_last_completed(self, team_abbrev: Optional[str] = None) -> Optional[HistoricalPayload]:
        """
        Fetch the last completed game for substitution.

        Returns:
            HistoricalPayload, or None if the team has no completed game
            or its data could not be fetched
        """
        abbrev = team_abbrev or self.team_abbrev
        try:
            entry = self.last_completed_entry(abbrev)
        except httpx.HTTPError as e:
            logger.warning(f"Could not fetch season schedule for {abbrev}: {e}")
            return None

        if entry is None:
            logger.info(f"No completed games for {abbrev} this season")
            return None

        game_id = entry.get("id")
        try:
            boxscore = self.api.get_game_boxscore(game_id, use_cache=True)
        except httpx.HTTPError as e:
            logger.warning(f"Could not fetch boxscore for historical game {game_id}: {e}")
            return None

        logger.info(f"Using historical game {game_id} ({entry.get('gameDate', 'unknown date')})")
        return HistoricalPayload(
            boxscore=boxscore,
            landing=_optional(lambda gid: self.api.get_game_landing(gid, use_cache=True), game_id, "landing"),
            play_by_play=_optional(
                lambda gid: self.api.get_game_play_by_play(gid, use_cache=True), game_id, "play-by-play"
            ),
            summary=summary_from_schedule(entry, abbrev),
            external_game_id=as_int(game_id) if game_id is not None else None,
        )


# Schedule gameState -> stored status
GAME_STATE_STATUS = {
    "FUT": GameStatus.SCHEDULED,
    "PRE": GameStatus.SCHEDULED,
    "LIVE": GameStatus.IN_PROGRESS,
    "CRIT": GameStatus.IN_PROGRESS,
    "OFF": GameStatus.FINAL,
    "FINAL": GameStatus.FINAL,
    "OFFICIAL": GameStatus.FINAL,
    "PPD": GameStatus.POSTPONED,
    "CNCL": GameStatus.CANCELLED,
}


def game_from_schedule(entry: dict[str, Any], team_abbrev: str) -> Optional[Game]:
    """Build a Game from a season schedule entry, or None if it lacks id or start time."""
    external_id = entry.get("id")
    start = entry.get("startTimeUTC")
    if external_id is None or not start:
        return None

    home = entry.get("homeTeam") or {}
    away = entry.get("awayTeam") or {}
    is_home = home.get("abbrev") == team_abbrev
    opponent = away if is_home else home

    state = str(entry.get("gameState") or "").upper()
    return Game(
        id=str(external_id),
        external_id=as_int(external_id),
        opponent=str(opponent.get("abbrev") or ""),
        start_time=datetime.fromisoformat(str(start).replace("Z", "+00:00")),
        is_home=is_home,
        status=GAME_STATE_STATUS.get(state, GameStatus.SCHEDULED),
    )


def sync_schedule(api_client: NHLApiClient, db: Database, team_abbrev: str = "DET") -> int:
    """
    Upsert the tracked team's season schedule into the database.

    Resolved games are left untouched by the upsert.

    Returns:
        Number of games written
    """
    schedule = api_client.get_team_season_schedule(team_abbrev)
    count = 0
    for entry in schedule.get("games") or []:
        game = game_from_schedule(entry, team_abbrev)
        if game is None:
            logger.warning(f"Skipping schedule entry without id or start time: {entry.get('id')}")
            continue
        db.upsert_game(game)
        count += 1
    logger.info(f"Synced {count} games for {team_abbrev}")
    return count
