"""Roster provider: current team roster as pickable players."""

from typing import Any, Optional

import httpx
from loguru import logger

from pickem.collectors.nhl_api import NHLApiClient
from pickem.models.player import Player, PlayerPosition, normalize_position

# Roster response groups and the position implied by each
ROSTER_GROUPS = {
    "forwards": PlayerPosition.FORWARD,
    "defensemen": PlayerPosition.DEFENSEMAN,
    "goalies": PlayerPosition.GOALIE,
}


def _localized(value: Any) -> str:
    """NHL names come as {"default": "..."}; plain strings also accepted."""
    if isinstance(value, dict):
        return str(value.get("default") or "")
    return str(value or "")


def parse_roster_player(
    player_data: dict[str, Any], group_position: PlayerPosition
) -> Optional[Player]:
    """Parse one roster entry. Returns None when the entry has no id."""
    external_id = player_data.get("id")
    if external_id is None:
        logger.warning(f"Roster entry without id skipped: {player_data}")
        return None

    name = f"{_localized(player_data.get('firstName'))} {_localized(player_data.get('lastName'))}".strip()
    position = normalize_position(player_data.get("positionCode"))
    if position == PlayerPosition.UNKNOWN:
        position = group_position

    return Player(
        id=str(external_id),
        name=name or str(external_id),
        number=player_data.get("sweaterNumber"),
        position=position,
        external_id=int(external_id),
    )


def parse_roster(data: dict[str, Any]) -> list[Player]:
    """Flatten the forwards/defensemen/goalies groups into one list."""
    players = []
    seen = set()
    for group, group_position in ROSTER_GROUPS.items():
        for entry in data.get(group) or []:
            player = parse_roster_player(entry, group_position)
            if player is not None and player.id not in seen:
                seen.add(player.id)
                players.append(player)
    return players


class RosterProvider:
    """Supplies the tracked team's roster, cached per team until refreshed."""

    def __init__(self, api_client: NHLApiClient, team_abbrev: str = "DET"):
        """Initialize roster provider.

        Args:
            api_client: NHL API client
            team_abbrev: Default team abbreviation
        """
        self.api = api_client
        self.team_abbrev = team_abbrev
        self._rosters: dict[str, list[Player]] = {}

    def get_roster(self, team_abbrev: Optional[str] = None, refresh: bool = False) -> list[Player]:
        """Get the roster of a team.

        Args:
            team_abbrev: Team abbreviation, defaults to the tracked team
            refresh: Fetch again even if a roster is cached

        Returns:
            List of players; empty when the roster could not be fetched
        """
        abbrev = team_abbrev or self.team_abbrev
        if not refresh and abbrev in self._rosters:
            return list(self._rosters[abbrev])

        try:
            data = self.api.get_team_roster(abbrev)
        except httpx.HTTPError as e:
            logger.warning(f"Could not fetch roster for {abbrev}, no players available: {e}")
            return []

        players = parse_roster(data)
        self._rosters[abbrev] = players
        logger.info(f"Loaded {len(players)} players for {abbrev}")
        return list(players)
