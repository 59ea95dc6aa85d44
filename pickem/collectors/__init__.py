"""
Collectors Module

External data sources for rosters and game payloads.
"""

from pickem.collectors.game_data import (
    HistoricalGameDataProvider,
    LiveGameDataProvider,
    sync_schedule,
)
from pickem.collectors.nhl_api import NHLApiClient, RateLimiter
from pickem.collectors.roster import RosterProvider

__all__ = [
    "NHLApiClient",
    "RateLimiter",
    "RosterProvider",
    "LiveGameDataProvider",
    "HistoricalGameDataProvider",
    "sync_schedule",
]
