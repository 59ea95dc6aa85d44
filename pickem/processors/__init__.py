"""
Processors Module

Turns heterogeneous external game data into canonical per-player stats.

Processors:
    - StatNormalizer: Boxscore/play-by-play payloads to GamePlayerStats
    - StatsSimulator: Synthetic stats when no payload is available
    - Payload shapes: LivePayload, HistoricalPayload, NoPayload, UnknownPayload
"""

from pickem.processors.normalized import NormalizedGame
from pickem.processors.payloads import (
    GamePayload,
    HistoricalPayload,
    HistoricalSummary,
    LivePayload,
    NoPayload,
    UnknownPayload,
    classify_payload,
)
from pickem.processors.stat_normalizer import StatNormalizer, match_stat_lines
from pickem.processors.stats_simulator import StatsSimulator

__all__ = [
    "NormalizedGame",
    "GamePayload",
    "HistoricalPayload",
    "HistoricalSummary",
    "LivePayload",
    "NoPayload",
    "UnknownPayload",
    "classify_payload",
    "StatNormalizer",
    "match_stat_lines",
    "StatsSimulator",
]
