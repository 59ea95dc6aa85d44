"""
Configuration Loader

Loads the YAML configuration file and merges it over built-in defaults,
so a partial file (or no file at all) still yields a complete config.
"""

import copy
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

DEFAULT_CONFIG_PATH = Path("config/pickem.yaml")

DEFAULT_CONFIG: dict[str, Any] = {
    "api": {
        "base_url": "https://api-web.nhle.com",
        "timeout": 30,
        "rate_limit": {
            "requests_per_minute": 60,
            "request_delay": 0.5,
            "max_retries": 3,
            "retry_delay": 2.0,
            "retry_backoff": 2.0,
        },
    },
    "endpoints": {
        "schedule": "/v1/schedule/{date}",
        "game_boxscore": "/v1/gamecenter/{game_id}/boxscore",
        "game_landing": "/v1/gamecenter/{game_id}/landing",
        "game_play_by_play": "/v1/gamecenter/{game_id}/play-by-play",
        "team_roster": "/v1/roster/{team_abbrev}/current",
        "team_season_schedule": "/v1/club-schedule-season/{team_abbrev}/now",
    },
    "cache": {
        "enabled": False,
        "ttl_hours": 6,
        "directory": "data/cache",
    },
    "team": {
        "abbrev": "DET",
        "team_id": 17,
    },
    "database": {
        "path": "data/pickem.db",
    },
    "simulation": {
        "seed": None,
    },
    "logging": {
        "level": "INFO",
    },
}


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into a copy of base."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: str | Path | None = None) -> dict[str, Any]:
    """
    Load configuration from YAML, falling back to defaults.

    Args:
        config_path: Path to the config file. Defaults to config/pickem.yaml

    Returns:
        Complete configuration dictionary
    """
    path = Path(config_path) if config_path is not None else DEFAULT_CONFIG_PATH

    if not path.exists():
        logger.warning(f"Config not found at {path}, using defaults")
        return copy.deepcopy(DEFAULT_CONFIG)

    with open(path) as f:
        user_config = yaml.safe_load(f) or {}

    return _deep_merge(DEFAULT_CONFIG, user_config)
