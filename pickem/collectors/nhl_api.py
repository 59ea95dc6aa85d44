"""
NHL API Client

HTTP client for the NHL gamecenter, roster and schedule endpoints.
Handles rate limiting, response caching and retries.
"""

import time
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import httpx
from diskcache import Cache
from loguru import logger

from pickem.config import load_config


class RateLimiter:
    """Keeps requests under a per-minute budget with a minimum spacing."""

    def __init__(self, requests_per_minute: int = 60, request_delay: float = 0.5):
        self.requests_per_minute = requests_per_minute
        self.request_delay = request_delay
        self.last_request_time: float = 0
        self.request_count: int = 0
        self.window_start: float = time.time()

    def wait_if_needed(self) -> None:
        """Sleep until the next request is allowed."""
        now = time.time()

        if now - self.window_start >= 60:
            self.request_count = 0
            self.window_start = now

        if self.request_count >= self.requests_per_minute:
            sleep_time = 60 - (now - self.window_start)
            if sleep_time > 0:
                logger.debug(f"Rate limit reached, sleeping for {sleep_time:.2f}s")
                time.sleep(sleep_time)
            self.request_count = 0
            self.window_start = time.time()

        elapsed = now - self.last_request_time
        if elapsed < self.request_delay:
            time.sleep(self.request_delay - elapsed)

        self.last_request_time = time.time()
        self.request_count += 1


class NHLApiClient:
    """
    Client for the public NHL web API.

    Every ``get_*`` method returns the parsed JSON body or raises
    ``httpx.HTTPError`` once retries are exhausted.
    """

    def __init__(
        self,
        config_path: str | Path | None = None,
        config: dict[str, Any] | None = None,
    ):
        """
        Initialize the NHL API client.

        Args:
            config_path: Path to the YAML config. Defaults to config/pickem.yaml
            config: Already loaded configuration; takes precedence over config_path
        """
        self.config = config if config is not None else load_config(config_path)
        api_config = self.config["api"]
        self.base_url = api_config["base_url"]
        self.timeout = api_config["timeout"]
        self.endpoints = self.config["endpoints"]

        rate_config = api_config["rate_limit"]
        self.rate_limiter = RateLimiter(
            requests_per_minute=rate_config["requests_per_minute"],
            request_delay=rate_config["request_delay"],
        )
        self.max_retries = rate_config["max_retries"]
        self.retry_delay = rate_config["retry_delay"]
        self.retry_backoff = rate_config["retry_backoff"]

        cache_config = self.config["cache"]
        self.cache_ttl = timedelta(hours=cache_config["ttl_hours"])
        if cache_config["enabled"]:
            cache_dir = Path(cache_config["directory"])
            cache_dir.mkdir(parents=True, exist_ok=True)
            self.cache = Cache(str(cache_dir))
        else:
            self.cache = None

        self.client = httpx.Client(timeout=self.timeout)

        logger.debug(f"NHL API client initialized for {self.base_url}")

    def _get_cache_key(self, url: str, params: dict[str, Any] | None = None) -> str:
        key = url
        if params:
            key += "?" + "&".join(f"{k}={v}" for k, v in sorted(params.items()))
        return key

    def _make_request(
        self,
        url: str,
        params: dict[str, Any] | None = None,
        use_cache: bool = True,
    ) -> dict[str, Any]:
        """
        GET a URL with rate limiting, caching and retries.

        Client errors (4xx) are not retried.

        Raises:
            httpx.HTTPError: If the request fails after all retries
        """
        cache_key = self._get_cache_key(url, params)

        if use_cache and self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                logger.debug(f"Cache hit for {url}")
                return cached

        last_error: httpx.HTTPError | None = None
        for attempt in range(self.max_retries + 1):
            try:
                self.rate_limiter.wait_if_needed()
                response = self.client.get(url, params=params)
                response.raise_for_status()
                data = response.json()

                if use_cache and self.cache is not None:
                    self.cache.set(cache_key, data, expire=self.cache_ttl.total_seconds())

                return data

            except httpx.HTTPStatusError as e:
                if e.response.status_code < 500:
                    raise
                last_error = e
            except httpx.HTTPError as e:
                last_error = e

            if attempt < self.max_retries:
                sleep_time = self.retry_delay * (self.retry_backoff**attempt)
                logger.warning(
                    f"Request failed (attempt {attempt + 1}/{self.max_retries + 1}), "
                    f"retrying in {sleep_time}s: {last_error}"
                )
                time.sleep(sleep_time)

        logger.error(f"Request failed after {self.max_retries + 1} attempts: {url}")
        raise last_error  # type: ignore

    def _build_url(self, endpoint: str, **kwargs: Any) -> str:
        return f"{self.base_url}{self.endpoints[endpoint].format(**kwargs)}"

    # Game Methods
    def get_game_boxscore(self, game_id: int | str, use_cache: bool = False) -> dict[str, Any]:
        """
        Get boxscore data for a game.

        Not cached by default: the boxscore changes until the game is final.
        """
        return self._make_request(self._build_url("game_boxscore", game_id=game_id), use_cache=use_cache)

    def get_game_landing(self, game_id: int | str, use_cache: bool = False) -> dict[str, Any]:
        """Get landing data (scores, scoring summary) for a game."""
        return self._make_request(self._build_url("game_landing", game_id=game_id), use_cache=use_cache)

    def get_game_play_by_play(self, game_id: int | str, use_cache: bool = False) -> dict[str, Any]:
        """Get the play-by-play event stream for a game."""
        return self._make_request(
            self._build_url("game_play_by_play", game_id=game_id), use_cache=use_cache
        )

    # Team Methods
    def get_team_roster(self, team_abbrev: str) -> dict[str, Any]:
        """
        Get the current roster of a team.

        Args:
            team_abbrev: Team abbreviation (e.g., "DET")

        Returns:
            Roster grouped into forwards, defensemen and goalies
        """
        return self._make_request(self._build_url("team_roster", team_abbrev=team_abbrev))

    def get_team_season_schedule(self, team_abbrev: str) -> dict[str, Any]:
        """Get the current season schedule of a team, including final scores."""
        return self._make_request(
            self._build_url("team_season_schedule", team_abbrev=team_abbrev),
            use_cache=False,
        )

    # Schedule Methods
    def get_schedule(self, date: str | datetime) -> dict[str, Any]:
        """
        Get the league schedule for the week of a date.

        Args:
            date: Date in YYYY-MM-DD format or datetime object
        """
        if isinstance(date, datetime):
            date = date.strftime("%Y-%m-%d")
        return self._make_request(self._build_url("schedule", date=date))

    def clear_cache(self) -> None:
        """Clear the request cache."""
        if self.cache is not None:
            self.cache.clear()
            logger.info("Cache cleared")

    def close(self) -> None:
        """Close the HTTP client and cache."""
        self.client.close()
        if self.cache is not None:
            self.cache.close()

    def __enter__(self) -> "NHLApiClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
