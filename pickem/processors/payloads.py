"""
Game Payload Shapes

External game data arrives in several shapes (live gamecenter data, a
previously completed game substituted for the current one, or nothing at
all when stats must be simulated). Each shape is a small dataclass so the
normalizer can dispatch on it instead of poking at untyped dicts.

Field lookups that vary between sources are expressed as ordered tuples
of extractor functions; the first one that yields a value wins.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Iterable, Union

from pickem.models.player import PlayerPosition, normalize_position

Extractor = Callable[[Any], Any]


# ---------------------------------------------------------------------------
# Payload variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HistoricalSummary:
    """Final figures of a substituted historical game, from the schedule."""

    team_goals: int
    opponent_goals: int
    is_home: bool | None = None
    overtime: bool = False
    shootout: bool = False


@dataclass(frozen=True)
class LivePayload:
    """Gamecenter data for the game being resolved."""

    boxscore: dict[str, Any]
    landing: dict[str, Any] | None = None
    play_by_play: dict[str, Any] | None = None
    source: str = "live"


@dataclass(frozen=True)
class HistoricalPayload:
    """Gamecenter data from an earlier game, re-mapped onto the current roster."""

    boxscore: dict[str, Any]
    landing: dict[str, Any] | None = None
    play_by_play: dict[str, Any] | None = None
    summary: HistoricalSummary | None = None
    external_game_id: int | None = None
    source: str = "historical"


@dataclass(frozen=True)
class NoPayload:
    """No external data: stats will be simulated."""

    source: str = "simulated"


@dataclass(frozen=True)
class UnknownPayload:
    """Anything that does not look like a recognized shape."""

    raw: Any = None
    source: str = "unknown"


GamePayload = Union[LivePayload, HistoricalPayload, NoPayload, UnknownPayload]


def classify_payload(raw: Any) -> GamePayload:
    """
    Wrap a raw payload in its tagged variant.

    Accepts an already-tagged payload, None, or a dict with a
    ``boxscore`` key (and optionally ``landing``, ``playByPlay`` and
    ``game``/``scores`` for historical data). A bare boxscore dict is
    treated as a live payload.
    """
    if isinstance(raw, (LivePayload, HistoricalPayload, NoPayload, UnknownPayload)):
        return raw
    if raw is None:
        return NoPayload()
    if not isinstance(raw, dict):
        return UnknownPayload(raw=raw)

    if "boxscore" in raw and isinstance(raw["boxscore"], dict):
        landing = raw.get("landing")
        play_by_play = raw.get("playByPlay") or raw.get("play_by_play")
        scores = raw.get("scores")
        if isinstance(scores, dict):
            summary = HistoricalSummary(
                team_goals=as_int(scores.get("teamScore", scores.get("redWingsScore"))),
                opponent_goals=as_int(scores.get("opponentScore")),
                is_home=scores.get("isHome"),
            )
            return HistoricalPayload(
                boxscore=raw["boxscore"],
                landing=landing if isinstance(landing, dict) else None,
                play_by_play=play_by_play if isinstance(play_by_play, dict) else None,
                summary=summary,
                external_game_id=raw.get("gameId"),
            )
        return LivePayload(
            boxscore=raw["boxscore"],
            landing=landing if isinstance(landing, dict) else None,
            play_by_play=play_by_play if isinstance(play_by_play, dict) else None,
        )

    if any(key in raw for key in ("playerByGameStats", "homeTeam", "awayTeam")):
        return LivePayload(boxscore=raw)

    return UnknownPayload(raw=raw)


# ---------------------------------------------------------------------------
# Extractors
# ---------------------------------------------------------------------------


def key(name: str) -> Extractor:
    """Extractor reading a single top-level key."""

    def extract(data: Any) -> Any:
        if isinstance(data, dict):
            return data.get(name)
        return None

    extract.__name__ = f"key_{name}"
    return extract


def path(*names: str) -> Extractor:
    """Extractor walking a chain of nested keys."""

    def extract(data: Any) -> Any:
        current = data
        for name in names:
            if not isinstance(current, dict):
                return None
            current = current.get(name)
        return current

    extract.__name__ = "path_" + "_".join(names)
    return extract


def text(extractor: Extractor) -> Extractor:
    """Restrict an extractor to non-empty string results."""

    def extract(data: Any) -> Any:
        value = extractor(data)
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None

    extract.__name__ = f"text_{extractor.__name__}"
    return extract


def first_match(extractors: Iterable[Extractor], data: Any, default: Any = None) -> Any:
    """Return the first non-None value produced by the extractors."""
    for extractor in extractors:
        value = extractor(data)
        if value is not None:
            return value
    return default


def as_int(value: Any, default: int = 0) -> int:
    """Coerce a loosely-typed count to int."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return default
    return default


def _joined_name(data: Any) -> Any:
    first = first_match((path("firstName", "default"), text(key("firstName"))), data)
    last = first_match((path("lastName", "default"), text(key("lastName"))), data)
    if first or last:
        return f"{first or ''} {last or ''}".strip()
    return None


def _last_token_of_name(data: Any) -> Any:
    name = first_match(NAME_EXTRACTORS, data)
    if isinstance(name, str) and name.split():
        return name.split()[-1]
    return None


GOAL_EXTRACTORS: tuple[Extractor, ...] = (
    key("goals"),
    key("g"),
    key("goalsScored"),
    path("stats", "goals"),
)

ASSIST_EXTRACTORS: tuple[Extractor, ...] = (
    key("assists"),
    key("a"),
    path("stats", "assists"),
)

PLAYER_ID_EXTRACTORS: tuple[Extractor, ...] = (
    key("playerId"),
    key("player_id"),
    key("id"),
)

NAME_EXTRACTORS: tuple[Extractor, ...] = (
    _joined_name,
    path("name", "default"),
    text(key("name")),
    text(key("fullName")),
)

LAST_NAME_EXTRACTORS: tuple[Extractor, ...] = (
    path("lastName", "default"),
    text(key("lastName")),
    _last_token_of_name,
)

POSITION_EXTRACTORS: tuple[Extractor, ...] = (
    text(key("positionCode")),
    text(key("position")),
    text(key("pos")),
)

TEAM_ID_EXTRACTORS: tuple[Extractor, ...] = (
    key("teamId"),
    path("team", "id"),
)

# Where the per-player stats section lives, relative to the payload
STATS_SECTION_EXTRACTORS: tuple[Extractor, ...] = (
    path("boxscore", "boxscore", "playerByGameStats"),
    path("boxscore", "playerByGameStats"),
    path("landing", "boxscore", "playerByGameStats"),
)

PLAYS_EXTRACTORS: tuple[Extractor, ...] = (
    key("plays"),
    key("playsAllPlays"),
    key("allPlays"),
)

PERIOD_TYPE_EXTRACTORS: tuple[Extractor, ...] = (
    text(path("gameOutcome", "lastPeriodType")),
    text(path("periodDescriptor", "periodType")),
)

# Player groups inside one side of playerByGameStats
POSITION_GROUP_KEYS: dict[str, PlayerPosition] = {
    "forwards": PlayerPosition.FORWARD,
    "defense": PlayerPosition.DEFENSEMAN,
    "defensemen": PlayerPosition.DEFENSEMAN,
    "goalies": PlayerPosition.GOALIE,
}


def payload_parts(payload: LivePayload | HistoricalPayload) -> dict[str, Any]:
    """Expose a payload's documents under the names the extractors expect."""
    return {
        "boxscore": payload.boxscore,
        "landing": payload.landing,
        "playByPlay": payload.play_by_play,
    }


def boxscore_root(payload: LivePayload | HistoricalPayload) -> dict[str, Any]:
    """The boxscore document, unwrapped if nested under a second key."""
    nested = payload.boxscore.get("boxscore")
    if isinstance(nested, dict) and ("homeTeam" in nested or "awayTeam" in nested):
        return nested
    return payload.boxscore


# ---------------------------------------------------------------------------
# Stat lines
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StatLine:
    """One player's raw boxscore line, with aliases already resolved."""

    external_id: int | None
    name: str
    last_name: str
    position: PlayerPosition
    goals: int
    assists: int
    team_id: int | None = None
    raw: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def key(self) -> str:
        """Identifier used when the line cannot be matched to the roster."""
        if self.external_id is not None:
            return str(self.external_id)
        return self.name


def parse_stat_line(
    raw: Any, position_hint: PlayerPosition = PlayerPosition.UNKNOWN
) -> StatLine | None:
    """
    Parse a raw boxscore player entry.

    Returns None only when the entry has neither an id nor a name.
    """
    if not isinstance(raw, dict):
        return None

    raw_id = first_match(PLAYER_ID_EXTRACTORS, raw)
    external_id = as_int(raw_id, default=-1) if raw_id is not None else None
    if external_id == -1:
        external_id = None

    name = first_match(NAME_EXTRACTORS, raw, default="")
    if external_id is None and not name:
        return None

    position = normalize_position(first_match(POSITION_EXTRACTORS, raw))
    if position == PlayerPosition.UNKNOWN:
        position = position_hint

    team_id = first_match(TEAM_ID_EXTRACTORS, raw)

    return StatLine(
        external_id=external_id,
        name=name,
        last_name=first_match(LAST_NAME_EXTRACTORS, raw, default=""),
        position=position,
        goals=as_int(first_match(GOAL_EXTRACTORS, raw)),
        assists=as_int(first_match(ASSIST_EXTRACTORS, raw)),
        team_id=as_int(team_id) if team_id is not None else None,
        raw=raw,
    )


def side_stat_lines(side_section: Any) -> list[StatLine]:
    """
    Parse every player line of one side of ``playerByGameStats``.

    The side is either a flat list of entries or a dict of position
    groups (forwards / defense / goalies).
    """
    entries: list[tuple[Any, PlayerPosition]] = []
    if isinstance(side_section, list):
        entries = [(entry, PlayerPosition.UNKNOWN) for entry in side_section]
    elif isinstance(side_section, dict):
        for group_key, hint in POSITION_GROUP_KEYS.items():
            group = side_section.get(group_key)
            if isinstance(group, list):
                entries.extend((entry, hint) for entry in group)

    lines = []
    for entry, hint in entries:
        line = parse_stat_line(entry, hint)
        if line is not None:
            lines.append(line)
    return lines
