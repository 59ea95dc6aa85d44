"""
Stat Normalizer

Converts any supported game payload into canonical per-player stats.

Guarantees:
    - exactly one GamePlayerStats per roster player, zero-filled when the
      player did not appear or did not score
    - stat lines that cannot be matched to the roster are kept (keyed by
      their external id) instead of being dropped
    - never raises for missing or oddly named fields; a payload without a
      stats section yields an "unavailable" result
"""

from dataclasses import dataclass

from loguru import logger

from pickem.models.game import AssistEvent, Game, GamePlayerStats, GoalEvent
from pickem.models.player import Player
from pickem.processors.normalized import NormalizedGame
from pickem.processors.payloads import (
    PERIOD_TYPE_EXTRACTORS,
    STATS_SECTION_EXTRACTORS,
    GamePayload,
    HistoricalPayload,
    LivePayload,
    NoPayload,
    StatLine,
    UnknownPayload,
    as_int,
    boxscore_root,
    classify_payload,
    first_match,
    payload_parts,
    side_stat_lines,
)
from pickem.processors.play_by_play import (
    ScoringPlay,
    SituationIndex,
    parse_landing_scoring,
    parse_scoring_plays,
)
from pickem.processors.stats_simulator import StatsSimulator

HOME = "homeTeam"
AWAY = "awayTeam"


@dataclass
class RosterMatch:
    """A stat line and the roster player it resolved to, if any."""

    line: StatLine
    player: Player | None = None

    @property
    def matched(self) -> bool:
        return self.player is not None


def match_stat_lines(lines: list[StatLine], roster: list[Player]) -> list[RosterMatch]:
    """
    Resolve stat lines to roster players.

    Precedence is external id, then exact full name, then last name alone
    (only when exactly one unclaimed roster player carries it). A roster
    player is claimed at most once.
    """
    matches = [RosterMatch(line=line) for line in lines]
    claimed: set[str] = set()

    by_external = {p.external_id: p for p in roster if p.external_id is not None}
    for match in matches:
        player = by_external.get(match.line.external_id)
        if player is None and match.line.external_id is not None:
            # Roster ids are often the stringified NHL id
            player = next(
                (p for p in roster if p.id == str(match.line.external_id)), None
            )
        if player is not None and player.id not in claimed:
            match.player = player
            claimed.add(player.id)

    for match in matches:
        if match.matched or not match.line.name:
            continue
        player = next(
            (p for p in roster if p.id not in claimed and p.name == match.line.name),
            None,
        )
        if player is not None:
            match.player = player
            claimed.add(player.id)

    for match in matches:
        if match.matched or not match.line.last_name:
            continue
        candidates = [
            p for p in roster if p.id not in claimed and p.last_name == match.line.last_name
        ]
        if len(candidates) == 1:
            match.player = candidates[0]
            claimed.add(candidates[0].id)

    return matches


class StatNormalizer:
    """
    Normalizer from external game payloads to canonical stats.

    The tracked team is identified by team id (preferred), then by
    abbreviation, then by the game's home/away flag.
    """

    def __init__(
        self,
        team_id: int | None = None,
        team_abbrev: str | None = None,
        simulator: StatsSimulator | None = None,
    ):
        """
        Initialize the normalizer.

        Args:
            team_id: NHL id of the tracked team
            team_abbrev: Abbreviation of the tracked team (e.g. "DET")
            simulator: Generator used when no payload is supplied
        """
        self.team_id = team_id
        self.team_abbrev = team_abbrev
        self.simulator = simulator or StatsSimulator()

    def normalize(self, game: Game, payload: object, roster: list[Player]) -> NormalizedGame:
        """
        Produce canonical stats for one game.

        Args:
            game: Game record (home/away flag, fallback final figures)
            payload: Raw or tagged payload; None means simulate
            roster: Eligible roster players

        Returns:
            NormalizedGame
        """
        tagged: GamePayload = classify_payload(payload)

        if isinstance(tagged, NoPayload):
            return self.simulator.simulate(game, roster)

        if isinstance(tagged, UnknownPayload):
            logger.warning(f"Unrecognized payload for game {game.id}, stats not available")
            return NormalizedGame.not_ready(source=tagged.source)

        return self._normalize_gamecenter(game, tagged, roster)

    # ------------------------------------------------------------------
    # Side detection
    # ------------------------------------------------------------------

    def resolve_side(self, root: dict, game: Game, is_home: bool | None = None) -> str:
        """Decide which boxscore side is the tracked team."""
        for side in (HOME, AWAY):
            team = root.get(side)
            if not isinstance(team, dict):
                continue
            if self.team_id is not None and team.get("id") is not None:
                if as_int(team.get("id")) == self.team_id:
                    return side
            if self.team_abbrev and team.get("abbrev") == self.team_abbrev:
                return side

        home = game.is_home if is_home is None else is_home
        return HOME if home else AWAY

    # ------------------------------------------------------------------
    # Gamecenter payloads
    # ------------------------------------------------------------------

    def _normalize_gamecenter(
        self,
        game: Game,
        payload: LivePayload | HistoricalPayload,
        roster: list[Player],
    ) -> NormalizedGame:
        section = first_match(STATS_SECTION_EXTRACTORS, payload_parts(payload))
        if section is None:
            logger.info(f"No player stats in {payload.source} payload for game {game.id}, not ready")
            return NormalizedGame.not_ready(source=payload.source)

        root = boxscore_root(payload)
        summary = payload.summary if isinstance(payload, HistoricalPayload) else None
        side = self.resolve_side(root, game, summary.is_home if summary else None)
        opponent_side = AWAY if side == HOME else HOME

        our_team = root.get(side) if isinstance(root.get(side), dict) else {}
        their_team = root.get(opponent_side) if isinstance(root.get(opponent_side), dict) else {}
        our_team_id = as_int(our_team.get("id")) if our_team.get("id") is not None else self.team_id
        home_team = our_team if side == HOME else their_team
        home_team_id = as_int(home_team.get("id")) if home_team.get("id") is not None else None

        # Final figures: historical summary, then boxscore, then game record
        if summary is not None:
            team_goals, opponent_goals = summary.team_goals, summary.opponent_goals
        elif "score" in our_team or "score" in their_team:
            team_goals = as_int(our_team.get("score"))
            opponent_goals = as_int(their_team.get("score"))
        else:
            team_goals, opponent_goals = game.team_goals, game.opponent_goals

        period_type = first_match(PERIOD_TYPE_EXTRACTORS, root)
        if period_type is None and payload.landing:
            period_type = first_match(PERIOD_TYPE_EXTRACTORS, payload.landing)
        if period_type is not None:
            overtime = period_type.upper() in ("OT", "SO")
            shootout = period_type.upper() == "SO"
        else:
            overtime = game.overtime or bool(summary and summary.overtime)
            shootout = game.shootout or bool(summary and summary.shootout)

        lines = self._our_lines(section, side, our_team_id)

        plays = parse_scoring_plays(payload.play_by_play, home_team_id)
        if not plays:
            plays = parse_landing_scoring(payload.landing)
        our_external_ids = {line.external_id for line in lines if line.external_id is not None}
        our_plays, their_plays = self._split_plays(
            plays, our_team_id, side, our_team.get("abbrev"), our_external_ids
        )

        if plays:
            empty_net_goals = sum(
                1 for play in their_plays if play.is_empty_net and not play.is_shootout
            )
        else:
            empty_net_goals = game.empty_net_goals

        index = SituationIndex.build(our_plays)
        matches = match_stat_lines(lines, roster)

        player_stats: dict[str, GamePlayerStats] = {}
        unmatched: list[GamePlayerStats] = []
        emitted_goals: list[tuple[GamePlayerStats, int]] = []

        for match in matches:
            record = self._build_record(match, index)
            if match.matched:
                player_stats[match.player.id] = record
            else:
                logger.warning(
                    f"Stat line {match.line.key} ({match.line.name or 'no name'}) "
                    f"not on roster for game {game.id}, keeping under external id"
                )
                unmatched.append(record)
            emitted_goals.extend((record, i) for i in range(len(record.goals)))

        if not plays:
            self._apply_overtime_heuristic(
                emitted_goals, overtime, shootout, team_goals, opponent_goals
            )

        ordered = []
        for player in roster:
            record = player_stats.get(player.id)
            if record is None:
                record = GamePlayerStats(
                    player_id=player.id,
                    position=player.position,
                    external_id=player.external_id,
                )
            ordered.append(record)

        logger.debug(
            f"Normalized game {game.id} from {payload.source}: {len(ordered)} roster records, "
            f"{len(unmatched)} unmatched, {team_goals}-{opponent_goals}"
        )

        return NormalizedGame(
            available=True,
            player_stats=ordered,
            unmatched_stats=unmatched,
            team_goals=team_goals,
            opponent_goals=opponent_goals,
            overtime=overtime,
            shootout=shootout,
            empty_net_goals=empty_net_goals,
            source=payload.source,
        )

    def _our_lines(self, section: object, side: str, our_team_id: int | None) -> list[StatLine]:
        """Stat lines of the tracked team from either section layout."""
        if isinstance(section, dict):
            return side_stat_lines(section.get(side))

        if isinstance(section, list):
            lines = side_stat_lines(section)
            if our_team_id is None:
                logger.warning("Flat stats section without a known team id, using every line")
                return lines
            return [line for line in lines if line.team_id == our_team_id]

        logger.warning(f"Unexpected stats section type {type(section).__name__}")
        return []

    def _split_plays(
        self,
        plays: list[ScoringPlay],
        our_team_id: int | None,
        side: str,
        our_abbrev: str | None,
        our_external_ids: set[int],
    ) -> tuple[list[ScoringPlay], list[ScoringPlay]]:
        """Separate the tracked team's goals from the opponent's."""
        ours, theirs = [], []
        for play in plays:
            if play.team_id is not None and our_team_id is not None:
                is_ours = play.team_id == our_team_id
            elif play.team_abbrev and our_abbrev:
                is_ours = play.team_abbrev == our_abbrev
            elif play.is_home is not None:
                is_ours = play.is_home == (side == HOME)
            else:
                is_ours = play.scorer_id in our_external_ids
            (ours if is_ours else theirs).append(play)
        return ours, theirs

    def _build_record(self, match: RosterMatch, index: SituationIndex) -> GamePlayerStats:
        line = match.line
        player_id = match.player.id if match.matched else line.key
        position = match.player.position if match.matched else line.position

        goals = []
        for nth in range(line.goals):
            play = index.goal_play(line.external_id, nth)
            goals.append(
                GoalEvent(
                    player_id=player_id,
                    is_overtime=play.is_overtime if play else False,
                    is_shorthanded=play.is_shorthanded if play else False,
                    is_empty_net=play.is_empty_net if play else False,
                )
            )

        assists = []
        for nth in range(line.assists):
            play = index.assist_play(line.external_id, nth)
            assists.append(
                AssistEvent(
                    player_id=player_id,
                    is_shorthanded=play.is_shorthanded if play else False,
                )
            )

        return GamePlayerStats(
            player_id=player_id,
            position=position,
            goals=goals,
            assists=assists,
            external_id=line.external_id,
            matched=match.matched,
        )

    @staticmethod
    def _apply_overtime_heuristic(
        emitted_goals: list[tuple[GamePlayerStats, int]],
        overtime: bool,
        shootout: bool,
        team_goals: int,
        opponent_goals: int,
    ) -> None:
        """
        Mark the final emitted goal as the OT winner.

        Only applies when the game went to overtime without a shootout and
        the tracked team won by one, i.e. the score was tied before it.
        """
        if not emitted_goals or not overtime or shootout:
            return
        if team_goals != opponent_goals + 1:
            return

        record, nth = emitted_goals[-1]
        record.goals[nth] = record.goals[nth].model_copy(update={"is_overtime": True})
