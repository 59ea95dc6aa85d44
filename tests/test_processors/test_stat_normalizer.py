"""
Tests for Stat Normalizer

Tests for side detection, roster matching, situational flags and the
one-record-per-roster-player guarantee.
"""

from datetime import datetime, timezone

import pytest

from pickem.analytics.scoring import player_points
from pickem.models.game import Game, GameStatus
from pickem.models.player import Player
from pickem.processors.payloads import HistoricalPayload, HistoricalSummary, parse_stat_line
from pickem.processors.stat_normalizer import StatNormalizer, match_stat_lines
from pickem.processors.stats_simulator import StatsSimulator


@pytest.fixture
def normalizer(ids) -> StatNormalizer:
    return StatNormalizer(team_id=ids.det, team_abbrev="DET", simulator=StatsSimulator(seed=1))


@pytest.fixture
def final_game(game) -> Game:
    return game.model_copy(update={"status": GameStatus.FINAL})


def by_id(normalized):
    return {record.player_id: record for record in normalized.player_stats}


def two_team_boxscore(ids, home_lines, away_lines=(), home_score=0, away_score=0, period_type="REG"):
    return {
        "homeTeam": {"id": ids.det, "abbrev": "DET", "score": home_score},
        "awayTeam": {"id": ids.tor, "abbrev": "TOR", "score": away_score},
        "gameOutcome": {"lastPeriodType": period_type},
        "playerByGameStats": {
            "homeTeam": {"forwards": list(home_lines)},
            "awayTeam": {"forwards": list(away_lines)},
        },
    }


class TestEndToEnd:
    """The 5-2 regulation win scored from live data."""

    def test_five_two_scenario(self, normalizer, final_game, roster, boxscore, play_by_play, ids):
        """Test F1=2, F2=1, goalie=3, team bonus=5."""
        normalized = normalizer.normalize(
            final_game, {"boxscore": boxscore, "playByPlay": play_by_play}, roster
        )
        records = by_id(normalized)

        assert normalized.available
        assert normalized.team_goals == 5
        assert normalized.opponent_goals == 2
        assert not normalized.overtime
        assert normalized.empty_net_goals == 0

        def score(player_id):
            return player_points(
                records[str(player_id)], normalized.opponent_goals, normalized.empty_net_goals
            )

        assert score(ids.larkin) == 2
        assert score(ids.debrincat) == 1
        assert score(ids.raymond) == 0
        assert score(ids.talbot) == 3
        assert normalized.team_points == 5

    def test_unmatched_line_kept_by_external_id(self, normalizer, final_game, roster, boxscore, ids):
        """Test that a stat line missing from the roster is retained."""
        normalized = normalizer.normalize(final_game, boxscore, roster)

        assert len(normalized.unmatched_stats) == 1
        unmatched = normalized.unmatched_stats[0]
        assert unmatched.player_id == str(ids.callup)
        assert not unmatched.matched
        assert unmatched.goal_count == 4


class TestCompleteness:
    """Every roster player gets exactly one record."""

    def test_one_record_per_roster_player(self, normalizer, final_game, roster, boxscore):
        """Test record count and order against the roster."""
        normalized = normalizer.normalize(final_game, boxscore, roster)
        assert [r.player_id for r in normalized.player_stats] == [p.id for p in roster]

    def test_players_absent_from_boxscore_zero_filled(
        self, normalizer, final_game, roster, defenseman, boxscore, ids
    ):
        """Test that a dressed-out player still gets an empty record."""
        normalized = normalizer.normalize(final_game, boxscore, roster + [defenseman])
        records = by_id(normalized)

        assert len(normalized.player_stats) == len(roster) + 1
        assert records[str(ids.seider)].goals == []
        assert records[str(ids.seider)].assists == []

    def test_duplicate_lines_do_not_duplicate_records(
        self, normalizer, final_game, roster, make_stat_entry, ids
    ):
        """Test that a repeated line is kept as unmatched, not a second record."""
        box = two_team_boxscore(
            ids,
            [
                make_stat_entry(ids.larkin, "D. Larkin", "C", goals=1),
                make_stat_entry(ids.larkin, "D. Larkin", "C", goals=1),
            ],
            home_score=2,
        )
        normalized = normalizer.normalize(final_game, box, roster)

        assert len(normalized.player_stats) == len(roster)
        assert len({r.player_id for r in normalized.player_stats}) == len(roster)
        assert len(normalized.unmatched_stats) == 1


class TestSideDetection:
    """Tests for picking the tracked team's side."""

    def test_by_team_id(self, normalizer, final_game, ids):
        """Test the team id match."""
        root = {"homeTeam": {"id": ids.tor}, "awayTeam": {"id": ids.det}}
        assert normalizer.resolve_side(root, final_game) == "awayTeam"

    def test_by_abbreviation(self, final_game):
        """Test the abbreviation match when no id is configured."""
        root = {"homeTeam": {"abbrev": "TOR"}, "awayTeam": {"abbrev": "DET"}}
        assert StatNormalizer(team_abbrev="DET").resolve_side(root, final_game) == "awayTeam"

    def test_by_home_flag(self, final_game):
        """Test the fallback to the game's home/away flag."""
        away_game = final_game.model_copy(update={"is_home": False})
        assert StatNormalizer().resolve_side({}, away_game) == "awayTeam"
        assert StatNormalizer().resolve_side({}, final_game) == "homeTeam"


class TestRosterMatching:
    """Tests for match_stat_lines precedence."""

    def test_external_id_first(self, roster, ids):
        """Test that the external id wins over a conflicting name."""
        line = parse_stat_line({"playerId": ids.larkin, "name": {"default": "Cam Talbot"}})
        (match,) = match_stat_lines([line], roster)
        assert match.player.id == str(ids.larkin)

    def test_exact_name(self):
        """Test the full-name match for rosters without external ids."""
        roster = [Player(id="a", name="Dylan Larkin", position="C")]
        (match,) = match_stat_lines([parse_stat_line({"name": "Dylan Larkin"})], roster)
        assert match.player.id == "a"

    def test_unique_last_name(self):
        """Test the last-name fallback."""
        roster = [Player(id="a", name="Dylan Larkin", position="C")]
        line = parse_stat_line({"playerId": 5, "name": {"default": "D. Larkin"}})
        (match,) = match_stat_lines([line], roster)
        assert match.player.id == "a"

    def test_ambiguous_last_name_left_unmatched(self):
        """Test that two candidates with the same last name match neither."""
        roster = [
            Player(id="a", name="Jack Hughes", position="C"),
            Player(id="b", name="Quinn Hughes", position="D"),
        ]
        line = parse_stat_line({"playerId": 5, "name": {"default": "J. Hughes"}})
        (match,) = match_stat_lines([line], roster)
        assert not match.matched


class TestSituations:
    """Tests for overtime, shorthanded and empty-net tagging."""

    def test_landing_summary_used_without_play_by_play(
        self, normalizer, final_game, roster, landing, make_stat_entry, ids
    ):
        """Test SH and OT flags taken from the landing scoring summary."""
        box = two_team_boxscore(
            ids,
            [
                make_stat_entry(ids.larkin, "D. Larkin", "C", goals=1, assists=1),
                make_stat_entry(ids.debrincat, "A. DeBrincat", "R", assists=1),
                make_stat_entry(ids.raymond, "L. Raymond", "L", goals=1),
            ],
            [make_stat_entry(ids.matthews, "A. Matthews", "C", goals=1)],
            home_score=2,
            away_score=1,
            period_type="OT",
        )
        normalized = normalizer.normalize(final_game, {"boxscore": box, "landing": landing}, roster)
        records = by_id(normalized)

        assert normalized.overtime
        assert player_points(records[str(ids.larkin)]) == 4 + 1
        assert player_points(records[str(ids.debrincat)]) == 2
        assert player_points(records[str(ids.raymond)]) == 7

    def test_overtime_heuristic_marks_last_goal(
        self, normalizer, final_game, roster, make_stat_entry, ids
    ):
        """Test the one-goal OT win without play-by-play."""
        box = two_team_boxscore(
            ids,
            [
                make_stat_entry(ids.larkin, "D. Larkin", "C", goals=1),
                make_stat_entry(ids.raymond, "L. Raymond", "L", goals=2),
            ],
            home_score=3,
            away_score=2,
            period_type="OT",
        )
        records = by_id(normalizer.normalize(final_game, box, roster))

        assert [g.is_overtime for g in records[str(ids.larkin)].goals] == [False]
        assert [g.is_overtime for g in records[str(ids.raymond)].goals] == [False, True]

    @pytest.mark.parametrize("period_type,home,away", [("OT", 2, 3), ("SO", 3, 2), ("REG", 3, 2)])
    def test_overtime_heuristic_not_applied(
        self, normalizer, final_game, roster, make_stat_entry, ids, period_type, home, away
    ):
        """Test that losses, shootouts and regulation games get no OT goal."""
        box = two_team_boxscore(
            ids,
            [make_stat_entry(ids.raymond, "L. Raymond", "L", goals=home)],
            home_score=home,
            away_score=away,
            period_type=period_type,
        )
        records = by_id(normalizer.normalize(final_game, box, roster))
        assert not any(g.is_overtime for g in records[str(ids.raymond)].goals)

    def test_opponent_empty_net_goals_counted(
        self, normalizer, final_game, roster, make_stat_entry, make_goal_play, ids
    ):
        """Test that empty-net goals against are excluded for the goalie."""
        box = two_team_boxscore(
            ids,
            [make_stat_entry(ids.larkin, "D. Larkin", "C", goals=1)],
            [make_stat_entry(ids.matthews, "A. Matthews", "C", goals=2)],
            home_score=1,
            away_score=2,
        )
        box["playerByGameStats"]["homeTeam"]["goalies"] = [
            make_stat_entry(ids.talbot, "C. Talbot", "G")
        ]
        pbp = {
            "plays": [
                make_goal_play(ids.larkin, ids.det, period=1),
                make_goal_play(ids.matthews, ids.tor, period=2),
                make_goal_play(ids.matthews, ids.tor, period=3, situation="1560"),
            ]
        }
        normalized = normalizer.normalize(final_game, {"boxscore": box, "playByPlay": pbp}, roster)

        assert normalized.empty_net_goals == 1
        goalie = by_id(normalized)[str(ids.talbot)]
        assert player_points(goalie, normalized.opponent_goals, normalized.empty_net_goals) == 3


class TestPayloadVariants:
    """Tests for historical, flat and unavailable payloads."""

    def test_historical_summary_scores(self, normalizer, final_game, roster, boxscore):
        """Test that historical scores come from the schedule summary."""
        payload = HistoricalPayload(
            boxscore=boxscore,
            summary=HistoricalSummary(team_goals=4, opponent_goals=1, is_home=True),
        )
        normalized = normalizer.normalize(final_game, payload, roster)

        assert normalized.source == "historical"
        assert normalized.team_goals == 4
        assert normalized.opponent_goals == 1
        assert len(normalized.player_stats) == len(roster)

    def test_flat_section_filtered_by_team(self, normalizer, final_game, roster, ids):
        """Test a flat stats list split by teamId."""
        box = {
            "homeTeam": {"id": ids.det},
            "awayTeam": {"id": ids.tor},
            "playerByGameStats": [
                {"playerId": ids.larkin, "teamId": ids.det, "g": 2, "position": "C"},
                {"playerId": ids.matthews, "teamId": ids.tor, "g": 1, "position": "C"},
            ],
        }
        normalized = normalizer.normalize(final_game, box, roster)

        assert by_id(normalized)[str(ids.larkin)].goal_count == 2
        assert normalized.unmatched_stats == []

    def test_missing_stats_section_not_ready(self, normalizer, final_game, roster, ids):
        """Test that a boxscore without player stats is not ready."""
        box = {"homeTeam": {"id": ids.det, "score": 0}, "awayTeam": {"id": ids.tor, "score": 0}}
        normalized = normalizer.normalize(final_game, {"boxscore": box}, roster)

        assert not normalized.available
        assert normalized.player_stats == []
        assert normalized.team_points == 0

    def test_unknown_payload_not_ready(self, normalizer, final_game, roster):
        """Test that an unrecognized payload does not raise."""
        normalized = normalizer.normalize(final_game, {"what": "ever"}, roster)
        assert not normalized.available
        assert normalized.source == "unknown"

    def test_no_payload_simulates(self, normalizer, roster):
        """Test that a missing payload falls back to the simulator."""
        game = Game(
            id="sim",
            start_time=datetime(2024, 10, 10, 23, 0, tzinfo=timezone.utc),
            status=GameStatus.COMPLETED,
        )
        normalized = normalizer.normalize(game, None, roster)

        assert normalized.available
        assert normalized.source == "simulated"
        assert len(normalized.player_stats) == len(roster)
