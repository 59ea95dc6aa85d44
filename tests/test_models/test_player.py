"""
Tests for Player Model

Tests for position normalization and the Player model.
"""

import pytest
from pydantic import ValidationError

from pickem.models.player import (
    Player,
    PlayerPosition,
    PositionGroup,
    normalize_position,
    position_group,
)


class TestNormalizePosition:
    """Tests for normalize_position."""

    @pytest.mark.parametrize(
        "code,expected",
        [
            ("C", PlayerPosition.CENTER),
            ("L", PlayerPosition.LEFT_WING),
            ("R", PlayerPosition.RIGHT_WING),
            ("lw", PlayerPosition.LEFT_WING),
            (" D ", PlayerPosition.DEFENSEMAN),
            ("Goalie", PlayerPosition.GOALIE),
            ("F", PlayerPosition.FORWARD),
        ],
    )
    def test_aliases(self, code, expected):
        """Test that aliases resolve to canonical positions."""
        assert normalize_position(code) == expected

    @pytest.mark.parametrize("code", ["X", "", None, 7, "Winger"])
    def test_unknown_never_raises(self, code):
        """Test that unrecognized codes become UNKNOWN."""
        assert normalize_position(code) == PlayerPosition.UNKNOWN

    def test_position_groups(self):
        """Test collapsing positions to scoring groups."""
        assert position_group("L") == PositionGroup.FORWARD
        assert position_group("RW") == PositionGroup.FORWARD
        assert position_group("C") == PositionGroup.FORWARD
        assert position_group("D") == PositionGroup.DEFENSE
        assert position_group("G") == PositionGroup.GOALIE
        assert position_group("Q") is None


class TestPlayer:
    """Tests for the Player model."""

    def test_player_creation(self):
        """Test basic player creation."""
        player = Player(id="71", name="Dylan Larkin", number=71, position="C", external_id=8478403)

        assert player.id == "71"
        assert player.position == PlayerPosition.CENTER
        assert player.is_forward
        assert not player.is_goalie
        assert player.last_name == "Larkin"

    def test_single_letter_wing_normalized(self):
        """Test that L/R are stored as LW/RW."""
        assert Player(id="1", name="A B", position="L").position == PlayerPosition.LEFT_WING
        assert Player(id="2", name="C D", position="R").position == PlayerPosition.RIGHT_WING

    def test_unknown_position_kept(self):
        """Test that an odd position code does not fail validation."""
        player = Player(id="3", name="Mystery Man", position="??")
        assert player.position == PlayerPosition.UNKNOWN
        assert player.group is None

    def test_player_is_immutable(self):
        """Test that players are frozen."""
        player = Player(id="4", name="Cam Talbot", position="G")
        assert player.is_goalie
        with pytest.raises(ValidationError):
            player.name = "Someone Else"
