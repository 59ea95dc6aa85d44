"""Tests for draft order rotation and maintenance."""

import pytest

from pickem.errors import DraftOrderMissingError
from pickem.service.draft_order import DraftOrderService, rotate, visible_order


class TestRotate:
    """Tests for the pure rotate function."""

    def test_moves_first_to_end(self):
        """Test [A, B, C] -> [B, C, A]."""
        assert rotate(["A", "B", "C"]) == ["B", "C", "A"]

    @pytest.mark.parametrize("order", [[], ["A"]])
    def test_short_lists_unchanged(self, order):
        """Test that empty and single-element lists are no-ops."""
        assert rotate(order) == order

    def test_input_not_mutated(self):
        """Test that rotation returns a new list."""
        order = ["A", "B"]
        rotate(order)
        assert order == ["A", "B"]

    def test_full_cycle(self):
        """Test that n rotations restore the order."""
        order = ["A", "B", "C", "D"]
        rotated = order
        for _ in range(len(order)):
            rotated = rotate(rotated)
        assert rotated == order


class TestVisibleOrder:
    """Tests for hiding unknown users."""

    def test_unknown_ids_skipped(self):
        """Test that missing users are skipped but order is kept."""
        assert visible_order(["A", "X", "B"], {"A", "B"}) == ["A", "B"]


class TestDraftOrderService:
    """Tests for the DraftOrderService class."""

    def test_rotate_without_order_rejected(self, db):
        """Test that rotating with nothing stored is a precondition error."""
        with pytest.raises(DraftOrderMissingError):
            DraftOrderService(db).rotate()
        assert db.get_draft_order() is None

    def test_set_and_rotate(self, db, clock):
        """Test that rotation is persisted."""
        service = DraftOrderService(db, clock=clock)
        service.set_order(["A", "B", "C"])

        assert service.rotate() == ["B", "C", "A"]
        assert service.get_order() == ["B", "C", "A"]
        assert db.get_draft_order().updated_at == clock.now

    def test_rotate_empty_stored_order(self, db):
        """Test that an empty stored order rotates to itself."""
        service = DraftOrderService(db)
        service.set_order([])
        assert service.rotate() == []

    def test_visible_order_keeps_stored_ids(self, db):
        """Test that unknown users are hidden, not removed."""
        db.add_user("A")
        db.add_user("C")
        service = DraftOrderService(db)
        service.set_order(["A", "B", "C"])

        assert service.visible_order() == ["A", "C"]
        assert service.get_order() == ["A", "B", "C"]

    def test_remove_user(self, db):
        """Test explicit removal."""
        service = DraftOrderService(db)
        service.set_order(["A", "B", "C"])
        assert service.remove_user("B") == ["A", "C"]
        assert service.get_order() == ["A", "C"]
