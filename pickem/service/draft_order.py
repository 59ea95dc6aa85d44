"""
Draft Order

Keeps the order in which users take turns picking and rotates it after
each resolved game (first user moves to the end).
"""

from datetime import datetime
from typing import Callable, Iterable

from loguru import logger

from pickem.database.db import Database
from pickem.errors import DraftOrderMissingError
from pickem.models.pick import DraftOrder
from pickem.service.pick_lifecycle import utc_now


def rotate(user_ids: list[str]) -> list[str]:
    """Move the first user to the end. Lists of 0 or 1 are returned as-is."""
    if len(user_ids) < 2:
        return list(user_ids)
    return user_ids[1:] + user_ids[:1]


def visible_order(user_ids: list[str], known_user_ids: Iterable[str]) -> list[str]:
    """Drop ids that no longer belong to a known user, keeping order."""
    known = set(known_user_ids)
    return [user_id for user_id in user_ids if user_id in known]


class DraftOrderService:
    """Reads, replaces and rotates the stored draft order."""

    def __init__(self, db: Database, clock: Callable[[], datetime] | None = None):
        self.db = db
        self.clock = clock or utc_now

    def get_order(self) -> list[str]:
        """Current order; empty if none has been set."""
        order = self.db.get_draft_order()
        return order.user_ids if order else []

    def has_order(self) -> bool:
        return self.db.get_draft_order() is not None

    def set_order(self, user_ids: list[str]) -> list[str]:
        """Replace the whole order."""
        self.db.save_draft_order(DraftOrder(user_ids=list(user_ids), updated_at=self.clock()))
        logger.info(f"Draft order set: {user_ids}")
        return list(user_ids)

    def rotate(self) -> list[str]:
        """
        Rotate the stored order once.

        Raises:
            DraftOrderMissingError: No order has ever been stored
        """
        order = self.db.get_draft_order()
        if order is None:
            raise DraftOrderMissingError("Cannot rotate: no draft order stored")

        rotated = rotate(order.user_ids)
        self.db.save_draft_order(DraftOrder(user_ids=rotated, updated_at=self.clock()))
        logger.info(f"Draft order rotated: {order.user_ids} -> {rotated}")
        return rotated

    def remove_user(self, user_id: str) -> list[str]:
        """Explicitly remove a user from the order."""
        order = self.db.get_draft_order()
        if order is None:
            raise DraftOrderMissingError("No draft order stored")
        remaining = [uid for uid in order.user_ids if uid != user_id]
        self.db.save_draft_order(DraftOrder(user_ids=remaining, updated_at=self.clock()))
        return remaining

    def visible_order(self) -> list[str]:
        """Order for display, skipping users that no longer exist."""
        return visible_order(self.get_order(), self.db.get_user_ids())
