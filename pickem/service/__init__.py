"""
Service Module

Stateful operations over the persistence layer.

Services:
    - PickService: Pick creation, deletion and locking
    - DraftOrderService: Draft order storage and rotation
    - ResultResolver: Game resolution and season totals
"""

from pickem.service.draft_order import DraftOrderService, rotate
from pickem.service.pick_lifecycle import LOCK_WINDOW, PickService, lock_time, pick_state
from pickem.service.result_resolver import (
    ResolutionOutcome,
    ResolutionStatus,
    ResultResolver,
    calculate_user_scores,
    pick_points,
)

__all__ = [
    "DraftOrderService",
    "rotate",
    "LOCK_WINDOW",
    "PickService",
    "lock_time",
    "pick_state",
    "ResolutionOutcome",
    "ResolutionStatus",
    "ResultResolver",
    "calculate_user_scores",
    "pick_points",
]
