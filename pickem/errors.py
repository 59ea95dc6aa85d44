"""
Error Taxonomy

Exceptions raised when a pick or resolution request is rejected.

"Not ready" is deliberately absent: unavailable game data is reported
through return values, never raised.
"""


class PickemError(Exception):
    """Base class for all rejected operations."""

    user_message = "Something went wrong"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.user_message)


class ConflictError(PickemError):
    """The operation conflicts with existing state."""

    user_message = "Conflict"


class PickConflictError(ConflictError):
    """A pick already exists for this (user, league, game)."""

    user_message = "You already picked for this game"


class PicksLockedError(ConflictError):
    """The game is past its lock time or no longer scheduled."""

    user_message = "Picks are locked for this game"


class AlreadyResolvedError(ConflictError):
    """Points were already calculated for this game."""

    user_message = "Points have already been calculated for this game"


class PreconditionError(PickemError):
    """The operation was called in a state that does not allow it."""

    user_message = "Operation not allowed in the current state"


class GameNotFoundError(PreconditionError):
    user_message = "Game not found"


class PickNotFoundError(PreconditionError):
    user_message = "Pick not found"


class PlayerNotEligibleError(PreconditionError):
    user_message = "Player is not on the roster for this game"


class PickOwnershipError(PreconditionError):
    user_message = "You can only change your own picks"


class GameNotFinalError(PreconditionError):
    """Resolution requested for a game that has not finished."""

    user_message = "Game is not final yet"


class DraftOrderMissingError(PreconditionError):
    """Rotation requested but no draft order has been stored."""

    user_message = "No draft order has been set"
