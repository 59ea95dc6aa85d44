"""Database module for the pick'em pool."""

from .db import Database, get_database

__all__ = ["Database", "get_database"]
