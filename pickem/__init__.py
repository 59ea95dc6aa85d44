"""
Hockey Pick'em Scoring Engine

Turns raw NHL game statistics into pick'em point totals, gates pick
submission behind the pre-game lock window, and rotates the draft order
after every resolved game.
"""

__version__ = "0.1.0"
__author__ = "Pick'em Team"
