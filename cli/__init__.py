"""
CLI Module for the hockey pick'em pool

Usage:
    pickem --help
    python -m cli.main --help
"""

from cli.main import main

__all__ = ["main"]
