"""Database module for player state persistence.

Provides:
- StateStore, a scratch-file-backed SQLite database
"""

from .state_store import StateStore

__all__ = [
    "StateStore",
]
