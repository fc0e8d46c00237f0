"""Podcast player save-file adapters.

Provides:
- Player contract shared by every adapter
- BeyondPod backup archives
- Pocket Casts databases
"""

from typing import Dict, Type

from .base import Player, PlayerState
from .beyondpod import BeyondPodPlayer
from .pocketcasts import PocketCastsPlayer

# Players selectable from the command line, keyed by cli_name
PLAYERS: Dict[str, Type[Player]] = {
    player.cli_name: player for player in (BeyondPodPlayer, PocketCastsPlayer)
}

__all__ = [
    "Player",
    "PlayerState",
    "BeyondPodPlayer",
    "PocketCastsPlayer",
    "PLAYERS",
]
