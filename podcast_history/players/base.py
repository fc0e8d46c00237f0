"""Common contract for podcast player save-file adapters."""

from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Iterable, Union

from ..errors import PlayerConsumedError
from ..podcast.models import Podcast


class PlayerState(Enum):
    CREATED = "created"
    POPULATED = "populated"
    SAVED = "saved"


class Player(ABC):
    """A player save file that can fill in and write back listening history.

    A player is opened once, populated zero or more times, and saved exactly
    once. Saving consumes the player: any further call raises
    ``PlayerConsumedError``, even if the save itself failed.

    Subclasses implement ``open``, ``_populate`` and ``_save``.
    """

    # Human readable name, e.g. "Pocket Casts"
    name: str = ""
    # Command line stem, e.g. "pocketcasts"
    cli_name: str = ""

    def __init__(self):
        self.state = PlayerState.CREATED

    @classmethod
    @abstractmethod
    def open(cls, path: Union[str, Path], temp_dir=None) -> "Player":
        """
        Open a player's save file.

        Parameters:
            path (str | Path): Location of the player's save file.
            temp_dir (str | None): Directory for the scratch database copy.

        Returns:
            Player: A player in the CREATED state.
        """
        pass

    def populate(self, podcast: Podcast) -> Podcast:
        """
        Fill in each track's progress and playing status from this player's save file.

        Tracks the player has no record of keep their defaults. The podcast is
        modified in place and returned.

        Raises:
            PlayerConsumedError: If the player has already been saved.
            FeedNotFoundError: If the podcast itself is unknown to the player.
        """
        self._ensure_not_saved()
        podcast = self._populate(podcast)
        self.state = PlayerState.POPULATED
        return podcast

    def save(self, podcasts: Iterable[Podcast], sink: BinaryIO) -> None:
        """
        Write every podcast's track state into a new save file on ``sink``.

        Nothing is written to ``sink`` unless the new save file was built in full.

        Raises:
            PlayerConsumedError: If the player has already been saved.
        """
        self._ensure_not_saved()
        self.state = PlayerState.SAVED
        self._save(podcasts, sink)

    def _ensure_not_saved(self) -> None:
        if self.state is PlayerState.SAVED:
            raise PlayerConsumedError(f"{self.name} player has already been saved")

    @abstractmethod
    def _populate(self, podcast: Podcast) -> Podcast:
        pass

    @abstractmethod
    def _save(self, podcasts: Iterable[Podcast], sink: BinaryIO) -> None:
        pass

    @abstractmethod
    def close(self) -> None:
        """Release the save file and scratch database without writing anything."""
        pass
