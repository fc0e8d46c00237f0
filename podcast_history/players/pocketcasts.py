"""Pocket Casts database exports.

The save file is a bare SQLite database. Podcasts are matched by title and
episodes by download URL.
"""

import logging
import math
import time
from pathlib import Path
from typing import BinaryIO, Iterable, Optional, Tuple, Union

from ..db.state_store import StateStore
from ..errors import FeedNotFoundError, InvalidPlayingStatusError
from ..identifiers import decode_uuid, encode_uuid
from ..podcast.models import PlayingStatus, Podcast
from .base import Player

logger = logging.getLogger(__name__)

STATUS_FROM_CODE = {
    0: PlayingStatus.UNPLAYED,
    1: PlayingStatus.PLAYING,
    2: PlayingStatus.PLAYED,
}
CODE_FROM_STATUS = {status: code for code, status in STATUS_FROM_CODE.items()}

# Episode columns save may write; each has a matching "<field>_modified" column
UPDATABLE_FIELDS = frozenset({"played_up_to", "playing_status"})


def decode_playing_status(code) -> PlayingStatus:
    """Map a stored status code to a PlayingStatus.

    Raises:
        InvalidPlayingStatusError: If the code is not 0, 1 or 2
    """
    # bool is an int subclass but never a valid stored code
    if isinstance(code, bool) or not isinstance(code, int):
        raise InvalidPlayingStatusError(code)
    try:
        return STATUS_FROM_CODE[code]
    except KeyError:
        raise InvalidPlayingStatusError(code) from None


def encode_playing_status(status: PlayingStatus) -> int:
    return CODE_FROM_STATUS[status]


class PocketCastsPlayer(Player):
    """Reads and rewrites a Pocket Casts database."""

    name = "Pocket Casts"
    cli_name = "pocketcasts"

    def __init__(self, db: StateStore):
        super().__init__()
        self.db = db

    @classmethod
    def open(cls, path: Union[str, Path], temp_dir=None) -> "PocketCastsPlayer":
        db = StateStore.open(path, temp_dir=temp_dir)
        logger.info(f"Opened Pocket Casts database: {path}")
        return cls(db)

    def close(self) -> None:
        self.db.discard()

    def get_podcast(self, title: str) -> int:
        """Return the uuid of the podcast with this title.

        Raises:
            FeedNotFoundError: If no podcast has this title
        """
        rows = self.db.query("SELECT uuid FROM podcasts WHERE title = :title", {"title": title})
        if not rows:
            raise FeedNotFoundError(title)
        return decode_uuid(rows[0][0])

    def get_episode(self, podcast_id: int, episode_url: str) -> Optional[Tuple[int, float]]:
        """Return ``(playing_status, played_up_to)`` for an episode, or None if absent."""
        rows = self.db.query(
            "SELECT playing_status, played_up_to FROM episodes "
            "WHERE podcast_id = :podcast_id AND download_url = :download_url",
            {"podcast_id": encode_uuid(podcast_id), "download_url": episode_url},
        )
        if not rows:
            return None
        playing_status, played_up_to = rows[0]
        return playing_status, played_up_to

    def update_episode_part(
        self, podcast_id: int, episode_url: str, field: str, value: int, time_ms: int
    ) -> int:
        """Set one episode column and its ``_modified`` stamp, only if the value changed."""
        if field not in UPDATABLE_FIELDS:
            raise ValueError(f"Not an updatable episode field: {field}")

        return self.db.execute(
            f"UPDATE episodes SET {field} = :value, {field}_modified = :time "
            f"WHERE podcast_id = :podcast_id AND download_url = :download_url "
            f"AND {field} <> :value",
            {
                "podcast_id": encode_uuid(podcast_id),
                "download_url": episode_url,
                "value": value,
                "time": time_ms,
            },
        )

    def update_episode(
        self,
        podcast_id: int,
        episode_url: str,
        played_up_to: int,
        playing_status: int,
        time_ms: int,
    ) -> None:
        self.update_episode_part(podcast_id, episode_url, "played_up_to", played_up_to, time_ms)
        self.update_episode_part(podcast_id, episode_url, "playing_status", playing_status, time_ms)

    def _populate(self, podcast: Podcast) -> Podcast:
        podcast_id = self.get_podcast(podcast.title)

        for track in podcast.tracks:
            episode = self.get_episode(podcast_id, track.url)
            if episode is None:
                logger.info(f"Track not found: {track.guid} ({track.url})")
                continue

            status_code, played_up_to = episode
            track.progress = max(math.floor(played_up_to or 0), 0)
            track.playing_status = decode_playing_status(status_code)

        return podcast

    def _save(self, podcasts: Iterable[Podcast], sink: BinaryIO) -> None:
        now = int(time.time() * 1000)

        try:
            for podcast in podcasts:
                logger.info(f"Saving '{podcast.title}' ({podcast.url})")
                podcast_id = self.get_podcast(podcast.title)

                for track in podcast.tracks:
                    self.update_episode(
                        podcast_id,
                        track.url,
                        track.progress,
                        encode_playing_status(track.playing_status),
                        now,
                    )

            data = self.db.into_bytes()
        finally:
            self.close()

        sink.write(data)
        logger.info(f"Wrote Pocket Casts database ({len(data)} bytes)")
