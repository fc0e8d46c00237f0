"""BeyondPod backup archives.

A BeyondPod backup is a zip archive. Two members matter here: the SQLite
database and the binary item history (see ``history.py``). Both record
whether a track was played, independently of each other, so populate has
to reconcile them. Every other member is copied through untouched on save.
"""

import io
import logging
import zipfile
from pathlib import Path
from typing import BinaryIO, Dict, Iterable, List, Optional, Tuple, Union

from ..db.state_store import StateStore
from ..errors import FeedNotFoundError
from ..identifiers import decode_uuid, encode_uuid
from ..podcast.models import PlayingStatus, Podcast, guid_to_track_id, track_id_to_text
from .base import Player
from .history import PLAYED_FLAG, UNPLAYED_FLAG, find_feed_history, write_feed_history

logger = logging.getLogger(__name__)

HISTORY_FILE = "BeyondPodItemHistory.bin.autobak"
DB_FILE = "beyondpod.db.autobak"


def reconcile_played(
    sql_played: Optional[bool], history_played: Optional[bool], track_url: str = ""
) -> bool:
    """
    Decide whether a track was played from BeyondPod's two independent records.

    Parameters:
        sql_played (bool | None): ``tracks.played`` from the database, None when the track has no row.
        history_played (bool | None): Flag from the history blob, None when the track has no entry.
        track_url (str): Used only in the mismatch log message.

    Returns:
        bool: The agreed value when both records exist and agree, False when they
        disagree, the single value when only one exists, and False when neither does.
    """
    if sql_played is not None and history_played is not None:
        if sql_played == history_played:
            return sql_played
        logger.warning(
            f"{track_url}: played history mismatch: sql={sql_played}, history={history_played}"
        )
        return False

    if sql_played is not None:
        return sql_played
    if history_played is not None:
        return history_played
    return False


class BeyondPodPlayer(Player):
    """Reads and rewrites a BeyondPod backup archive.

    Feeds are matched by URL; tracks by a hash of their guid.
    """

    name = "BeyondPod"
    cli_name = "beyondpod"

    def __init__(self, archive: zipfile.ZipFile, db: StateStore):
        super().__init__()
        self.archive = archive
        self.db = db

    @classmethod
    def open(cls, path: Union[str, Path], temp_dir=None) -> "BeyondPodPlayer":
        archive = zipfile.ZipFile(path)
        try:
            with archive.open(DB_FILE) as db_member:
                db = StateStore.from_stream(db_member, temp_dir=temp_dir)
        except Exception:
            archive.close()
            raise

        logger.info(f"Opened BeyondPod backup: {path}")
        return cls(archive, db)

    def close(self) -> None:
        self.db.discard()
        self.archive.close()

    def get_feed(self, url: str) -> Tuple[int, int]:
        """Return ``(feed id, hasunread)`` for the feed with the given URL.

        Raises:
            FeedNotFoundError: If no feed has this URL
            InvalidUUIDError: If the stored feed id is malformed
        """
        rows = self.db.query("SELECT feedid, hasunread FROM feeds WHERE url = :url", {"url": url})
        if not rows:
            raise FeedNotFoundError(url)
        feed_id, has_unread = rows[0]
        return decode_uuid(feed_id), has_unread

    def get_track(self, feed_id: int, track_id: int) -> Optional[Tuple[bool, int]]:
        """Return ``(played, playedtime)`` for a track, or None if it has no row."""
        rows = self.db.query(
            "SELECT played, playedtime FROM tracks "
            "WHERE orgrssitemid = :orgrssitemid AND parentfeedid = :parentfeedid",
            {
                "orgrssitemid": track_id_to_text(track_id),
                "parentfeedid": encode_uuid(feed_id),
            },
        )
        if not rows:
            return None
        played, played_time = rows[0]
        return bool(played), played_time

    def update_track(self, feed_id: int, track_id: int, played: bool, played_time: int) -> None:
        self.db.execute(
            "UPDATE tracks SET played = :played, playedtime = :playedtime "
            "WHERE orgrssitemid = :orgrssitemid AND parentfeedid = :parentfeedid",
            {
                "orgrssitemid": track_id_to_text(track_id),
                "parentfeedid": encode_uuid(feed_id),
                "played": played,
                "playedtime": played_time,
            },
        )

    def get_feed_history(self, feed_id: int) -> Dict[int, int]:
        with self.archive.open(HISTORY_FILE) as history:
            return find_feed_history(history, feed_id)

    def _populate(self, podcast: Podcast) -> Podcast:
        feed_id, _has_unread = self.get_feed(podcast.url)
        history = self.get_feed_history(feed_id)

        for track in podcast.tracks:
            track_id = guid_to_track_id(track.guid)

            sql_played = None
            sql_progress = None
            row = self.get_track(feed_id, track_id)
            if row is not None:
                sql_played, played_time = row
                if played_time is not None and played_time >= 0:
                    sql_progress = played_time
            else:
                logger.info(f"Track not in BeyondPod database: {track.url}")

            flags = history.get(track_id)
            history_played = None if flags is None else flags == PLAYED_FLAG

            played = reconcile_played(sql_played, history_played, track.url)
            track.progress = sql_progress or 0

            if played:
                track.playing_status = PlayingStatus.PLAYED
            elif track.progress > 0:
                track.playing_status = PlayingStatus.PLAYING
            else:
                track.playing_status = PlayingStatus.UNPLAYED

        return podcast

    def _save(self, podcasts: Iterable[Podcast], sink: BinaryIO) -> None:
        try:
            history_blob = self._write_database(podcasts)
            db_blob = self.db.into_bytes()

            members: List[Tuple[str, bytes]] = []
            for info in self.archive.infolist():
                if info.filename == HISTORY_FILE:
                    payload = history_blob
                elif info.filename == DB_FILE:
                    payload = db_blob
                else:
                    payload = self.archive.read(info)
                members.append((info.filename, payload))
        finally:
            self.close()

        with zipfile.ZipFile(sink, "w", compression=zipfile.ZIP_DEFLATED) as out:
            for filename, payload in members:
                out.writestr(filename, payload)

        logger.info(f"Wrote BeyondPod backup with {len(members)} members")

    def _write_database(self, podcasts: Iterable[Podcast]) -> bytes:
        """Push track state into the database and build the new history blob."""
        history = io.BytesIO()

        for podcast in podcasts:
            logger.info(f"Saving '{podcast.title}' ({podcast.url})")
            feed_id, _has_unread = self.get_feed(podcast.url)
            entries: List[Tuple[int, int]] = []

            for track in podcast.tracks:
                track_id = guid_to_track_id(track.guid)
                played = track.playing_status is PlayingStatus.PLAYED
                in_db = self.get_track(feed_id, track_id) is not None

                if in_db:
                    self.update_track(feed_id, track_id, played, track.progress)

                if played or in_db:
                    entries.append((track_id, PLAYED_FLAG if played else UNPLAYED_FLAG))

            # Feeds without entries are left out of the new history entirely,
            # including any history they had before.
            if entries:
                write_feed_history(history, feed_id, entries)

        return history.getvalue()
