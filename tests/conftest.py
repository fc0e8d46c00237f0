"""
Pytest configuration and fixtures for podcast-history tests.

Builds small BeyondPod archives and Pocket Casts databases on disk so the
players can be exercised against real SQLite files and zip archives.
Environment variables read by Config are cleared so tests behave the same
regardless of the developer's environment.
"""

import io
import os
import zipfile
from typing import Dict, List, Optional, Tuple

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.pool import NullPool

from podcast_history.players.beyondpod import DB_FILE, HISTORY_FILE
from podcast_history.players.history import write_feed_history

for _name in ("LOG_LEVEL", "FEED_USER_AGENT", "STATE_STORE_TEMP_DIR"):
    os.environ.pop(_name, None)

FEED_URL = "https://example.com/feed.xml"
FEED_UUID = "0f8fad5b-d9cb-469f-a165-70867728950e"
FEED_ID = int(FEED_UUID.replace("-", ""), 16)

OTHER_FEED_URL = "https://example.com/other.xml"
OTHER_FEED_UUID = "7c9e6679-7425-40de-944b-e07fc1f90ae7"
OTHER_FEED_ID = int(OTHER_FEED_UUID.replace("-", ""), 16)

PODCAST_TITLE = "Test Podcast"
PODCAST_UUID = "6fa459ea-ee8a-3ca4-894e-db77e160355e"
PODCAST_ID = int(PODCAST_UUID.replace("-", ""), 16)

COVER_BYTES = b"\x89PNG\r\n\x1a\n" + bytes(range(256))

BEYONDPOD_SCHEMA = [
    "CREATE TABLE feeds (feedid TEXT, url TEXT, hasunread INTEGER)",
    "CREATE TABLE tracks (orgrssitemid INTEGER, parentfeedid TEXT, played INTEGER, playedtime INTEGER)",
]

POCKETCASTS_SCHEMA = [
    "CREATE TABLE podcasts (uuid TEXT, title TEXT)",
    "CREATE TABLE episodes ("
    "podcast_id TEXT, download_url TEXT, "
    "playing_status INTEGER, playing_status_modified INTEGER, "
    "played_up_to REAL, played_up_to_modified INTEGER)",
]


def build_sqlite(path, schema: List[str], rows: List[Tuple[str, Dict]]) -> None:
    """Create a SQLite file at ``path`` with the given schema and rows."""
    engine = create_engine(f"sqlite:///{path}", poolclass=NullPool)
    with engine.begin() as conn:
        for statement in schema:
            conn.execute(text(statement))
        for statement, params in rows:
            conn.execute(text(statement), params)
    engine.dispose()


def query_sqlite_bytes(tmp_path, data: bytes, statement: str, params: Optional[Dict] = None):
    """Write a SQLite image to disk and run a query against it."""
    path = tmp_path / "inspect.db"
    path.write_bytes(data)
    engine = create_engine(f"sqlite:///{path}", poolclass=NullPool)
    with engine.connect() as conn:
        rows = conn.execute(text(statement), params or {}).fetchall()
    engine.dispose()
    path.unlink()
    return rows


def history_blob(groups: List[Tuple[int, List[Tuple[int, int]]]]) -> bytes:
    """Encode ``(feed id, [(track id, flags), ...])`` groups into a history blob."""
    stream = io.BytesIO()
    for feed_id, entries in groups:
        write_feed_history(stream, feed_id, entries)
    return stream.getvalue()


@pytest.fixture
def make_beyondpod_archive(tmp_path):
    """
    Return a factory that writes a BeyondPod backup archive.

    The factory takes track rows ``(guid_track_id_text, feed_uuid, played, playedtime)``
    and history groups, and returns the archive path. The archive always
    contains the history blob, the database and a ``cover.png`` passthrough member.
    """

    def factory(
        tracks: List[Tuple[str, str, int, Optional[int]]],
        history: List[Tuple[int, List[Tuple[int, int]]]],
        name: str = "beyondpod.zip",
    ):
        db_path = tmp_path / f"{name}.db"
        rows = [
            (
                "INSERT INTO feeds (feedid, url, hasunread) VALUES (:feedid, :url, 1)",
                {"feedid": FEED_UUID, "url": FEED_URL},
            ),
            (
                "INSERT INTO feeds (feedid, url, hasunread) VALUES (:feedid, :url, 0)",
                {"feedid": OTHER_FEED_UUID, "url": OTHER_FEED_URL},
            ),
        ]
        for track_id_text, feed_uuid, played, played_time in tracks:
            rows.append(
                (
                    "INSERT INTO tracks (orgrssitemid, parentfeedid, played, playedtime) "
                    "VALUES (:orgrssitemid, :parentfeedid, :played, :playedtime)",
                    {
                        "orgrssitemid": int(track_id_text),
                        "parentfeedid": feed_uuid,
                        "played": played,
                        "playedtime": played_time,
                    },
                )
            )
        build_sqlite(db_path, BEYONDPOD_SCHEMA, rows)

        archive_path = tmp_path / name
        with zipfile.ZipFile(archive_path, "w", compression=zipfile.ZIP_DEFLATED) as archive:
            archive.writestr(HISTORY_FILE, history_blob(history))
            archive.writestr(DB_FILE, db_path.read_bytes())
            archive.writestr("cover.png", COVER_BYTES)
        db_path.unlink()
        return archive_path

    return factory


@pytest.fixture
def make_pocketcasts_db(tmp_path):
    """
    Return a factory that writes a Pocket Casts database.

    The factory takes episode rows ``(download_url, playing_status, played_up_to)``
    for the test podcast and returns the database path. Modified stamps start at 1.
    """

    def factory(episodes: List[Tuple[str, int, Optional[float]]], name: str = "pocketcasts.db"):
        rows = [
            (
                "INSERT INTO podcasts (uuid, title) VALUES (:uuid, :title)",
                {"uuid": PODCAST_UUID, "title": PODCAST_TITLE},
            )
        ]
        for download_url, playing_status, played_up_to in episodes:
            rows.append(
                (
                    "INSERT INTO episodes (podcast_id, download_url, playing_status, "
                    "playing_status_modified, played_up_to, played_up_to_modified) "
                    "VALUES (:podcast_id, :download_url, :playing_status, 1, :played_up_to, 1)",
                    {
                        "podcast_id": PODCAST_UUID,
                        "download_url": download_url,
                        "playing_status": playing_status,
                        "played_up_to": played_up_to,
                    },
                )
            )
        db_path = tmp_path / name
        build_sqlite(db_path, POCKETCASTS_SCHEMA, rows)
        return db_path

    return factory
