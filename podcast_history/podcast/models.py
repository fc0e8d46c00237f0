"""Podcast and track data shared by every player."""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

TRACK_ID_MASK = 0xFFFFFFFF

_TRACK_ID_TEXT = re.compile(r"[+-]?[0-9]+")


class PlayingStatus(Enum):
    """Playback state of a single track."""

    UNPLAYED = "unplayed"
    PLAYING = "playing"
    PLAYED = "played"


@dataclass
class Track:
    """One episode of a podcast, as listed in its RSS feed.

    ``progress`` and ``playing_status`` start at their defaults and are
    filled in by the input player's ``populate``.
    """

    guid: str
    url: str
    duration: Optional[int] = None  # seconds

    progress: int = 0
    playing_status: PlayingStatus = PlayingStatus.UNPLAYED


@dataclass
class Podcast:
    """A subscribed feed and its tracks."""

    url: str
    title: str
    tracks: List[Track] = field(default_factory=list)


def guid_to_track_id(guid: str) -> int:
    """Hash a track guid into an unsigned 32-bit key (base-31 rolling hash over UTF-8 bytes)."""
    acc = 0
    for b in guid.encode("utf-8"):
        acc = (acc * 31 + b) & TRACK_ID_MASK
    return acc


def track_id_to_text(track_id: int) -> str:
    """Render a 32-bit track key as its signed decimal form."""
    track_id &= TRACK_ID_MASK
    if track_id >= 0x80000000:
        track_id -= 0x100000000
    return str(track_id)


def track_id_from_text(value: str) -> int:
    """Parse signed decimal text back into an unsigned 32-bit track key.

    Raises:
        ValueError: If the text is not a decimal integer in signed 32-bit range
    """
    if not _TRACK_ID_TEXT.fullmatch(value):
        raise ValueError(f"Not a decimal track id: {value!r}")
    number = int(value, 10)
    if not -0x80000000 <= number <= 0x7FFFFFFF:
        raise ValueError(f"Track id out of 32-bit range: {value}")
    return number & TRACK_ID_MASK
