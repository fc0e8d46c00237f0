"""Reader and writer for BeyondPod's item history blob.

The blob is a flat sequence of big-endian tokens::

    u16 length | UTF-8 string (length bytes) | u32 data

Tokens are grouped implicitly: a feed header ``(feed uuid, track count)``
is followed by ``track count`` entries ``(signed decimal track id, flags)``.
There are no group markers, so finding a feed is a linear scan that skips
over each non-matching group by its declared count.
"""

import logging
import struct
from typing import BinaryIO, Dict, Iterator, List, Optional, Tuple

from ..identifiers import decode_uuid, encode_uuid
from ..podcast.models import track_id_from_text, track_id_to_text

logger = logging.getLogger(__name__)

PLAYED_FLAG = 65
UNPLAYED_FLAG = 64

_LENGTH = struct.Struct(">H")
_DATA = struct.Struct(">I")


def _read_exact(stream: BinaryIO, size: int) -> Optional[bytes]:
    data = stream.read(size)
    if len(data) != size:
        return None
    return data


def read_token(stream: BinaryIO) -> Optional[Tuple[str, int]]:
    """Read one token, or None at end of stream or on a malformed token."""
    raw_length = _read_exact(stream, _LENGTH.size)
    if raw_length is None:
        return None
    (length,) = _LENGTH.unpack(raw_length)

    raw_string = _read_exact(stream, length)
    if raw_string is None:
        return None
    try:
        string = raw_string.decode("utf-8")
    except UnicodeDecodeError:
        logger.warning("Stopped reading history: token is not valid UTF-8")
        return None

    raw_data = _read_exact(stream, _DATA.size)
    if raw_data is None:
        return None
    (data,) = _DATA.unpack(raw_data)
    return string, data


def iter_tokens(stream: BinaryIO) -> Iterator[Tuple[str, int]]:
    """Yield ``(string, data)`` tokens until the stream ends or stops decoding."""
    while True:
        token = read_token(stream)
        if token is None:
            return
        yield token


def write_token(stream: BinaryIO, string: str, data: int) -> None:
    encoded = string.encode("utf-8")
    if len(encoded) > 0xFFFF:
        raise ValueError(f"History token too long: {len(encoded)} bytes")
    stream.write(_LENGTH.pack(len(encoded)))
    stream.write(encoded)
    stream.write(_DATA.pack(data))


def find_feed_history(stream: BinaryIO, feed_id: int) -> Dict[int, int]:
    """
    Scan the history blob for one feed's track flags.

    Parameters:
        stream (BinaryIO): The history blob, positioned at its start.
        feed_id (int): 128-bit feed UUID to look for.

    Returns:
        Dict[int, int]: Unsigned 32-bit track id -> raw flag word. Empty when the
        feed has no group in the blob.

    Raises:
        InvalidUUIDError: If a group header does not hold a valid UUID.
        ValueError: If a track entry of the matching feed is not a 32-bit decimal id.
    """
    tokens = iter_tokens(stream)

    for id_text, count in tokens:
        if decode_uuid(id_text) == feed_id:
            history = {}
            for _ in range(count):
                entry = next(tokens, None)
                if entry is None:
                    break
                track_text, flags = entry
                history[track_id_from_text(track_text)] = flags
            return history

        for _ in range(count):
            if next(tokens, None) is None:
                break

    return {}


def write_feed_history(stream: BinaryIO, feed_id: int, entries: List[Tuple[int, int]]) -> None:
    """Write one feed group: a header token then one token per ``(track_id, flags)`` entry."""
    write_token(stream, encode_uuid(feed_id), len(entries))
    for track_id, flags in entries:
        write_token(stream, track_id_to_text(track_id), flags)
