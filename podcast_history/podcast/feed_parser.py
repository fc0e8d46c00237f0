"""RSS feed parser producing the tracks each player is asked about.

Uses the feedparser library to fetch and parse feeds. Only the fields the
players need are kept: the item guid, the enclosure URL and the iTunes
duration.
"""

import logging
import re
from pathlib import Path
from typing import List, Optional, Union
from urllib.parse import quote, urlsplit, urlunsplit

import feedparser

from ..errors import MissingXMLNodeError
from .models import Podcast, Track
from .opml_parser import OPMLParser

logger = logging.getLogger(__name__)

_DURATION_FIELD = re.compile(r"[0-9]+")
_MAX_DURATION_FIELD = 0xFFFFFFFF


def parse_duration(value: Optional[str]) -> Optional[int]:
    """Parse an itunes:duration value into seconds.

    Handles "SS", "MM:SS" and "HH:MM:SS". Fields beyond the third are ignored,
    and each field must fit in an unsigned 32-bit integer.
    Seconds must be below 60 once minutes are given, and minutes and seconds
    together below an hour once hours are given.

    Args:
        value: Duration text

    Returns:
        Duration in seconds or None if the text is not a valid duration
    """
    if value is None:
        return None

    fields = value.split(":")[:3]
    if not all(_DURATION_FIELD.fullmatch(f) for f in fields):
        return None
    parts = [int(f) for f in reversed(fields)]
    if any(p > _MAX_DURATION_FIELD for p in parts):
        return None

    duration = parts[0]
    if len(parts) == 1:
        return duration

    if duration >= 60:
        return None
    duration = 60 * parts[1] + duration
    if len(parts) == 2:
        return duration

    if duration >= 3600:
        return None
    return 3600 * parts[2] + duration


_DEFAULT_PORTS = {"http": 80, "https": 443, "ftp": 21, "ws": 80, "wss": 443}

# Characters left as-is; existing percent escapes are not encoded twice
_PATH_SAFE = "/%:@!$&'()*+,;=~"
_QUERY_SAFE = _PATH_SAFE + "?"


def normalize_url(url: str) -> str:
    """Bring a URL into the canonical form the players store.

    Lower-cases the scheme and host, drops the scheme's default port, gives an
    empty path a trailing "/" and percent-encodes characters such as spaces.

    Args:
        url: Absolute URL text

    Returns:
        The normalized URL

    Raises:
        ValueError: If the URL has no scheme or host, or its port is invalid
    """
    parts = urlsplit(url.strip())
    if not parts.scheme or not parts.hostname:
        raise ValueError(f"Not an absolute URL: {url!r}")

    scheme = parts.scheme.lower()
    host = parts.hostname
    if ":" in host:
        host = f"[{host}]"

    port = parts.port
    netloc = host
    if port is not None and port != _DEFAULT_PORTS.get(scheme):
        netloc = f"{netloc}:{port}"
    if "@" in parts.netloc:
        netloc = parts.netloc.rsplit("@", 1)[0] + "@" + netloc

    path = quote(parts.path, safe=_PATH_SAFE) or "/"
    query = quote(parts.query, safe=_QUERY_SAFE)
    fragment = quote(parts.fragment, safe=_QUERY_SAFE)
    return urlunsplit((scheme, netloc, path, query, fragment))


class FeedParser:
    """Parser for podcast RSS feeds.

    Example:
        parser = FeedParser()
        podcast = parser.parse_url("https://example.com/feed.xml", "Example Show")
        for track in podcast.tracks:
            print(track.guid, track.url)
    """

    # User agent for feed requests
    USER_AGENT = "PodcastHistory/1.0"

    def __init__(self, user_agent: Optional[str] = None):
        """Initialize the feed parser.

        Args:
            user_agent: Custom user agent string for requests
        """
        self.user_agent = user_agent or self.USER_AGENT

    def parse_url(self, feed_url: str, title: str) -> Podcast:
        """Fetch and parse a podcast feed.

        Args:
            feed_url: URL of the RSS feed
            title: Podcast title as listed in the OPML file

        Returns:
            Podcast with one Track per usable feed item

        Raises:
            MissingXMLNodeError: If the feed has no channel
            ValueError: If the feed URL is not an absolute URL
        """
        feed_url = normalize_url(feed_url)
        logger.info(f"Fetching '{title}' ({feed_url})")

        feed = feedparser.parse(feed_url, agent=self.user_agent)

        if feed.bozo and feed.get("bozo_exception"):
            logger.warning(f"Feed parsing warning for {feed_url}: {feed.bozo_exception}")

        return self._build_podcast(feed, feed_url, title)

    def parse_string(self, content: str, feed_url: str, title: str) -> Podcast:
        """Parse feed content that was already fetched."""
        feed = feedparser.parse(content)
        return self._build_podcast(feed, normalize_url(feed_url), title)

    def _build_podcast(self, feed: feedparser.FeedParserDict, feed_url: str, title: str) -> Podcast:
        if not feed.feed:
            raise MissingXMLNodeError("channel")

        tracks = []
        for entry in feed.entries:
            track = self._parse_track(entry)
            if track:
                tracks.append(track)

        logger.debug(f"Parsed '{title}' with {len(tracks)} tracks")
        return Podcast(url=feed_url, title=title, tracks=tracks)

    def _parse_track(self, entry: feedparser.FeedParserDict) -> Optional[Track]:
        """Build a Track from a feed item, or None if it lacks a guid or enclosure."""
        guid = entry.get("id")
        if not guid:
            logger.debug(f"Skipping item without guid: {entry.get('title')}")
            return None

        url = None
        for enclosure in entry.get("enclosures", []):
            url = enclosure.get("href") or enclosure.get("url")
            if url:
                break
        if not url:
            logger.debug(f"Skipping item without enclosure: {entry.get('title')}")
            return None

        try:
            url = normalize_url(url)
        except ValueError:
            logger.debug(f"Skipping item with invalid enclosure URL: {url}")
            return None

        return Track(
            guid=guid,
            url=url,
            duration=parse_duration(entry.get("itunes_duration")),
        )


def load_podcasts(
    opml_path: Union[str, Path], feed_parser: Optional[FeedParser] = None
) -> List[Podcast]:
    """
    Read the OPML subscription list and fetch every feed it names.

    Feeds are fetched in document order; the first failure aborts the load.

    Parameters:
        opml_path (str | Path): OPML file listing the podcasts.
        feed_parser (FeedParser | None): Parser used to fetch each feed; a default one when None.

    Returns:
        List[Podcast]: One podcast per OPML feed, with unpopulated tracks.
    """
    feed_parser = feed_parser or FeedParser()
    feeds = OPMLParser().parse_file(opml_path)
    return [feed_parser.parse_url(feed.feed_url, feed.title) for feed in feeds]
