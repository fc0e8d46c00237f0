"""Podcast data module.

Provides functionality for:
- Podcast and track models
- OPML subscription parsing
- RSS feed parsing
"""

from .models import PlayingStatus, Podcast, Track, guid_to_track_id
from .opml_parser import OPMLParser, PodcastFeed
from .feed_parser import FeedParser, load_podcasts, normalize_url, parse_duration

__all__ = [
    "PlayingStatus",
    "Podcast",
    "Track",
    "guid_to_track_id",
    "OPMLParser",
    "PodcastFeed",
    "FeedParser",
    "load_podcasts",
    "normalize_url",
    "parse_duration",
]
