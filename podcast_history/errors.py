"""Exceptions raised by the podcast history converter.

Errors from collaborators (SQLAlchemy, zipfile, feedparser, the OS) are not
wrapped; they propagate as-is.
"""


class PodcastHistoryError(Exception):
    """Base class for converter errors."""


class InvalidUUIDError(PodcastHistoryError, ValueError):
    """Raised when a string is not a canonical hyphenated UUID."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"String is not a valid UUID: {value!r}")


class MissingXMLNodeError(PodcastHistoryError, ValueError):
    """Raised when a required element is missing from an OPML or RSS document."""

    def __init__(self, node: str):
        self.node = node
        super().__init__(f"Missing XML node: {node}")


class InvalidPlayingStatusError(PodcastHistoryError, ValueError):
    """Raised when a stored playing status code is outside the known range."""

    def __init__(self, code):
        self.code = code
        super().__init__(f"Invalid playing status: {code!r}")


class FeedNotFoundError(PodcastHistoryError, LookupError):
    """Raised when a podcast cannot be resolved in a player's database."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Feed not found: {key}")


class StateStoreError(PodcastHistoryError):
    """Raised when a state store is used after finalization or cannot be finalized."""


class PlayerConsumedError(PodcastHistoryError, RuntimeError):
    """Raised when a player is used after it has been saved."""
