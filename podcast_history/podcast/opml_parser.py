"""OPML parser for the list of podcasts to convert.

Podcast apps export subscriptions as OPML, either flat or grouped into
category outlines:

    <body>
        <outline text="Technology">
            <outline type="rss" text="Some Show" xmlUrl="https://example.com/feed.xml"/>
        </outline>
    </body>
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from ..errors import MissingXMLNodeError

logger = logging.getLogger(__name__)


@dataclass
class PodcastFeed:
    """A feed outline extracted from OPML."""

    feed_url: str
    title: str
    category: Optional[str] = None

    def __post_init__(self):
        if not self.feed_url:
            raise ValueError("feed_url is required")
        self.feed_url = self.feed_url.strip()


class OPMLParser:
    """Parser for OPML subscription lists.

    Example:
        parser = OPMLParser()
        for feed in parser.parse_file("subscriptions.opml"):
            print(f"{feed.title}: {feed.feed_url}")
    """

    # Common attribute names for feed URLs across different OPML flavors
    URL_ATTRIBUTES = ["xmlUrl", "xmlurl"]

    # Pocket Casts matches podcasts on the outline's text, so it wins over title
    TITLE_ATTRIBUTES = ["text", "title"]

    def parse_file(self, file_path: Union[str, Path]) -> List[PodcastFeed]:
        """
        Parse an OPML file and extract its podcast feeds.

        Raises:
            FileNotFoundError: If the given file path does not exist.
            ET.ParseError: If the file contains invalid XML.
            MissingXMLNodeError: If the document has no body element.
        """
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"OPML file not found: {file_path}")

        logger.info(f"Parsing OPML file: {file_path}")

        with open(file_path, "r", encoding="utf-8") as f:
            content = f.read()

        return self.parse_string(content)

    def parse_string(self, content: str) -> List[PodcastFeed]:
        """Parse OPML content and return its feeds in document order.

        Args:
            content: OPML XML content

        Returns:
            List of PodcastFeed entries

        Raises:
            ET.ParseError: If the XML is not well-formed
            MissingXMLNodeError: If the document has no body element
        """
        try:
            root = ET.fromstring(content)
        except ET.ParseError as e:
            logger.error(f"Failed to parse OPML XML: {e}")
            raise

        # Note: Empty Element is falsy, so we can't use `or` here
        body = root.find("body")
        if body is None:
            body = root.find("BODY")
        if body is None:
            raise MissingXMLNodeError("body")

        feeds: List[PodcastFeed] = []
        self._collect_feeds(body, None, feeds)

        logger.info(f"Parsed OPML: {len(feeds)} feeds found")
        return feeds

    def _collect_feeds(self, parent: ET.Element, category: Optional[str], feeds: List[PodcastFeed]) -> None:
        for outline in parent.findall("outline") + parent.findall("OUTLINE"):
            feed_url = self._get_attribute(outline, self.URL_ATTRIBUTES)
            title = self._get_attribute(outline, self.TITLE_ATTRIBUTES)

            if feed_url:
                if not title:
                    logger.warning(f"Skipping feed without a title: {feed_url}")
                    continue
                feeds.append(PodcastFeed(feed_url=feed_url, title=title, category=category))
                logger.debug(f"Found feed: {title}")
            else:
                # A category/folder outline
                self._collect_feeds(outline, title or category, feeds)

    def _get_attribute(self, element: ET.Element, attr_names: List[str]) -> Optional[str]:
        """Get attribute value trying multiple possible names.

        Args:
            element: XML element
            attr_names: List of possible attribute names to try

        Returns:
            Attribute value or None if not found
        """
        for name in attr_names:
            value = element.get(name)
            if value:
                return value.strip()
        return None
