"""
Best-effort RSS/Atom parsing built on feedparser
"""
import io
from typing import Any, List, Optional, Union

import feedparser

from cryptowire.processors.content_processor import ContentProcessor
from cryptowire.utils.constants import ProcessingConstants
from cryptowire.utils.exceptions import ParseError
from cryptowire.utils.logger import logger
from cryptowire.utils.models import FeedMeta, ParsedFeed, ParsedFeedItem


def _first_url(entries: Any, key: str) -> Optional[str]:
    for entry in entries or []:
        value = entry.get(key) if hasattr(entry, 'get') else None
        if value:
            return value
    return None


class FeedParser:
    """Extracts feed metadata and up to MAX_ARTICLES_PER_FEED items"""

    def __init__(self, max_items: int = ProcessingConstants.MAX_ARTICLES_PER_FEED):
        self.max_items = max_items
        self.content_processor = ContentProcessor()

    def parse(self, content: Union[bytes, str]) -> ParsedFeed:
        """
        Parse feed markup.

        The document is handed to feedparser as a stream so it is always read
        as markup, never as a URL or file path, and the XML-declared encoding
        applies to raw bytes.

        Args:
            content: Raw RSS/Atom document, bytes as received or text

        Returns:
            ParsedFeed with metadata and items in source order

        Raises:
            ParseError: When the document is not a recognizable feed
        """
        try:
            if isinstance(content, str):
                content = content.encode("utf-8")
            feed = feedparser.parse(io.BytesIO(content))
        except Exception as e:  # feedparser wraps most errors in bozo, but not all
            raise ParseError(f"Feed parsing failed: {e}")

        if feed.bozo and not feed.entries:
            raise ParseError(f"Malformed feed: {feed.get('bozo_exception')}")
        if feed.bozo:
            logger.warning(f"Feed parsing warning: {feed.get('bozo_exception')}")

        channel = feed.feed
        meta = FeedMeta(
            title=channel.get('title') or None,
            description=channel.get('subtitle') or channel.get('description') or None,
            language=channel.get('language') or None,
        )

        items: List[ParsedFeedItem] = []
        for entry in feed.entries[:self.max_items]:
            items.append(self._parse_entry(entry))
        return ParsedFeed(meta=meta, items=items)

    def _parse_entry(self, entry) -> ParsedFeedItem:
        description = entry.get('summary') or entry.get('description') or None

        content = None
        if entry.get('content'):
            content = entry.content[0].get('value') or None

        categories = [tag.get('term') for tag in entry.get('tags', []) if tag.get('term')]

        return ParsedFeedItem(
            title=entry.get('title') or None,
            description=description,
            content=content,
            content_snippet=self.content_processor.clean_text(description) or None,
            link=entry.get('link') or None,
            guid=entry.get('id') or None,
            author=entry.get('author') or None,
            categories=categories,
            pub_date=entry.get('published') or entry.get('updated') or None,
            enclosure_url=_first_url(entry.get('enclosures'), 'href'),
            media_content_url=_first_url(entry.get('media_content'), 'url'),
            media_thumbnail_url=_first_url(entry.get('media_thumbnail'), 'url'),
        )
