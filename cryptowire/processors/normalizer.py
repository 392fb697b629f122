"""
Feed item normalization into NormalizedArticle
"""
import hashlib
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Optional, Tuple

from cryptowire.processors.content_processor import ContentProcessor
from cryptowire.utils.clock import now_ms
from cryptowire.utils.constants import ProcessingConstants
from cryptowire.utils.models import FeedMeta, NormalizedArticle, ParsedFeedItem
from cryptowire.utils.security import URLValidator


class FeedNormalizer:
    """Turns loosely-typed feed items into the canonical article shape"""

    def __init__(self, summary_target_length: int = ProcessingConstants.SUMMARY_TARGET_LENGTH, clock=now_ms):
        self.summary_target_length = summary_target_length
        self.content_processor = ContentProcessor()
        self._clock = clock

    def normalize(self, item: ParsedFeedItem, feed_meta: FeedMeta, feed_url: str) -> NormalizedArticle:
        """
        Build a NormalizedArticle from a parsed feed item.

        Args:
            item: Parsed item; any field may be missing
            feed_meta: Feed-level metadata (title used as source name)
            feed_url: URL the feed was fetched from

        Returns:
            NormalizedArticle with a guaranteed non-empty summary
        """
        now = self._clock()

        title = self.content_processor.clean_text(item.title) or 'Untitled'
        title = title[:ProcessingConstants.MAX_TITLE_LENGTH]
        source = self.content_processor.clean_text(feed_meta.title) or URLValidator.hostname(feed_url)
        published_at, is_approximate = self.parse_date(item.pub_date, now)

        return NormalizedArticle(
            id=self.generate_stable_id(item, feed_url),
            url=URLValidator.canonicalize_url(item.link or item.guid or ''),
            source=source,
            title=title,
            summary=self.ensure_summary(item, title, source),
            image_url=self.extract_image(item),
            author=self.content_processor.clean_text(item.author) or None,
            categories=[c for c in (self.content_processor.clean_text(cat) for cat in item.categories) if c],
            published_at=published_at,
            is_date_approximate=is_approximate,
            fetched_at=now,
            from_cache=False,
        )

    def ensure_summary(self, item: ParsedFeedItem, title: str, source: str) -> str:
        """
        Pick the first candidate that yields a usable summary.

        Priority: content, content snippet, description. Falls back to a
        synthesized "Article from {source}: {title}" line.
        """
        candidates = [
            item.content or item.description,
            item.content_snippet,
            item.description,
        ]

        for candidate in candidates:
            if not candidate:
                continue
            cleaned = self.content_processor.clean_summary(candidate, self.summary_target_length)
            if len(cleaned) >= ProcessingConstants.MIN_SUMMARY_LENGTH:
                return cleaned

        return self.generate_fallback_summary(title, source)

    def generate_fallback_summary(self, title: str, source: str) -> str:
        title = self.content_processor.clean_text(title) or 'Untitled'
        source = self.content_processor.clean_text(source) or 'unknown source'
        return f"Article from {source}: {title}"[:self.summary_target_length]

    def extract_image(self, item: ParsedFeedItem) -> Optional[str]:
        """enclosure, then media:content, then media:thumbnail, then first <img>"""
        candidates = [
            item.enclosure_url,
            item.media_content_url,
            item.media_thumbnail_url,
            self.content_processor.first_image_src(item.content or item.description),
        ]
        for candidate in candidates:
            if candidate and URLValidator.is_valid_image_url(candidate):
                return candidate.strip()
        return None

    @staticmethod
    def parse_date(value: Optional[str], fallback_ms: int) -> Tuple[int, bool]:
        """
        Parse an RFC 822 or ISO 8601 date into epoch milliseconds.

        Returns:
            (timestamp, is_approximate); approximate dates use fallback_ms
        """
        if not value or not value.strip():
            return fallback_ms, True

        value = value.strip()
        parsed: Optional[datetime] = None
        try:
            parsed = parsedate_to_datetime(value)
        except (TypeError, ValueError, IndexError):
            try:
                parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
            except ValueError:
                parsed = None

        if parsed is None:
            return fallback_ms, True
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return int(parsed.timestamp() * 1000), False

    @staticmethod
    def generate_stable_id(item: ParsedFeedItem, feed_url: str) -> str:
        """sha256 of the guid, else of link:title:feed_url"""
        if item.guid:
            identifier = item.guid
        else:
            identifier = f"{item.link or ''}:{item.title or ''}:{feed_url}"
        digest = hashlib.sha256(identifier.encode('utf-8')).hexdigest()
        return digest[:ProcessingConstants.STABLE_ID_LENGTH]
