"""
Cross-feed duplicate removal
"""
import hashlib
from typing import List, Set, Tuple

from cryptowire.utils.logger import logger
from cryptowire.utils.models import NormalizedArticle
from cryptowire.utils.security import URLValidator


class DuplicateDetector:
    """Collapses the same story republished across feeds"""

    @staticmethod
    def dedupe_key(article: NormalizedArticle) -> Tuple[str, str]:
        """(canonical URL, md5 of the lowercased title)"""
        url_key = URLValidator.canonicalize_url(article.url)
        title_hash = hashlib.md5(article.title.lower().encode('utf-8')).hexdigest()
        return url_key, title_hash

    def deduplicate(self, articles: List[NormalizedArticle]) -> List[NormalizedArticle]:
        """Keep the newest article for each dedupe key, newest first"""
        if not articles:
            return []

        # sorted() is stable, so equal timestamps keep their input order
        ordered = sorted(articles, key=lambda a: a.published_at, reverse=True)

        seen: Set[Tuple[str, str]] = set()
        unique_articles = []
        for article in ordered:
            key = self.dedupe_key(article)
            if key in seen:
                continue
            seen.add(key)
            unique_articles.append(article)

        removed = len(articles) - len(unique_articles)
        if removed:
            logger.debug(f"Removed {removed} duplicates, kept {len(unique_articles)} unique articles")
        return unique_articles
