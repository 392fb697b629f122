"""
Base aggregator interface
"""
from abc import ABC, abstractmethod
from typing import List, Optional

from cryptowire.utils.models import FeedResult, NormalizedArticle


class BaseAggregator(ABC):
    """Base class for feed aggregators"""

    def __init__(self, config):
        self.config = config

    @abstractmethod
    async def fetch_all(self, urls: List[str], force: bool = False) -> List[NormalizedArticle]:
        """Fetch every feed and return deduplicated articles"""
        pass

    @abstractmethod
    async def fetch_one(self, url: str, force: bool = False, trace_id: Optional[str] = None) -> FeedResult:
        """Fetch a single feed"""
        pass
