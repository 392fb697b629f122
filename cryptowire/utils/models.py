"""
Base models and data structures
"""
from typing import Optional, List, Dict, Any, Generic, TypeVar
from pydantic import BaseModel, ConfigDict, Field
from enum import Enum


T = TypeVar("T")


class RequestPriority(str, Enum):
    HIGH = "high"      # User-initiated actions (adding tokens, manual refresh)
    NORMAL = "normal"  # Regular batch updates
    LOW = "low"        # Background updates, metadata fetching


class NormalizedArticle(BaseModel):
    """Canonical article shape produced by the feed engine"""
    id: str
    url: str
    source: str
    title: str
    summary: str
    image_url: Optional[str] = None
    author: Optional[str] = None
    categories: List[str] = Field(default_factory=list)
    published_at: int
    is_date_approximate: bool = False
    fetched_at: int
    from_cache: bool = False


class FundraisingArticle(NormalizedArticle):
    """Article enriched with fundraising signals"""
    chains: List[str] = Field(default_factory=list)
    tokenless: bool = False
    funding_stage: Optional[str] = None
    funding_amount: Optional[str] = None
    investors: List[str] = Field(default_factory=list)


class FeedMeta(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    language: Optional[str] = None
    etag: Optional[str] = None
    last_modified: Optional[str] = None


class ParsedFeedItem(BaseModel):
    """Loosely-typed feed entry; every field is optional"""
    title: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None
    content_snippet: Optional[str] = None
    link: Optional[str] = None
    guid: Optional[str] = None
    author: Optional[str] = None
    categories: List[str] = Field(default_factory=list)
    pub_date: Optional[str] = None
    enclosure_url: Optional[str] = None
    media_content_url: Optional[str] = None
    media_thumbnail_url: Optional[str] = None


class ParsedFeed(BaseModel):
    meta: FeedMeta = Field(default_factory=FeedMeta)
    items: List[ParsedFeedItem] = Field(default_factory=list)


class FeedResult(BaseModel):
    meta: FeedMeta = Field(default_factory=FeedMeta)
    items: List[NormalizedArticle] = Field(default_factory=list)
    error: Optional[str] = None


class CacheEntry(BaseModel):
    """Stored cache record; expiry = timestamp + duration"""
    model_config = ConfigDict(populate_by_name=True)

    data: Any
    timestamp: int
    expiry: int
    etag: Optional[str] = None
    last_modified: Optional[str] = Field(default=None, alias="lastModified")


class FetchResult(BaseModel, Generic[T]):
    """Uniform service response"""
    data: List[T] = Field(default_factory=list)
    from_cache: bool = False
    cache_age: Optional[int] = None


class TrendingToken(BaseModel):
    """Market data row for a trending coin"""
    model_config = ConfigDict(extra="ignore")

    id: str
    symbol: str
    name: str
    image: Optional[str] = None
    current_price: Optional[float] = None
    price_change_percentage_24h: Optional[float] = None
    total_volume: Optional[float] = None


class TrendingItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    name: Optional[str] = None
    symbol: Optional[str] = None
    market_cap_rank: Optional[int] = None


class TrendingCoin(BaseModel):
    item: TrendingItem


class TrendingResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    coins: List[TrendingCoin] = Field(default_factory=list)


class CoinDetails(BaseModel):
    id: str
    symbol: str
    name: str
    categories: List[str] = Field(default_factory=list)
    image: Optional[str] = None
    description: Optional[str] = None
    links: Dict[str, Any] = Field(default_factory=dict)
    market_cap_rank: Optional[int] = None
    asset_platform_id: Optional[str] = None
