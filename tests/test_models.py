"""
Test suite for data models
"""
from cryptowire.utils.models import (
    CacheEntry,
    FetchResult,
    FundraisingArticle,
    NormalizedArticle,
    TrendingToken,
)


class TestModels:
    """Serialization details the cache and services depend on"""

    def test_cache_entry_wire_names(self):
        entry = CacheEntry.model_validate({"data": [1], "timestamp": 1, "expiry": 2, "lastModified": "yesterday"})
        assert entry.last_modified == "yesterday"
        assert entry.model_dump(by_alias=True, exclude_none=True) == {
            "data": [1], "timestamp": 1, "expiry": 2, "lastModified": "yesterday",
        }

    def test_cache_entry_accepts_field_name(self):
        entry = CacheEntry(data=None, timestamp=1, expiry=2, last_modified="today")
        assert entry.last_modified == "today"

    def test_fundraising_article_defaults(self):
        article = NormalizedArticle(
            id="x", url="https://example.com", source="S", title="T", summary="Sum",
            published_at=1, fetched_at=2,
        )
        enriched = FundraisingArticle(**article.model_dump(), chains=["SOL"])

        assert enriched.tokenless is False
        assert enriched.investors == []
        assert enriched.funding_stage is None
        assert enriched.chains == ["SOL"]

    def test_trending_token_ignores_extra_fields(self):
        token = TrendingToken.model_validate({"id": "bitcoin", "symbol": "btc", "name": "Bitcoin", "ath": 1})
        assert token.current_price is None
        assert not hasattr(token, "ath")

    def test_fetch_result_defaults(self):
        result = FetchResult[TrendingToken]()
        assert result.data == []
        assert result.from_cache is False
        assert result.cache_age is None
