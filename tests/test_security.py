"""
Test suite for URL utilities
"""
import pytest

from cryptowire.utils.security import URLValidator


class TestURLValidator:
    """Test URL validation and canonicalization"""

    def test_valid_urls(self):
        """Test that valid URLs pass validation"""
        valid_urls = [
            "https://www.coindesk.com",
            "http://example.com",
            "https://decrypt.co/feed",
            "https://subdomain.example.co.uk/path?query=value",
            "https://example.com:8080/path",
        ]

        for url in valid_urls:
            assert URLValidator.is_valid_url(url), f"Valid URL failed validation: {url}"

    def test_invalid_urls(self):
        """Test that invalid URLs fail validation"""
        invalid_urls = [
            "",
            None,
            "not-a-url",
            "ftp://example.com",
            "javascript:alert('xss')",
            "https://",
            "data:text/html,<script>alert('xss')</script>",
        ]

        for url in invalid_urls:
            assert not URLValidator.is_valid_url(url), f"Invalid URL passed validation: {url}"

    @pytest.mark.parametrize("url,expected", [
        (
            "https://example.com/story?utm_source=rss&utm_medium=feed&id=7",
            "https://example.com/story?id=7",
        ),
        (
            "https://example.com/story?ref=twitter&source=homepage",
            "https://example.com/story",
        ),
        (
            "https://example.com/story?utm_campaign=x&utm_term=y&utm_content=z&page=2",
            "https://example.com/story?page=2",
        ),
        ("https://example.com/story", "https://example.com/story"),
        ("  https://example.com/story  ", "https://example.com/story"),
    ])
    def test_canonicalize_strips_tracking_params(self, url, expected):
        assert URLValidator.canonicalize_url(url) == expected

    def test_canonicalize_leaves_invalid_urls_alone(self):
        assert URLValidator.canonicalize_url("not-a-url?utm_source=x") == "not-a-url?utm_source=x"
        assert URLValidator.canonicalize_url("") == ""

    def test_hostname(self):
        assert URLValidator.hostname("https://News.Bitcoin.com/feed/") == "news.bitcoin.com"
        assert URLValidator.hostname("not-a-url") == ""

    @pytest.mark.parametrize("url", [
        "https://cdn.example.com/photo.jpg",
        "https://cdn.example.com/photo.WEBP",
        "https://example.com/image/12345",
        "https://example.com/render?image=abc",
    ])
    def test_image_urls_accepted(self, url):
        assert URLValidator.is_valid_image_url(url)

    @pytest.mark.parametrize("url", [
        "https://example.com/article.html",
        "https://example.com/video.mp4",
        "javascript:alert(1).png",
        None,
        "",
    ])
    def test_non_image_urls_rejected(self, url):
        assert not URLValidator.is_valid_image_url(url)
