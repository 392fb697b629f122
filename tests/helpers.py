"""
Test helpers: fake clock, canned HTTP responses and RSS builders
"""
from typing import Dict, List, Optional

from cryptowire.utils.http_client import HTTPResponse


class FakeClock:
    """Manually advanced epoch-millisecond clock"""

    def __init__(self, start: int = 1_760_000_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


def make_response(status: int = 200, text: str = "", headers: Optional[Dict[str, str]] = None,
                  url: str = "") -> HTTPResponse:
    return HTTPResponse(status=status, headers=headers or {}, text=text, url=url, body=text.encode("utf-8"))


def rss_item(title: str, link: str, description: str = "", pub_date: str = "", guid: str = "",
             extra: str = "") -> str:
    parts = [f"<title>{title}</title>", f"<link>{link}</link>"]
    if description:
        parts.append(f"<description>{description}</description>")
    if pub_date:
        parts.append(f"<pubDate>{pub_date}</pubDate>")
    if guid:
        parts.append(f"<guid>{guid}</guid>")
    if extra:
        parts.append(extra)
    return "<item>" + "".join(parts) + "</item>"


def rss_feed(title: str, items: List[str]) -> str:
    return f"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:media="http://search.yahoo.com/mrss/" xmlns:content="http://purl.org/rss/1.0/modules/content/">
    <channel>
        <title>{title}</title>
        <link>https://example.com</link>
        <description>{title} feed</description>
        <language>en-us</language>
        {''.join(items)}
    </channel>
</rss>"""
