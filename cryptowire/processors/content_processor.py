"""
Plain-text extraction from feed markup
"""
import html
from typing import Optional

from bs4 import BeautifulSoup

from cryptowire.utils.constants import ContentConstants


class ContentProcessor:
    """HTML stripping, entity decoding and truncation helpers"""

    @staticmethod
    def strip_html(raw: Optional[str]) -> str:
        """Remove markup and decode entities, keeping only text"""
        if not raw:
            return ""

        text = raw
        if '<' in text:
            text = BeautifulSoup(text, 'html.parser').get_text(' ')

        # Double-encoded markup (&amp;lt;p&amp;gt;) only becomes visible after decoding
        text = html.unescape(text)
        text = ContentConstants.HTML_TAG_PATTERN.sub('', text)
        return text.strip()

    @staticmethod
    def normalize_whitespace(text: str) -> str:
        return ContentConstants.EXCESSIVE_WHITESPACE_PATTERN.sub(' ', text).strip()

    @staticmethod
    def truncate(text: str, max_length: int) -> str:
        """Cut text to max_length, ending with an ellipsis when shortened"""
        if len(text) <= max_length:
            return text
        ellipsis = ContentConstants.ELLIPSIS
        return text[:max(0, max_length - len(ellipsis))].rstrip() + ellipsis

    def clean_text(self, raw: Optional[str]) -> str:
        return self.normalize_whitespace(self.strip_html(raw))

    def clean_summary(self, raw: Optional[str], target_length: int) -> str:
        return self.truncate(self.clean_text(raw), target_length)

    @staticmethod
    def first_image_src(raw: Optional[str]) -> Optional[str]:
        """src of the first <img> tag in an HTML fragment"""
        if not raw:
            return None
        match = ContentConstants.IMG_SRC_PATTERN.search(raw)
        return html.unescape(match.group(1)) if match else None
