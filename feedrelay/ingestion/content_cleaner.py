"""
Content Cleaner
===============

Turns raw feed item bodies into plain text: decodes entities, strips all
markup and collapses whitespace.
"""

import re
import html

from bs4 import BeautifulSoup

from ..utils.logging import get_logger_for_component


class ContentCleaner:
    """
    Plain-text normalizer for feed item bodies.

    Feed descriptions frequently carry escaped markup (``&lt;p&gt;``), so the
    readability entities are decoded first and the resulting tags are then
    removed in a single parse.
    """

    # Entities decoded before parsing, in this order
    READABILITY_ENTITIES = (
        ("&lt;", "<"),
        ("&gt;", ">"),
        ("&amp;", "&"),
        ("&quot;", '"'),
        ("&apos;", "'"),
    )

    # Elements whose content is never readable text
    NON_CONTENT_ELEMENTS = ("script", "style", "noscript", "template")

    WHITESPACE_PATTERN = re.compile(r"\s+", re.MULTILINE)
    TAG_PATTERN = re.compile(r"<[^>]*>")

    def __init__(self):
        self.logger = get_logger_for_component("content_cleaner")
        self.parser = "html.parser"  # Built-in parser, no external deps

    def normalize(self, raw: str) -> str:
        """
        Normalize a raw item body to plain text.

        Args:
            raw: Raw body, possibly containing HTML or escaped HTML

        Returns:
            Single-line plain text, possibly empty. Never raises.
        """
        if not raw or not raw.strip():
            return ""

        decoded = self._decode_entities(raw)

        try:
            soup = BeautifulSoup(decoded, self.parser)
            for element in soup(self.NON_CONTENT_ELEMENTS):
                element.decompose()
            text = soup.get_text(separator=" ")
        except Exception as e:
            self.logger.warning(f"Markup parse failed, using regex strip: {e}")
            text = html.unescape(self.TAG_PATTERN.sub("", decoded))

        return self._collapse_whitespace(text)

    def _decode_entities(self, text: str) -> str:
        for entity, char in self.READABILITY_ENTITIES:
            text = text.replace(entity, char)
        return text

    def _collapse_whitespace(self, text: str) -> str:
        return self.WHITESPACE_PATTERN.sub(" ", text).strip()

