"""
Message Formatter Tests
=======================

Unit tests for the Telegram HTML article and alert layouts.
"""

from feedrelay.delivery.message_formatter import format_article_message, format_error_notification
from feedrelay.utils.exceptions import EmptyFeedError


class TestFormatArticleMessage:

    def test_layout(self):
        message = format_article_message(
            title="Markets rally",
            summary="Stocks rose.",
            published_at="Mon, 06 Jan 2025 10:00:00 GMT",
            link="https://news.example.com/a",
        )

        assert message == (
            "<b>📌 Markets rally</b>\n\n"
            "Stocks rose.\n\n"
            "<b>📅 Mon, 06 Jan 2025 10:00:00 GMT</b>\n"
            "🔗 <a href=\"https://news.example.com/a\">Read full article</a>"
        )

    def test_text_fields_are_escaped(self):
        message = format_article_message(
            title="S&P <500>",
            summary="a < b & c",
            published_at="",
            link="https://news.example.com/a",
        )

        assert "<b>📌 S&amp;P &lt;500&gt;</b>" in message
        assert "a &lt; b &amp; c" in message

    def test_link_is_attribute_escaped(self):
        message = format_article_message("t", "s", "d", 'https://x.example/?a=1&b="2"')
        assert 'href="https://x.example/?a=1&amp;b=&quot;2&quot;"' in message


class TestFormatErrorNotification:

    def test_contains_error_text(self):
        text = format_error_notification(EmptyFeedError())
        assert text.startswith("🚨")
        assert "Feed contains no items" in text

    def test_error_text_is_escaped(self):
        text = format_error_notification(RuntimeError("<boom>"))
        assert "&lt;boom&gt;" in text

    def test_empty_message_uses_class_name(self):
        assert "TimeoutError" in format_error_notification(TimeoutError())
