"""
Message Formatter
=================

Telegram HTML layouts for delivered articles and operator alerts.
"""

import html


ARTICLE_TEMPLATE = (
    "<b>📌 {title}</b>\n\n"
    "{summary}\n\n"
    "<b>📅 {published}</b>\n"
    "🔗 <a href=\"{link}\">Read full article</a>"
)

ERROR_TEMPLATE = "🚨 <b>FeedRelay error</b>\n\n{error}"


def format_article_message(title: str, summary: str, published_at: str, link: str) -> str:
    """Build the HTML message for one delivered article.

    Text fields are escaped so feed content cannot inject markup; the link
    is escaped for use inside an attribute.
    """
    return ARTICLE_TEMPLATE.format(
        title=html.escape(title, quote=False),
        summary=html.escape(summary, quote=False),
        published=html.escape(published_at, quote=False),
        link=html.escape(link, quote=True),
    )


def format_error_notification(error: BaseException) -> str:
    """Build the operator alert for a failed run."""
    text = str(error) or error.__class__.__name__
    return ERROR_TEMPLATE.format(error=html.escape(text, quote=False))
