"""
PyTest Configuration and Fixtures
=================================

Shared fixtures and configuration for FeedRelay tests.
"""

import pytest
import tempfile
import os
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

# Set test environment variables before any imports
_TEST_DIR = Path(tempfile.gettempdir()) / "feedrelay_tests"
os.environ["FEEDRELAY_TELEGRAM__BOT_TOKEN"] = (
    "123456:ABC-DEF1234ghIkl-zyx57W2v1u123ew11_test"
)
os.environ["FEEDRELAY_TELEGRAM__CHAT_ID"] = "-1001234567890"
os.environ["FEEDRELAY_TRANSLATION__API_KEY"] = "test-yandex-key"
os.environ["FEEDRELAY_TRANSLATION__FOLDER_ID"] = "test-folder-id"
os.environ["FEEDRELAY_STORAGE__CHECKPOINT_PATH"] = str(_TEST_DIR / "last_post.txt")
os.environ["FEEDRELAY_LOGGING__FILE_PATH"] = str(_TEST_DIR / "feedrelay.log")
for _legacy_name in ("TG_TOKEN", "TG_CHAT_ID", "YANDEX_TRANSLATE_KEY", "YANDEX_FOLDER_ID"):
    os.environ.pop(_legacy_name, None)


from feedrelay.config.settings import (  # noqa: E402
    FeedRelaySettings,
    LimitsSettings,
    ProcessingSettings,
)
from feedrelay.models import FeedItem  # noqa: E402
from feedrelay.storage.checkpoint_store import CheckpointStore  # noqa: E402


SAMPLE_RSS = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Test Feed</title>
    <link>https://news.example.com</link>
    <description>Test feed</description>
    <item>
      <title>Markets rally on rate cut hopes</title>
      <link>https://news.example.com/markets-rally</link>
      <description>&lt;p&gt;Stocks rose sharply. Bonds &amp;amp; gold followed.&lt;/p&gt;</description>
      <pubDate>Mon, 06 Jan 2025 10:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Oil slips</title>
      <link>https://news.example.com/oil-slips</link>
      <description>Crude fell for a third day.</description>
      <pubDate>Mon, 06 Jan 2025 09:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Title only story</title>
      <guid isPermaLink="false">story-3</guid>
      <description></description>
    </item>
  </channel>
</rss>
"""


def make_item(n: int, body: str = None, title: str = None, link: str = None) -> FeedItem:
    """Build a feed item with predictable fields."""
    link = link if link is not None else f"https://news.example.com/item-{n}"
    return FeedItem(
        identifier=link or f"guid-{n}",
        title=title if title is not None else f"Item {n}",
        body=body if body is not None else f"<p>Body of item {n}.</p>",
        published_at="Mon, 06 Jan 2025 10:00:00 GMT",
        link=link,
    )


# ============================================================================
# Settings Fixtures
# ============================================================================


@pytest.fixture
def test_settings(tmp_path):
    """Settings with no pacing delays and a per-test checkpoint file."""
    return FeedRelaySettings(
        processing=ProcessingSettings(
            item_delay_seconds=0.0,
            max_articles_to_send=3,
        ),
        limits=LimitsSettings(
            fetch_max_retries=3,
            fetch_retry_delay=0.0,
        ),
        storage={"checkpoint_path": str(tmp_path / "last_post.txt")},
    )


@pytest.fixture
def checkpoint_store(tmp_path):
    return CheckpointStore(tmp_path / "last_post.txt")


# ============================================================================
# Collaborator Mocks
# ============================================================================


@pytest.fixture
def mock_fetcher():
    """Feed fetcher returning whatever ``fetch.return_value`` is set to."""
    fetcher = MagicMock()
    fetcher.feed_url = "https://news.example.com/rss"
    fetcher.fetch = AsyncMock(return_value=[])
    return fetcher


@pytest.fixture
def mock_translator():
    """Translator that prefixes text instead of translating it."""
    translator = MagicMock()

    async def fake_translate(text):
        return f"RU {text}"

    translator.translate = AsyncMock(side_effect=fake_translate)
    return translator


@pytest.fixture
def mock_sender():
    sender = MagicMock()
    sender.deliver = AsyncMock(return_value=1)
    sender.send_notification = AsyncMock(return_value=True)
    return sender


@pytest.fixture
def mock_bot():
    """Create mock Telegram bot."""
    bot = MagicMock()
    bot.send_message = AsyncMock()
    return bot


@pytest.fixture
def sample_rss():
    return SAMPLE_RSS


@pytest.fixture
def item_factory():
    return make_item
