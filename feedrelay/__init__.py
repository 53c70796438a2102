"""
FeedRelay - Translated RSS Relay
================================

Polls a news feed, translates and summarizes new items, and delivers them
to a Telegram chat.

Main Components:
- Ingestion: RSS fetching and plain-text normalization
- Translation: Yandex Cloud Translate with size-limited chunking
- Processing: new-item detection, summarization and the run pipeline
- Delivery: Telegram message formatting and segmented sending
- Storage: atomic checkpoint file of the last delivered item
"""

__version__ = "1.0.0"
__author__ = "FeedRelay Development Team"
__description__ = "Translated RSS to Telegram relay"

# Core imports for easy access
from .config.settings import FeedRelaySettings, load_settings
from .utils.logging import configure_application_logging, get_logger_for_component
from .utils.exceptions import FeedRelayError

__all__ = [
    "FeedRelaySettings",
    "load_settings",
    "configure_application_logging",
    "get_logger_for_component",
    "FeedRelayError",
]
