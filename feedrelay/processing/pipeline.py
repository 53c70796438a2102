"""
New-Item Pipeline
=================

One pass over the feed: fetch, find the items newer than the checkpoint,
advance the checkpoint, then normalize, translate, summarize and deliver
each new item up to the per-run cap.
"""

import asyncio
import time
from typing import List, Optional, Set

from ..config.settings import FeedRelaySettings
from ..delivery.message_formatter import format_article_message
from ..delivery.message_sender import MessageSender
from ..ingestion.content_cleaner import ContentCleaner
from ..ingestion.feed_fetcher import FeedFetcher
from ..models import ContentSource, DeliveryOutcome, FeedItem, ItemResult, RunResult
from ..recovery.retry_logic import RetryConfig, RetryManager
from ..storage.checkpoint_store import CheckpointStore
from ..translation.chunked_translator import ChunkedTranslator
from ..utils.exceptions import (
    ConfigurationError,
    DeliveryError,
    EmptyFeedError,
    TranslationError,
)
from ..utils.logging import PerformanceLogger, get_logger_for_component
from ..utils.validators import URLValidator
from .summarizer import limit_text, summarize


class NewItemPipeline:
    """Detects new feed items and delivers them."""

    def __init__(
        self,
        settings: FeedRelaySettings,
        fetcher: FeedFetcher,
        checkpoint_store: CheckpointStore,
        translator: ChunkedTranslator,
        sender: MessageSender,
    ):
        """Initialize the pipeline.

        Args:
            settings: Application settings (processing and limits sections are used)
            fetcher: Feed transport
            checkpoint_store: Persistence for the last delivered item
            translator: Size-limited translator
            sender: Telegram delivery
        """
        self.settings = settings
        self.fetcher = fetcher
        self.checkpoint_store = checkpoint_store
        self.translator = translator
        self.sender = sender
        self.cleaner = ContentCleaner()
        self.logger = get_logger_for_component("pipeline")

        self.fetch_retry = RetryManager(
            RetryConfig(
                max_attempts=settings.limits.fetch_max_retries,
                delay=settings.limits.fetch_retry_delay,
            ),
            name="fetch_retry",
        )

    async def run_once(self, cancel_event: Optional[asyncio.Event] = None) -> RunResult:
        """Run one pass of the pipeline.

        Args:
            cancel_event: When set, the run stops before the next item

        Returns:
            RunResult describing every new item handled

        Raises:
            FeedFetchError: If the feed could not be fetched after retries
            EmptyFeedError: If the feed returned no items
            CheckpointError: If the checkpoint could not be read or written
        """
        result = RunResult()
        started = time.monotonic()
        processing = self.settings.processing

        with PerformanceLogger(self.logger, "pipeline run", run_id=result.run_id):
            items = await self.fetch_retry.retry_async(self.fetcher.fetch)
            result.items_fetched = len(items)
            if not items:
                raise EmptyFeedError(feed_url=self.fetcher.feed_url)

            checkpoint = self.checkpoint_store.load()
            seen: Set[str] = set()
            delivered = 0

            for index, item in enumerate(items):
                if cancel_event is not None and cancel_event.is_set():
                    self.logger.info("Run cancelled, abandoning remaining items")
                    result.cancelled = True
                    break

                if checkpoint.matches(item):
                    if index == 0:
                        self.logger.info("No new items")
                    else:
                        self.logger.debug(f"Reached checkpoint at index {index}")
                    result.stopped_at_checkpoint = True
                    break

                if index == 0:
                    # Advanced before delivery: a crash after this point skips the item
                    self.checkpoint_store.save(item.identifier)
                    result.checkpoint_advanced = True

                try:
                    item_result = await self._process_item(item, seen)
                except Exception as e:
                    self.logger.error(
                        f"Unexpected error processing item: {e}",
                        extra={"item_url": item.link or item.identifier},
                        exc_info=True,
                    )
                    item_result = ItemResult(
                        item.identifier, item.title, DeliveryOutcome.PROCESSING_FAILED,
                        error=f"{type(e).__name__}: {e}",
                    )
                result.items.append(item_result)

                if item_result.delivered:
                    delivered += 1
                    if delivered >= processing.max_articles_to_send:
                        self.logger.debug(
                            f"Reached maximum items per run ({processing.max_articles_to_send})"
                        )
                        result.cap_reached = True
                        break

        result.duration_seconds = time.monotonic() - started
        self.logger.info(
            f"Run {result.run_id} complete: {result.items_fetched} fetched, "
            f"{result.new_items} new, {result.delivered_count} delivered",
            extra={"run_id": result.run_id, "outcomes": result.outcome_counts()},
        )
        return result

    async def _process_item(self, item: FeedItem, seen: Set[str]) -> ItemResult:
        """Take one new item through normalize, translate, summarize and deliver."""
        logger = get_logger_for_component("pipeline", item_url=item.link or item.identifier)

        if item.identifier in seen:
            logger.warning("Duplicate item in feed, skipping")
            return ItemResult(item.identifier, item.title, DeliveryOutcome.SKIPPED_DUPLICATE)
        seen.add(item.identifier)

        if not URLValidator.is_valid_article_url(item.link):
            logger.error(f"Invalid item link: {item.link!r}")
            return ItemResult(
                item.identifier, item.title, DeliveryOutcome.SKIPPED_INVALID_LINK,
                error=f"invalid link {item.link!r}",
            )

        content = self.cleaner.normalize(item.body)
        source = ContentSource.BODY
        if not content:
            content = self.cleaner.normalize(item.title)
            source = ContentSource.TITLE
            logger.debug("Body is empty, using title as content")
        if not content:
            logger.error("Item has neither body nor title")
            return ItemResult(
                item.identifier, item.title, DeliveryOutcome.SKIPPED_EMPTY_CONTENT,
                error="empty content",
            )

        processing = self.settings.processing
        if processing.item_delay_seconds > 0:
            await asyncio.sleep(processing.item_delay_seconds)

        try:
            translation = await self.translator.translate(
                limit_text(content, processing.max_translation_input)
            )
        except (TranslationError, ConfigurationError) as e:
            logger.error(f"Translation failed: {e}", extra={"content_length": len(content)})
            return ItemResult(
                item.identifier, item.title, DeliveryOutcome.TRANSLATION_FAILED,
                content_source=source, error=str(e),
            )

        summary = summarize(translation, processing.max_summary_length, processing.summary_sentences)
        message = format_article_message(
            title=self.cleaner.normalize(item.title),
            summary=summary,
            published_at=self.cleaner.normalize(item.published_at),
            link=item.link,
        )

        try:
            segments = await self.sender.deliver(message)
        except DeliveryError as e:
            logger.error(f"Delivery failed: {e}", extra={"message_length": len(message)})
            return ItemResult(
                item.identifier, item.title, DeliveryOutcome.DELIVERY_FAILED,
                content_source=source, error=str(e), message_length=len(message),
                segments_sent=e.segment_index or 0,
            )

        logger.info(
            f"Item delivered: {item.title[:80]}",
            extra={"translation_length": len(translation), "segments": segments},
        )
        return ItemResult(
            item.identifier, item.title, DeliveryOutcome.DELIVERED,
            content_source=source, message_length=len(message), segments_sent=segments,
        )

    def describe(self) -> List[str]:
        """Human-readable summary of the limits this pipeline runs with."""
        processing = self.settings.processing
        limits = self.settings.limits
        return [
            f"feed: {self.fetcher.feed_url}",
            f"checkpoint: {self.checkpoint_store.path}",
            f"max items per run: {processing.max_articles_to_send}",
            f"fetch attempts: {limits.fetch_max_retries} every {limits.fetch_retry_delay}s",
        ]
