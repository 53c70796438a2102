"""
FeedRelay Data Models
====================

Pydantic models for feed items and the checkpoint record, plus the
per-run result types reported by the pipeline.
"""

import hashlib
import uuid
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


def fingerprint(identifier: str) -> str:
    """Deterministic hash of an item identifier (hex MD5)."""
    return hashlib.md5(identifier.encode("utf-8")).hexdigest()


class FeedItem(BaseModel):
    """One entry of a single feed fetch."""

    model_config = ConfigDict(frozen=True)

    identifier: str = Field(..., description="Stable identifier derived from the item link")
    title: str = Field(default="", description="Raw item title")
    body: str = Field(default="", description="Raw item description, may contain markup")
    published_at: str = Field(default="", description="Publication date as given by the feed")
    link: str = Field(default="", description="Item link")

    @property
    def fingerprint(self) -> str:
        return fingerprint(self.identifier)

    def __str__(self) -> str:
        return f"FeedItem({self.title[:50]!r}, {self.link})"


class Checkpoint(BaseModel):
    """Marker of the most recently delivered item.

    Serialized as ``{"url": ..., "hash": ...}``.
    """

    model_config = ConfigDict(populate_by_name=True)

    identifier: str = Field(default="", alias="url")
    fingerprint: str = Field(default="", alias="hash")

    @classmethod
    def empty(cls) -> "Checkpoint":
        return cls()

    @classmethod
    def for_identifier(cls, identifier: str) -> "Checkpoint":
        return cls(identifier=identifier, fingerprint=fingerprint(identifier))

    @property
    def is_empty(self) -> bool:
        return not self.fingerprint

    def matches(self, item: FeedItem) -> bool:
        """True if the item is the one this checkpoint records."""
        return not self.is_empty and item.fingerprint == self.fingerprint


class DeliveryOutcome(str, Enum):
    """Per-item result of a pipeline run."""
    DELIVERED = "delivered"
    TRANSLATION_FAILED = "translation_failed"
    DELIVERY_FAILED = "delivery_failed"
    SKIPPED_INVALID_LINK = "skipped_invalid_link"
    SKIPPED_EMPTY_CONTENT = "skipped_empty_content"
    SKIPPED_DUPLICATE = "skipped_duplicate"
    PROCESSING_FAILED = "processing_failed"


class ContentSource(str, Enum):
    """Which feed field supplied the text that was translated."""
    BODY = "body"
    TITLE = "title"


@dataclass
class ItemResult:
    """Outcome of processing one new feed item."""
    identifier: str
    title: str
    outcome: DeliveryOutcome
    content_source: Optional[ContentSource] = None
    error: Optional[str] = None
    message_length: int = 0
    segments_sent: int = 0

    @property
    def delivered(self) -> bool:
        return self.outcome == DeliveryOutcome.DELIVERED


@dataclass
class RunResult:
    """Result of one pipeline run."""
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    duration_seconds: float = 0.0
    items_fetched: int = 0
    checkpoint_advanced: bool = False
    stopped_at_checkpoint: bool = False
    cap_reached: bool = False
    cancelled: bool = False
    items: List[ItemResult] = field(default_factory=list)

    @property
    def new_items(self) -> int:
        return len(self.items)

    @property
    def delivered_count(self) -> int:
        return sum(1 for item in self.items if item.delivered)

    def outcome_counts(self) -> Dict[str, int]:
        counts = Counter(item.outcome.value for item in self.items)
        return dict(counts)
