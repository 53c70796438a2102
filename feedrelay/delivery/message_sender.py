"""
Message Delivery System
======================

Delivers formatted messages to a Telegram chat, splitting anything longer
than the platform limit into ordered segments.

Features:
- Length-based segmentation with a safety margin
- Paced, strictly ordered segment delivery
- Telegram error classification into DeliveryError codes
- Best-effort operator notifications
"""

import asyncio
from typing import List

from telegram import Bot, LinkPreviewOptions
from telegram.constants import ParseMode
from telegram.error import (
    TelegramError,
    BadRequest,
    Forbidden,
    TimedOut,
    RetryAfter,
    NetworkError,
)

from ..utils.logging import get_logger_for_component
from ..utils.exceptions import DeliveryError, ErrorCode


def split_message(text: str, max_length: int) -> List[str]:
    """Split ``text`` into contiguous segments of at most ``max_length`` characters.

    Joining the segments yields ``text`` again.
    """
    if max_length < 1:
        raise ValueError(f"max_length must be at least 1, got {max_length}")
    return [text[i:i + max_length] for i in range(0, len(text), max_length)]


class MessageSender:
    """Sends messages to one Telegram chat."""

    def __init__(
        self,
        bot: Bot,
        chat_id: str,
        max_message_length: int = 4096,
        safety_margin: int = 100,
        segment_delay: float = 0.5,
        parse_mode: str = ParseMode.HTML,
    ):
        """Initialize message sender.

        Args:
            bot: Telegram bot instance
            chat_id: Destination chat or channel ID
            max_message_length: Platform limit per message
            safety_margin: Characters kept free below the limit
            segment_delay: Seconds to wait between segments of one message
            parse_mode: Telegram parse mode for every segment
        """
        if max_message_length - safety_margin < 1:
            raise ValueError("safety_margin must be smaller than max_message_length")

        self.bot = bot
        self.chat_id = chat_id
        self.max_message_length = max_message_length
        self.safety_margin = safety_margin
        self.segment_delay = segment_delay
        self.parse_mode = parse_mode
        self.logger = get_logger_for_component("message_sender", chat_id=str(chat_id))

    @property
    def segment_length(self) -> int:
        return self.max_message_length - self.safety_margin

    async def deliver(self, message: str) -> int:
        """Send ``message``, split into as many segments as needed.

        Segments are sent in order; the first failure stops delivery.

        Returns:
            Number of segments sent

        Raises:
            DeliveryError: With ``segment_index`` of the failed segment
        """
        if not message:
            raise DeliveryError(
                "Refusing to send empty message",
                chat_id=str(self.chat_id),
                error_code=ErrorCode.CONTENT_INVALID,
                recoverable=False,
            )

        segments = split_message(message, self.segment_length)
        total = len(segments)

        for index, segment in enumerate(segments):
            if index > 0 and self.segment_delay > 0:
                await asyncio.sleep(self.segment_delay)

            try:
                await self.bot.send_message(
                    chat_id=self.chat_id,
                    text=segment,
                    parse_mode=self.parse_mode,
                    link_preview_options=LinkPreviewOptions(is_disabled=True),
                )
            except TelegramError as e:
                raise self._classify_error(e, index, total) from e

        if total > 1:
            self.logger.debug(f"Message delivered in {total} segments")
        return total

    def _classify_error(self, error: TelegramError, index: int, total: int) -> DeliveryError:
        """Map a Telegram error onto a DeliveryError for segment ``index``."""
        # BadRequest and TimedOut are NetworkError subclasses, check them first
        if isinstance(error, BadRequest):
            code, recoverable, label = ErrorCode.DELIVERY_MESSAGE_REJECTED, False, "Message rejected"
        elif isinstance(error, Forbidden):
            code, recoverable, label = ErrorCode.TELEGRAM_PERMISSION_DENIED, False, "Forbidden"
        elif isinstance(error, TimedOut):
            code, recoverable, label = ErrorCode.DELIVERY_TIMEOUT, True, "Timeout"
        elif isinstance(error, (RetryAfter, NetworkError)):
            code, recoverable, label = ErrorCode.TELEGRAM_NETWORK_ERROR, True, "Network error"
        else:
            code, recoverable, label = ErrorCode.TELEGRAM_API_ERROR, False, "Telegram error"

        self.logger.warning(f"{label} sending segment {index + 1}/{total}: {error}")
        return DeliveryError(
            f"{label} on segment {index + 1}/{total}: {error}",
            chat_id=str(self.chat_id),
            segment_index=index,
            total_segments=total,
            error_code=code,
            recoverable=recoverable,
        )

    async def send_notification(self, text: str) -> bool:
        """Best-effort operator notification; failures are logged, never raised."""
        try:
            await self.deliver(text)
            return True
        except DeliveryError as e:
            self.logger.error(f"Failed to send notification: {e}")
            return False
