"""
FeedRelay Custom Exceptions
===========================

Exception hierarchy with error codes, structured context and operator-facing
messages. Each subclass declares its default code and whether it is worth
retrying; callers override either per raise.
"""

from typing import Any, Dict, Optional
from enum import Enum


class ErrorCode(str, Enum):
    """Error codes for categorizing exceptions."""

    # Configuration (C0xx)
    CONFIG_INVALID = "C001"
    CONFIG_MISSING = "C002"
    CONFIG_PARSE_ERROR = "C003"

    # Feed ingestion (F0xx)
    FEED_FETCH_TIMEOUT = "F002"
    FEED_PARSE_ERROR = "F003"
    FEED_NETWORK_ERROR = "F004"
    FEED_ACCESS_DENIED = "F005"
    FEED_NOT_FOUND = "F006"
    FEED_EMPTY = "F007"

    # Content (P0xx)
    CONTENT_INVALID = "P001"

    # Translation service (A0xx)
    AI_API_ERROR = "A001"
    AI_INVALID_RESPONSE = "A003"
    AI_TIMEOUT = "A004"
    AI_AUTHENTICATION = "A005"
    AI_RATE_LIMIT = "A006"
    AI_CONNECTION_ERROR = "A010"

    # Telegram API (T0xx)
    TELEGRAM_API_ERROR = "T001"
    TELEGRAM_PERMISSION_DENIED = "T004"
    TELEGRAM_NETWORK_ERROR = "T005"

    # Delivery (L0xx)
    DELIVERY_FAILED = "L001"
    DELIVERY_MESSAGE_REJECTED = "L003"
    DELIVERY_TIMEOUT = "L004"

    # Validation (V0xx)
    VALIDATION_REQUIRED_FIELD = "V001"
    VALIDATION_INVALID_FORMAT = "V002"

    # Storage and runtime (S0xx)
    CHECKPOINT_READ_ERROR = "S010"
    CHECKPOINT_CORRUPTED = "S011"
    CHECKPOINT_WRITE_ERROR = "S012"
    RUN_TIMEOUT = "S020"


# Codes worth another attempt when the error is marked recoverable
RETRYABLE_CODES = frozenset({
    ErrorCode.FEED_NETWORK_ERROR,
    ErrorCode.FEED_FETCH_TIMEOUT,
    ErrorCode.AI_TIMEOUT,
    ErrorCode.AI_RATE_LIMIT,
    ErrorCode.AI_CONNECTION_ERROR,
    ErrorCode.TELEGRAM_NETWORK_ERROR,
    ErrorCode.DELIVERY_TIMEOUT,
})


class FeedRelayError(Exception):
    """Base exception for all FeedRelay errors."""

    default_code: Optional[ErrorCode] = None
    default_recoverable: bool = False

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        context: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        recoverable: Optional[bool] = None,
    ):
        """Initialize FeedRelay error.

        Args:
            message: Technical error message for logging
            error_code: Overrides the class default code
            context: Additional context information
            user_message: Message suitable for the operator chat
            recoverable: Overrides the class default
        """
        super().__init__(message)
        self.error_code = error_code or self.default_code
        self.context: Dict[str, Any] = dict(context or {})
        self.user_message = user_message or self.describe(message)
        self.recoverable = self.default_recoverable if recoverable is None else recoverable

    def describe(self, message: str) -> str:
        """Default operator-facing message for ``message``."""
        return message

    def _add_context(self, **values: Any) -> None:
        self.context.update({key: value for key, value in values.items() if value is not None})

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": type(self).__name__,
            "error_code": self.error_code.value if self.error_code else None,
            "error_message": str(self),
            "user_message": self.user_message,
            "context": self.context,
            "recoverable": self.recoverable,
        }

    def __str__(self) -> str:
        message = super().__str__()
        return f"[{self.error_code.value}] {message}" if self.error_code else message


class ConfigurationError(FeedRelayError):
    """Invalid or missing settings."""

    default_code = ErrorCode.CONFIG_INVALID

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self._add_context(config_key=config_key)

    def describe(self, message: str) -> str:
        return f"Configuration error: {message}"


class FeedError(FeedRelayError):
    """Feed ingestion and parsing errors."""

    default_code = ErrorCode.FEED_NETWORK_ERROR
    default_recoverable = True

    def __init__(self, message: str, feed_url: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self._add_context(feed_url=feed_url)

    def describe(self, message: str) -> str:
        return f"Feed processing failed: {message}"


class FeedFetchError(FeedError):
    """The feed could not be downloaded or parsed."""


class EmptyFeedError(FeedError):
    """Feed was fetched but contained no items (possible upstream outage)."""

    default_code = ErrorCode.FEED_EMPTY
    default_recoverable = False

    def __init__(self, message: str = "Feed contains no items", **kwargs):
        super().__init__(message, **kwargs)


class CheckpointError(FeedRelayError):
    """Checkpoint file could not be read, parsed or written."""

    default_code = ErrorCode.CHECKPOINT_READ_ERROR

    def __init__(self, message: str, path: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self._add_context(checkpoint_path=path)

    def describe(self, message: str) -> str:
        return "Checkpoint storage failed"


class TranslationError(FeedRelayError):
    """Translation service errors."""

    default_code = ErrorCode.AI_API_ERROR
    default_recoverable = True

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        chunk_index: Optional[int] = None,
        **kwargs,
    ):
        """Initialize translation error.

        Args:
            message: Error message
            provider: Translation provider name (e.g. 'yandex')
            chunk_index: 0-based index of the chunk that failed
            **kwargs: Passed to FeedRelayError
        """
        super().__init__(message, **kwargs)
        self.chunk_index = chunk_index
        self._add_context(provider=provider, chunk_index=chunk_index)

    def describe(self, message: str) -> str:
        return "Translation temporarily unavailable"


class DeliveryError(FeedRelayError):
    """Message delivery errors."""

    default_code = ErrorCode.DELIVERY_FAILED
    default_recoverable = True

    def __init__(
        self,
        message: str,
        chat_id: Optional[str] = None,
        segment_index: Optional[int] = None,
        total_segments: Optional[int] = None,
        **kwargs,
    ):
        """Initialize delivery error.

        Args:
            message: Error message
            chat_id: Chat ID where delivery failed
            segment_index: 0-based index of the segment that failed
            total_segments: Number of segments the message was split into
            **kwargs: Passed to FeedRelayError
        """
        super().__init__(message, **kwargs)
        self.segment_index = segment_index
        self.total_segments = total_segments
        self._add_context(
            chat_id=chat_id or None,
            segment_index=segment_index,
            total_segments=total_segments,
        )

    def describe(self, message: str) -> str:
        return "Message delivery failed"


class ValidationError(FeedRelayError):
    """Data validation errors."""

    default_code = ErrorCode.VALIDATION_INVALID_FORMAT

    def __init__(self, message: str, field_name: Optional[str] = None, **kwargs):
        self.field_name = field_name
        super().__init__(message, **kwargs)
        self._add_context(field_name=field_name)

    def describe(self, message: str) -> str:
        return f"Invalid {self.field_name or 'input'}: {message}"


def is_retryable_error(exception: Exception) -> bool:
    """True for plain connection/timeout errors and recoverable FeedRelay errors
    whose code is in RETRYABLE_CODES."""
    if isinstance(exception, (ConnectionError, TimeoutError)):
        return True

    if isinstance(exception, FeedRelayError) and exception.recoverable:
        return exception.error_code in RETRYABLE_CODES

    return False
