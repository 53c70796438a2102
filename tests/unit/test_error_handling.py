"""
Error Handling Tests
====================

Unit tests for the exception hierarchy, error codes and the process lock.
"""

import os

import pytest

from feedrelay.utils.exceptions import (
    ConfigurationError,
    DeliveryError,
    EmptyFeedError,
    ErrorCode,
    FeedFetchError,
    FeedRelayError,
    TranslationError,
    is_retryable_error,
)
from feedrelay.utils.process_lock import ProcessLock, lock_for_checkpoint


class TestFeedRelayError:

    def test_str_includes_code(self):
        error = FeedRelayError("boom", error_code=ErrorCode.RUN_TIMEOUT)
        assert str(error) == "[S020] boom"

    def test_str_without_code(self):
        assert str(FeedRelayError("boom")) == "boom"

    def test_to_dict(self):
        error = DeliveryError("rejected", chat_id="-100", segment_index=1, total_segments=3)

        data = error.to_dict()

        assert data["error_type"] == "DeliveryError"
        assert data["error_code"] == "L001"
        assert data["context"] == {"chat_id": "-100", "segment_index": 1, "total_segments": 3}
        assert data["recoverable"] is True

    def test_empty_feed_defaults(self):
        error = EmptyFeedError(feed_url="https://news.example.com/rss")

        assert error.error_code == ErrorCode.FEED_EMPTY
        assert error.recoverable is False
        assert error.context["feed_url"] == "https://news.example.com/rss"

    def test_translation_error_keeps_chunk_index(self):
        error = TranslationError("failed", provider="yandex", chunk_index=2)

        assert error.chunk_index == 2
        assert error.context == {"provider": "yandex", "chunk_index": 2}

    def test_configuration_error_user_message(self):
        error = ConfigurationError("token missing", config_key="telegram.bot_token")

        assert error.context["config_key"] == "telegram.bot_token"
        assert error.user_message == "Configuration error: token missing"


class TestIsRetryableError:

    @pytest.mark.parametrize("error", [
        ConnectionError(),
        TimeoutError(),
        FeedFetchError("x", error_code=ErrorCode.FEED_NETWORK_ERROR),
        TranslationError("x", error_code=ErrorCode.AI_RATE_LIMIT),
    ])
    def test_retryable(self, error):
        assert is_retryable_error(error)

    @pytest.mark.parametrize("error", [
        ValueError(),
        EmptyFeedError(),
        FeedFetchError("x", error_code=ErrorCode.FEED_PARSE_ERROR),
        TranslationError("x", error_code=ErrorCode.AI_AUTHENTICATION, recoverable=False),
    ])
    def test_not_retryable(self, error):
        assert not is_retryable_error(error)


class TestProcessLock:

    def test_acquire_and_release(self, tmp_path):
        lock = ProcessLock(tmp_path / "relay.lock")

        assert lock.acquire()
        assert lock.get_lock_holder_pid() == os.getpid()
        lock.release()

        assert not lock.acquired
        assert lock.get_lock_holder_pid() is None

    def test_second_holder_is_refused(self, tmp_path):
        first = ProcessLock(tmp_path / "relay.lock")
        second = ProcessLock(tmp_path / "relay.lock")

        assert first.acquire()
        try:
            assert not second.acquire()
            assert second.get_lock_holder_pid() == os.getpid()
        finally:
            first.release()

        assert second.acquire()
        second.release()

    def test_stale_pid_is_ignored(self, tmp_path):
        lock_file = tmp_path / "relay.lock"
        lock_file.write_text("999999\n")

        assert ProcessLock(lock_file).get_lock_holder_pid() is None

    def test_context_manager(self, tmp_path):
        with ProcessLock(tmp_path / "relay.lock") as lock:
            assert lock.acquired
        assert not lock.acquired

    def test_lock_sits_next_to_checkpoint(self, tmp_path):
        lock = lock_for_checkpoint(tmp_path / "state" / "last_post.txt")

        assert lock.lock_file == (tmp_path / "state" / "last_post.txt.lock").resolve()
        assert lock_for_checkpoint(tmp_path / "other.txt").lock_file != lock.lock_file
