"""
Checkpoint Store Tests
======================

Unit tests for loading and atomically saving the checkpoint record.
"""

import json
import os

import pytest
from unittest.mock import patch

from feedrelay.models import Checkpoint, fingerprint
from feedrelay.storage.checkpoint_store import CheckpointStore
from feedrelay.utils.exceptions import CheckpointError, ErrorCode


class TestCheckpointStore:
    """Test suite for CheckpointStore."""

    def test_missing_file_gives_empty_checkpoint(self, checkpoint_store):
        checkpoint = checkpoint_store.load()
        assert checkpoint.is_empty
        assert checkpoint == Checkpoint.empty()
        assert not checkpoint_store.exists()

    def test_save_then_load(self, checkpoint_store):
        url = "https://news.example.com/story"
        saved = checkpoint_store.save(url)

        loaded = checkpoint_store.load()
        assert loaded.identifier == url
        assert loaded.fingerprint == fingerprint(url)
        assert loaded == saved

    def test_on_disk_format(self, checkpoint_store):
        url = "https://news.example.com/story"
        checkpoint_store.save(url)

        data = json.loads(checkpoint_store.path.read_text(encoding="utf-8"))
        assert data == {"url": url, "hash": fingerprint(url)}

    def test_fingerprint_is_md5_hex(self):
        assert fingerprint("https://example.com") == "c984d06aafbecf6bc55569f964148ea3"

    def test_reads_existing_file(self, tmp_path):
        path = tmp_path / "last_post.txt"
        path.write_text('{"url": "https://a.example/1", "hash": "abc"}', encoding="utf-8")

        checkpoint = CheckpointStore(path).load()
        assert checkpoint.identifier == "https://a.example/1"
        assert checkpoint.fingerprint == "abc"

    @pytest.mark.parametrize("content", [
        "",
        "not json",
        "[1, 2, 3]",
        '{"url": "https://a.example/1"}',
        '{"hash": "abc"}',
    ])
    def test_corrupted_file_raises(self, tmp_path, content):
        path = tmp_path / "last_post.txt"
        path.write_text(content, encoding="utf-8")

        with pytest.raises(CheckpointError) as exc_info:
            CheckpointStore(path).load()
        assert exc_info.value.error_code == ErrorCode.CHECKPOINT_CORRUPTED

    def test_read_error_raises(self, tmp_path):
        # A directory where the file should be
        path = tmp_path / "last_post.txt"
        path.mkdir()

        with pytest.raises(CheckpointError) as exc_info:
            CheckpointStore(path).load()
        assert exc_info.value.error_code == ErrorCode.CHECKPOINT_READ_ERROR

    def test_save_creates_parent_directories(self, tmp_path):
        store = CheckpointStore(tmp_path / "nested" / "dir" / "last_post.txt")
        store.save("https://news.example.com/a")
        assert store.exists()

    def test_save_replaces_previous_record(self, checkpoint_store):
        checkpoint_store.save("https://news.example.com/old")
        checkpoint_store.save("https://news.example.com/new")
        assert checkpoint_store.load().identifier == "https://news.example.com/new"

    def test_save_failure_keeps_old_record_and_cleans_up(self, checkpoint_store):
        checkpoint_store.save("https://news.example.com/old")

        with patch("feedrelay.storage.checkpoint_store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(CheckpointError) as exc_info:
                checkpoint_store.save("https://news.example.com/new")

        assert exc_info.value.error_code == ErrorCode.CHECKPOINT_WRITE_ERROR
        assert checkpoint_store.load().identifier == "https://news.example.com/old"
        leftovers = [name for name in os.listdir(checkpoint_store.path.parent) if name.endswith(".tmp")]
        assert leftovers == []
