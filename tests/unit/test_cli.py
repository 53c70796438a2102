"""
CLI Tests
=========

Smoke tests for the click commands that need no network access.
"""

from click.testing import CliRunner

from main import cli


class TestCli:

    def test_help(self):
        result = CliRunner().invoke(cli, [])

        assert result.exit_code == 0
        assert "check-config" in result.output
        assert "run-once" in result.output

    def test_check_config_passes(self, monkeypatch, tmp_path):
        monkeypatch.setenv("FEEDRELAY_STORAGE__CHECKPOINT_PATH", str(tmp_path / "last_post.txt"))

        result = CliRunner().invoke(cli, ["check-config"])

        assert result.exit_code == 0

    def test_check_config_fails_without_secret(self, monkeypatch):
        monkeypatch.delenv("FEEDRELAY_TRANSLATION__FOLDER_ID")

        result = CliRunner().invoke(cli, ["check-config"])

        assert result.exit_code == 1

    def test_status_reads_checkpoint(self, monkeypatch, tmp_path):
        checkpoint = tmp_path / "last_post.txt"
        checkpoint.write_text('{"url": "https://news.example.com/a", "hash": "abc"}')
        monkeypatch.setenv("FEEDRELAY_STORAGE__CHECKPOINT_PATH", str(checkpoint))

        result = CliRunner().invoke(cli, ["status"])

        assert result.exit_code == 0
        assert "FeedRelay Status" in result.output
