"""Tests for the persisted source URL setting."""

from unittest.mock import patch

import pytest
import yaml

from quizsync.errors import ConfigError
from quizsync.settings import SourceSettings, validate_url

DEFAULT = "http://default.example.com/questions.json"
CUSTOM = "https://custom.example.com/quiz.json"


@pytest.fixture
def settings_path(tmp_path):
    return tmp_path / "settings.yaml"


@pytest.fixture
def settings(settings_path):
    return SourceSettings(settings_path, DEFAULT)


class TestSourceUrl:
    def test_default_when_unset(self, settings):
        assert settings.stored_url is None
        assert settings.source_url == DEFAULT

    def test_set_persists(self, settings, settings_path):
        settings.set_source_url(f"  {CUSTOM}  ")
        assert settings.source_url == CUSTOM
        assert yaml.safe_load(settings_path.read_text(encoding="utf-8")) == {"source_url": CUSTOM}
        assert SourceSettings(settings_path, DEFAULT).source_url == CUSTOM

    def test_blank_resets(self, settings):
        settings.set_source_url(CUSTOM)
        settings.set_source_url("   ")
        assert settings.source_url == DEFAULT
        assert settings.stored_url is None

    def test_reset(self, settings, settings_path):
        settings.set_source_url(CUSTOM)
        settings.reset_source_url()
        assert settings.source_url == DEFAULT
        assert SourceSettings(settings_path, DEFAULT).source_url == DEFAULT

    @pytest.mark.parametrize("content", ["", "- a\n- b\n", "source_url: [unclosed", "source_url: ''\n"])
    def test_unusable_file_means_unset(self, settings_path, content):
        settings_path.write_text(content, encoding="utf-8")
        assert SourceSettings(settings_path, DEFAULT).source_url == DEFAULT

    def test_in_memory_settings(self):
        settings = SourceSettings(None, DEFAULT)
        settings.set_source_url(CUSTOM)
        assert settings.source_url == CUSTOM


class TestWriteFailures:
    def test_set_failure_keeps_previous_url(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory", encoding="utf-8")
        settings = SourceSettings(blocker / "settings.yaml", DEFAULT)
        seen = []
        settings.subscribe(seen.append)

        with pytest.raises(OSError):
            settings.set_source_url(CUSTOM)

        assert settings.source_url == DEFAULT
        assert seen == []

    def test_reset_failure_keeps_custom_url(self, settings, settings_path):
        settings.set_source_url(CUSTOM)
        seen = []
        settings.subscribe(seen.append)

        with patch("quizsync.settings.yaml.safe_dump", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                settings.reset_source_url()

        assert settings.source_url == CUSTOM
        assert SourceSettings(settings_path, DEFAULT).source_url == CUSTOM
        assert seen == []


class TestNotifications:
    def test_notifies_on_change_only(self, settings):
        seen = []
        settings.subscribe(seen.append)
        settings.set_source_url(CUSTOM)
        settings.set_source_url(CUSTOM)
        settings.reset_source_url()
        settings.reset_source_url()
        settings.set_source_url(DEFAULT)
        assert seen == [CUSTOM, DEFAULT]

    def test_unsubscribe(self, settings):
        seen = []
        unsubscribe = settings.subscribe(seen.append)
        unsubscribe()
        settings.set_source_url(CUSTOM)
        assert seen == []

    def test_failing_subscriber_is_isolated(self, settings):
        seen = []

        def bad(url):
            raise RuntimeError("subscriber bug")

        settings.subscribe(bad)
        settings.subscribe(seen.append)
        settings.set_source_url(CUSTOM)
        assert seen == [CUSTOM]


class TestValidateUrl:
    @pytest.mark.parametrize("url", [CUSTOM, DEFAULT, " http://localhost:8080/q.json "])
    def test_valid(self, url):
        assert validate_url(url) == url.strip()

    @pytest.mark.parametrize("url", ["", "not a url", "ftp://example.com/q.json", "http://", "file:///tmp/q.json"])
    def test_invalid(self, url):
        with pytest.raises(ConfigError):
            validate_url(url)
