"""Unit tests for Config loading."""
import pytest

from feedcal.config import Config, DEFAULT_TIMEZONE


class TestConfig:
    """Test cases for Config.load and defaults."""

    def test_load_full_file(self, tmp_path):
        path = tmp_path / "feedcal.toml"
        path.write_text(
            '[General]\n'
            'refresh_interval = 120\n'
            'timezone = "America/New_York"\n'
            'request_timeout = 10\n'
            '\n'
            '[Subscription]\n'
            'url = " https://example.com/cal.ics "\n'
            'name = "Work"\n'
        )

        config = Config.load(path)

        assert config.refresh_interval == 120
        assert config.timezone == "America/New_York"
        assert config.request_timeout == 10
        assert config.subscription.name == "Work"
        assert config.calendar_url == "https://example.com/cal.ics"

    def test_defaults(self, tmp_path):
        path = tmp_path / "feedcal.toml"
        path.write_text("")

        config = Config.load(path)

        assert config.refresh_interval == 300
        assert config.timezone == DEFAULT_TIMEZONE
        assert config.request_timeout == 30
        assert config.calendar_url == ""

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Config.load(tmp_path / "missing.toml")

    def test_default_path_uses_xdg(self, tmp_path, monkeypatch):
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

        assert Config.get_default_config_path() == tmp_path / "feedcal" / "feedcal.toml"
