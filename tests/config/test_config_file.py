"""Tests for jarmon.conf file parsing."""

import pytest

from jarmon.env import Config, _load_config_file, _parse_config_value


class TestParseConfigValue:
    @pytest.mark.parametrize("raw,expected", [
        ("", ""),
        ("   ", ""),
        ("hello", "hello"),
        ("  hello  ", "hello"),
        ("hello world", "hello world"),
        ("value # comment", "value"),
        ('"hello #world"', "hello #world"),
        ('"hello" # comment', "hello"),
        ('"hello', "hello"),
        ("'single quoted'", "single quoted"),
        ('""', ""),
        ("123:abc-DEF", "123:abc-DEF"),
    ])
    def test_values(self, raw, expected):
        assert _parse_config_value(raw) == expected


class TestLoadConfigFile:
    def test_missing_file(self, tmp_path):
        assert _load_config_file(tmp_path / "missing.conf") == {}

    def test_parses_lines(self, config_file):
        path = config_file(
            "# comment\n"
            "\n"
            "JARS=\"abc:Drones,def:Kits\"\n"
            "export TIMEZONE=Europe/Kyiv\n"
            "not a setting\n"
            "SCHEDULE_TIME = 21:00\n"
        )

        assert _load_config_file(path) == {
            "JARS": "abc:Drones,def:Kits",
            "TIMEZONE": "Europe/Kyiv",
            "SCHEDULE_TIME": "21:00",
        }


class TestConfigWithFile:
    def test_file_values_are_used(self, config_file):
        config_file("JARS=abc:Drones\nTELEGRAM_CHANNEL_ID=@channel\nFETCH_RETRY_ATTEMPTS=2\n")

        cfg = Config()

        assert [j.name for j in cfg.jars] == ["Drones"]
        assert cfg.telegram_channel_id == "@channel"
        assert cfg.fetch_retry_attempts == 2

    def test_environment_overrides_file(self, config_file, monkeypatch):
        config_file("TIMEZONE=Europe/Kyiv\n")
        monkeypatch.setenv("TIMEZONE", "Europe/Berlin")

        assert Config().timezone == "Europe/Berlin"
