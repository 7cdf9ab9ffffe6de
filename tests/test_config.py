from types import SimpleNamespace
from zoneinfo import ZoneInfo

import pytest

from wordle_stats.config import BotSettings, SettingsError

ENV_VARS = (
    "DISCORD_TOKEN",
    "WORDLE_CHANNEL_ID",
    "WORDLE_CHANNEL_NAME",
    "COMMAND_PREFIX",
    "LEADERBOARD_SIZE",
    "WORDLE_TZ",
    "BACKFILL_PAGE_DELAY",
    "FOURTH_PLACE_MARKER",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DISCORD_TOKEN", " token ")


def test_defaults_with_channel_id(monkeypatch):
    monkeypatch.setenv("WORDLE_CHANNEL_ID", "1234")

    settings = BotSettings.from_env()

    assert settings.token == "token"
    assert settings.wordle_channel_id == 1234
    assert settings.wordle_channel_name is None
    assert settings.command_prefix == "!"
    assert settings.leaderboard_size == 10
    assert settings.timezone == ZoneInfo("UTC")
    assert settings.backfill_page_delay == 1.0
    assert settings.fourth_place_marker == ":kekw:"


def test_channel_name_without_hash(monkeypatch):
    monkeypatch.setenv("WORDLE_CHANNEL_NAME", "#gamers-rise-up")
    monkeypatch.setenv("WORDLE_TZ", "Europe/London")

    settings = BotSettings.from_env()

    assert settings.wordle_channel_name == "gamers-rise-up"
    assert settings.timezone == ZoneInfo("Europe/London")
    assert settings.is_wordle_channel(SimpleNamespace(id=1, name="gamers-rise-up"))
    assert not settings.is_wordle_channel(SimpleNamespace(id=1, name="general"))


def test_channel_id_takes_precedence_over_name(monkeypatch):
    monkeypatch.setenv("WORDLE_CHANNEL_ID", "55")
    monkeypatch.setenv("WORDLE_CHANNEL_NAME", "wordle")

    settings = BotSettings.from_env()

    assert settings.is_wordle_channel(SimpleNamespace(id=55, name="other"))
    assert not settings.is_wordle_channel(SimpleNamespace(id=56, name="wordle"))


def test_missing_token(monkeypatch):
    monkeypatch.delenv("DISCORD_TOKEN")
    monkeypatch.setenv("WORDLE_CHANNEL_ID", "1")

    with pytest.raises(SettingsError, match="DISCORD_TOKEN"):
        BotSettings.from_env()


def test_missing_channel():
    with pytest.raises(SettingsError, match="WORDLE_CHANNEL"):
        BotSettings.from_env()


@pytest.mark.parametrize(
    "name, value",
    [
        ("WORDLE_CHANNEL_ID", "abc"),
        ("LEADERBOARD_SIZE", "ten"),
        ("LEADERBOARD_SIZE", "40"),
        ("WORDLE_TZ", "Mars/Olympus_Mons"),
        ("BACKFILL_PAGE_DELAY", "soon"),
        ("BACKFILL_PAGE_DELAY", "-1"),
    ],
)
def test_invalid_values(monkeypatch, name, value):
    monkeypatch.setenv("WORDLE_CHANNEL_NAME", "wordle")
    monkeypatch.setenv(name, value)

    with pytest.raises(SettingsError):
        BotSettings.from_env()
