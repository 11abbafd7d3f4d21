import pytest
from pydantic import ValidationError

from finbot.core.config import Settings
from finbot.core.exceptions import ConfigError


def make_settings(**values):
    return Settings(_env_file=None, **values)


def test_defaults():
    settings = make_settings(BOT_TOKEN="123:abc")

    assert settings.database_path == "finance.db"
    assert settings.database_url == "sqlite+aiosqlite:///finance.db"
    assert settings.STATS_PORT == 8080
    assert settings.REMINDER_HOUR == 16
    assert settings.timezone.key == "Europe/Moscow"
    assert settings.LOG_LEVEL == "INFO"


def test_test_mode_uses_separate_database():
    assert make_settings(TEST_MODE=True).database_path == "finance_test.db"
    assert make_settings(TEST_MODE=True, DB_PATH="/tmp/x.db").database_path == "/tmp/x.db"


@pytest.mark.parametrize("raw, expected", [
    ("debug", "DEBUG"),
    ("WARN", "WARNING"),
    ("FATAL", "CRITICAL"),
    ("error", "ERROR"),
])
def test_log_level_aliases(raw, expected):
    assert make_settings(LOG_LEVEL=raw).LOG_LEVEL == expected


@pytest.mark.parametrize("field, value", [
    ("LOG_LEVEL", "LOUD"),
    ("REMINDER_HOUR", 24),
    ("REMINDER_TZ", "Mars/Olympus"),
    ("STATS_PORT", 0),
])
def test_invalid_values_rejected(field, value):
    with pytest.raises(ValidationError):
        make_settings(**{field: value})


def test_missing_token():
    with pytest.raises(ConfigError):
        make_settings().require_token()
    assert make_settings(BOT_TOKEN="123:abc").require_token() == "123:abc"


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("REMINDER_HOUR", "20")
    monkeypatch.setenv("REMINDER_TZ", "Asia/Yekaterinburg")

    settings = make_settings()

    assert settings.REMINDER_HOUR == 20
    assert settings.timezone.key == "Asia/Yekaterinburg"
