# src/finbot/core/config.py
from functools import lru_cache
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from finbot.core.exceptions import ConfigError

LOG_LEVEL_ALIASES = {
    'WARN': 'WARNING',
    'FATAL': 'CRITICAL',
}

LOG_LEVELS = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}


class Settings(BaseSettings):
    # Bot configuration - REQUIRED
    BOT_TOKEN: str = ""

    # Test mode uses its own database and a minute reminder cadence
    TEST_MODE: bool = False
    DB_PATH: Optional[str] = None

    # Stats API
    STATS_HOST: str = "0.0.0.0"
    STATS_PORT: int = Field(default=8080, ge=1, le=65535)
    STATS_LOG_INTERVAL_HOURS: int = Field(default=2, ge=1)

    # Reminders; the zone also anchors report periods and stats
    REMINDER_HOUR: int = Field(default=16, ge=0, le=23)
    REMINDER_TZ: str = "Europe/Moscow"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = False
    LOG_DIR: str = "logs"
    SENTRY_DSN: Optional[str] = None

    # Environment
    ENVIRONMENT: str = "production"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding='utf-8',
        case_sensitive=True,
        extra='ignore',
    )

    @field_validator('LOG_LEVEL')
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        level = LOG_LEVEL_ALIASES.get(level, level)
        if level not in LOG_LEVELS:
            raise ValueError(f"Unsupported LOG_LEVEL: {value}")
        return level

    @field_validator('REMINDER_TZ')
    @classmethod
    def check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {value}")
        return value

    @property
    def database_path(self) -> str:
        if self.DB_PATH:
            return self.DB_PATH
        return "finance_test.db" if self.TEST_MODE else "finance.db"

    @property
    def database_url(self) -> str:
        return f"sqlite+aiosqlite:///{self.database_path}"

    @property
    def timezone(self) -> ZoneInfo:
        return ZoneInfo(self.REMINDER_TZ)

    def require_token(self) -> str:
        """Validate bot token"""
        if not self.BOT_TOKEN:
            raise ConfigError(
                "BOT_TOKEN is not set! "
                "Please add your bot token to .env file: BOT_TOKEN=your_bot_token_here"
            )
        return self.BOT_TOKEN


@lru_cache()
def get_settings() -> Settings:
    return Settings()
