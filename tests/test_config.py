from __future__ import annotations

import pytest
from pydantic import ValidationError

from trip_ledger_bot.config import Settings


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("BOT_TOKEN", "42:abc")
    monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://u:p@db/trips")
    monkeypatch.setenv("SQL_ECHO", "true")
    monkeypatch.setenv("DEFAULT_CURRENCY", "EUR")

    s = Settings(_env_file=None)
    assert s.bot_token == "42:abc"
    assert s.database_url.endswith("/trips")
    assert s.sql_echo is True
    assert s.default_currency == "EUR"
    assert s.message_ttl_seconds == 120.0


def test_settings_require_token(monkeypatch):
    monkeypatch.delenv("BOT_TOKEN", raising=False)
    monkeypatch.setenv("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
    with pytest.raises(ValidationError):
        Settings(_env_file=None)
