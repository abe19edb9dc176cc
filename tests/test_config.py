"""Tests for config loading."""

from formbuilder.config import Settings, settings


def test_config_settings_type():
    """Settings object should exist with expected attributes."""
    assert hasattr(settings, "DATABASE_URL")
    assert hasattr(settings, "JWT_SECRET")
    assert hasattr(settings, "FRONTEND_URL")
    assert hasattr(settings, "AUTH_COOKIE_NAME")


def test_config_defaults(monkeypatch):
    monkeypatch.delenv("TOKEN_EXPIRY_HOURS", raising=False)
    monkeypatch.delenv("AUTH_COOKIE_NAME", raising=False)
    fresh = Settings(_env_file=None)
    assert fresh.TOKEN_EXPIRY_HOURS == 48
    assert fresh.AUTH_COOKIE_NAME == "auth_token"
    assert fresh.LOGIN_RATE_LIMIT > 0


def test_config_reads_environment(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@db/forms")
    monkeypatch.setenv("JWT_SECRET", "jwt_secret")
    monkeypatch.setenv("TOKEN_EXPIRY_HOURS", "12")
    fresh = Settings(_env_file=None)
    assert fresh.DATABASE_URL == "postgresql://u:p@db/forms"
    assert fresh.JWT_SECRET == "jwt_secret"
    assert fresh.TOKEN_EXPIRY_HOURS == 12
