import pytest
from pydantic import ValidationError

from books_api.config import get_settings


def test_defaults(monkeypatch):
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    settings = get_settings()
    assert settings.host == "127.0.0.1"
    assert settings.port == 3000
    assert settings.log_level == "info"
    assert settings.allowed_origins == []


def test_log_level_falls_back_to_plain_env(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "debug")
    assert get_settings().log_level == "debug"

    monkeypatch.setenv("APP_LOG_LEVEL", "warning")
    assert get_settings().log_level == "warning"


def test_cors_origins_are_split(monkeypatch):
    monkeypatch.setenv("APP_CORS_ORIGINS", "https://a.example, https://b.example,")
    assert get_settings().allowed_origins == ["https://a.example", "https://b.example"]


def test_strict_security_rejects_public_bind_without_https(monkeypatch):
    monkeypatch.setenv("APP_STRICT_SECURITY", "true")
    monkeypatch.setenv("APP_HOST", "0.0.0.0")
    with pytest.raises(RuntimeError):
        get_settings()


def test_strict_security_rejects_wildcard_cors(monkeypatch):
    monkeypatch.setenv("APP_STRICT_SECURITY", "true")
    monkeypatch.setenv("APP_CORS_ORIGINS", "*")
    with pytest.raises(RuntimeError):
        get_settings()


def test_strict_security_accepts_hardened_values(monkeypatch):
    monkeypatch.setenv("APP_STRICT_SECURITY", "true")
    monkeypatch.setenv("APP_HOST", "0.0.0.0")
    monkeypatch.setenv("APP_REQUIRE_HTTPS", "true")
    settings = get_settings()
    assert settings.require_https is True


@pytest.mark.parametrize("level", ["chatty", "books_api=debug"])
def test_unknown_log_level_is_rejected(monkeypatch, level):
    monkeypatch.delenv("APP_LOG_LEVEL", raising=False)
    monkeypatch.setenv("LOG_LEVEL", level)
    with pytest.raises(ValidationError):
        get_settings()


def test_log_level_is_normalized(monkeypatch):
    monkeypatch.setenv("APP_LOG_LEVEL", " DEBUG ")
    assert get_settings().log_level == "debug"
