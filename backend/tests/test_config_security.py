"""
Security config guard tests.

Production/staging must fail fast without a database DSN, with TLS disabled,
or with wildcard CORS; development stays permissive.
"""
from __future__ import annotations

import pytest

from web import config as cfg  # type: ignore


def test_dev_allows_missing_dsn(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("LMS_ENV", "dev")
    cfg.ensure_secure_config_on_startup()


def test_prod_requires_dsn(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("LMS_ENV", "prod")
    with pytest.raises(SystemExit):
        cfg.ensure_secure_config_on_startup()


def test_prod_rejects_sslmode_disable(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("LMS_ENV", "staging")
    monkeypatch.setenv("DATABASE_URL", "postgresql://lms:pw@db.example.com/lms?sslmode=disable")
    with pytest.raises(SystemExit):
        cfg.ensure_secure_config_on_startup()


def test_prod_rejects_wildcard_cors(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("LMS_ENV", "production")
    monkeypatch.setenv("LMS_DATABASE_URL", "postgresql://lms:pw@db.example.com/lms?sslmode=require")
    monkeypatch.setenv("LMS_CORS_ORIGINS", "https://lms.example.org, *")
    with pytest.raises(SystemExit):
        cfg.ensure_secure_config_on_startup()


def test_prod_with_secure_settings_passes(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("LMS_ENV", "prod")
    monkeypatch.setenv("LMS_DATABASE_URL", "postgresql://lms:pw@db.example.com/lms?sslmode=require")
    monkeypatch.setenv("LMS_CORS_ORIGINS", "https://lms.example.org")
    cfg.ensure_secure_config_on_startup()
    assert cfg.cors_origins() == ["https://lms.example.org"]
    assert cfg.strict_csrf() is True


def test_database_url_prefers_lms_variable(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://generic/db")
    assert cfg.database_url() == "postgresql://generic/db"
    monkeypatch.setenv("LMS_DATABASE_URL", "postgresql://lms/db")
    assert cfg.database_url() == "postgresql://lms/db"


def test_server_port_default_and_validation(monkeypatch: pytest.MonkeyPatch):
    assert cfg.server_port() == 2022
    monkeypatch.setenv("SERVER_PORT", "8080")
    assert cfg.server_port() == 8080
    monkeypatch.setenv("SERVER_PORT", "http")
    with pytest.raises(SystemExit):
        cfg.server_port()
    monkeypatch.setenv("SERVER_PORT", "70000")
    with pytest.raises(SystemExit):
        cfg.server_port()
