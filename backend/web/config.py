"""
Configuration and startup security checks for the LMS web app.

Why: Prevent accidental insecure deployments while keeping local
development permissive. Everything is read from environment variables
(optionally loaded from `.env` by `main`).

Permissions: The caller needs no special privileges. The guard simply reads
environment variables and raises `SystemExit` on fatal misconfiguration.
"""
from __future__ import annotations

import os
from typing import List

DEFAULT_SERVER_PORT = 2022


def _is_prod_like(env: str) -> bool:
    env_l = (env or "").lower()
    return env_l in {"prod", "production", "stage", "staging"}


def current_env() -> str:
    return (os.getenv("LMS_ENV", "dev") or "dev").strip().lower()


def is_prod_like() -> bool:
    return _is_prod_like(current_env())


def database_url() -> str:
    return (os.getenv("LMS_DATABASE_URL") or os.getenv("DATABASE_URL") or "").strip()


def server_port() -> int:
    raw = (os.getenv("SERVER_PORT") or "").strip()
    if not raw:
        return DEFAULT_SERVER_PORT
    try:
        port = int(raw)
    except ValueError:
        raise SystemExit(f"Refusing to start: SERVER_PORT must be an integer (got {raw!r}).")
    if not 0 < port < 65536:
        raise SystemExit(f"Refusing to start: SERVER_PORT out of range (got {port}).")
    return port


def cors_origins() -> List[str]:
    raw = os.getenv("LMS_CORS_ORIGINS", "") or ""
    return [o.strip() for o in raw.split(",") if o.strip()]


def strict_csrf() -> bool:
    """Require Origin/Referer on writes (always in prod-like envs)."""
    toggle = (os.getenv("LMS_STRICT_CSRF", "false") or "").strip().lower() == "true"
    return toggle or is_prod_like()


def ensure_secure_config_on_startup() -> None:
    """Fail fast on insecure production configuration.

    Checks (prod/staging only):
    - A database DSN must be configured; the in-memory store loses all data
      on restart.
    - The DSN must not explicitly disable TLS.
    - CORS must not allow every origin.
    """
    if not is_prod_like():
        return  # dev/test remain permissive

    dsn = database_url()
    if not dsn:
        raise SystemExit(
            "Refusing to start: LMS_DATABASE_URL (or DATABASE_URL) is required in production."
        )

    if "sslmode=disable" in dsn:
        raise SystemExit(
            "Refusing to start: database DSN contains sslmode=disable in production. Use sslmode=require or verify TLS."
        )

    if "*" in cors_origins():
        raise SystemExit(
            "Refusing to start: LMS_CORS_ORIGINS must list explicit origins in production (got '*')."
        )
