"""
Test DB utilities: reachability checks for the optional live-Postgres tests.

Live tests run only when ``LMS_TEST_DSN`` points at a disposable database;
everything else uses the in-memory store.
"""
from __future__ import annotations

import os

import pytest


def live_dsn() -> str:
    return (os.getenv("LMS_TEST_DSN") or "").strip()


def require_db_or_skip() -> str:
    """Return the test DSN or skip when it is unset or unreachable."""
    dsn = live_dsn()
    if not dsn:
        pytest.skip("LMS_TEST_DSN not set; live database tests skipped")
    try:
        import psycopg
    except ImportError:
        pytest.skip("psycopg not available")
    try:
        with psycopg.connect(dsn, connect_timeout=2):
            return dsn
    except Exception:
        pytest.skip("Database not reachable at LMS_TEST_DSN")
