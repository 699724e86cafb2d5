"""
Pytest configuration for backend tests.

Why: Force AnyIO to use the asyncio backend, make ``backend/`` importable and
give every test a fresh in-memory store plus a clean LMS_* environment.
"""
import os
import sys
from pathlib import Path

import pytest

REPO_ROOT = Path(__file__).resolve().parents[2]
BACKEND_DIR = REPO_ROOT / "backend"
TESTS_DIR = BACKEND_DIR / "tests"
for p in (str(BACKEND_DIR), str(TESTS_DIR)):
    if p not in sys.path:
        sys.path.insert(0, p)

from lms.store import InMemoryStore  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture(autouse=True)
def _clear_lms_env(monkeypatch: pytest.MonkeyPatch):
    """Keep env-driven toggles from leaking between tests.

    Tests that need prod semantics or a DSN set them explicitly.
    """
    for var in (
        "LMS_ENV",
        "LMS_DATABASE_URL",
        "DATABASE_URL",
        "LMS_CORS_ORIGINS",
        "LMS_TRUST_PROXY",
        "LMS_STRICT_CSRF",
        "SERVER_PORT",
    ):
        monkeypatch.delenv(var, raising=False)
    yield


@pytest.fixture(autouse=True)
def _fresh_rpc_store():
    """Swap a fresh in-memory store into the RPC router for every test."""
    from web.routes import rpc

    rpc.set_store(InMemoryStore())
    yield
    rpc.set_store(InMemoryStore())
