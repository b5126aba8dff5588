"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment variables must be set here, before any module imports
``tiered_ratelimit.core.config`` and builds the global settings.
"""

import os

import pytest

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("APP_API_KEY_REQUIRED", "false")
os.environ.setdefault(
    "APP_API_KEYS",
    "user-key:101,premium-key:202:premium,admin-key:303:admin",
)
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("RATE_LIMIT_BACKEND", "memory")

from tiered_ratelimit.adapters.counter_store import InMemoryCounterStore  # noqa: E402
from tiered_ratelimit.core.rate_limit import set_counter_store  # noqa: E402


@pytest.fixture(autouse=True)
def counter_store() -> InMemoryCounterStore:
    """Give every test an empty process-wide counter store."""
    store = InMemoryCounterStore()
    set_counter_store(store)
    yield store
    set_counter_store(None)


@pytest.fixture
def user_headers() -> dict[str, str]:
    return {"X-API-Key": "user-key", "User-Agent": "pytest"}


@pytest.fixture
def premium_headers() -> dict[str, str]:
    return {"X-API-Key": "premium-key", "User-Agent": "pytest"}


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return {"X-API-Key": "admin-key", "User-Agent": "pytest"}
