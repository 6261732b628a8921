"""
Root test configuration and fixtures for reqguard.

This conftest.py provides common fixtures for all test categories:
- unit/: Fast, isolated tests of single modules
- integration/: Validators mounted on a FastAPI app, driven by TestClient

Note: sys.path manipulation is handled here to ensure imports work correctly.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Add project root to path to allow imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from reqguard.request import SegmentedRequest  # noqa: E402
from reqguard.settings import get_settings  # noqa: E402


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Make every test read REQGUARD_* settings from its own environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def make_request():
    """Factory for SegmentedRequest objects with sensible defaults."""

    def _make(**segments) -> SegmentedRequest:
        return SegmentedRequest(**segments)

    return _make


@pytest.fixture
def sample_headers():
    """Headers as a typical HTTP client sends them (lowercased keys)."""
    return {
        "accept": "application/json",
        "accept-encoding": "gzip, deflate",
        "connection": "close",
        "user-agent": "testclient",
    }
