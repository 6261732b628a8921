"""
Integration test configuration.

These tests mount validators on an in-process FastAPI app and drive it with
TestClient; no external services are needed.
"""

from __future__ import annotations

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient


@pytest.fixture
def app() -> FastAPI:
    return FastAPI()


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Client reporting unhandled errors as 500 responses instead of raising."""
    return TestClient(app, raise_server_exceptions=False)
