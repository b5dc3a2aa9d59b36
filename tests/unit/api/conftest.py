"""Fixtures for API route tests."""

from collections.abc import Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from coursereg.api.app import create_app
from coursereg.config import Settings
from coursereg.registry import Registry


@pytest.fixture
def registry() -> Iterator[Registry]:
    """A seeded in-memory Registry."""
    r = Registry()
    r.seed()
    yield r
    r.close()


@pytest.fixture
def app(registry: Registry) -> FastAPI:
    """Create a test app serving the fixture registry."""
    return create_app(Settings(seed=False), registry=registry)


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    """Create a test client."""
    with TestClient(app, raise_server_exceptions=False) as client:
        yield client
