"""Shared pytest fixtures and configuration."""

from collections.abc import Iterator

import pytest

from coursereg.registry import Registry, create_storage


# Register custom markers
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: fast tests with no external dependencies")
    config.addinivalue_line("markers", "integration: component interaction tests")


# Shared fixtures


@pytest.fixture(params=["memory", "sql"])
def empty_registry(request: pytest.FixtureRequest) -> Iterator[Registry]:
    """An empty Registry, once per storage backend."""
    registry = Registry(create_storage(request.param))
    yield registry
    registry.close()


@pytest.fixture
def registry(empty_registry: Registry) -> Registry:
    """A Registry holding the seed dataset (3 students, 3 courses)."""
    empty_registry.seed()
    return empty_registry
