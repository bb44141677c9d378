"""Shared pytest fixtures for all tests."""

import pytest

import apiwire
from apiwire.common.config import HTTPConfig, TransportBackend


@pytest.fixture
def http_config() -> HTTPConfig:
    """Provide an HTTP configuration for the async backend."""
    return HTTPConfig(
        backend=TransportBackend.ASYNC,
        timeout=10,
        max_redirects=3,
        user_agent="apiwire-tests/1.0",
    )


@pytest.fixture
def sync_http_config(http_config: HTTPConfig) -> HTTPConfig:
    """Provide the same HTTP configuration for the sync backend."""
    return http_config.model_copy(update={"backend": TransportBackend.SYNC})


@pytest.fixture(autouse=True)
def reset_package_state(monkeypatch):
    """Forget any transport configured by a previous test."""
    monkeypatch.setattr(apiwire, "_config", None)
    monkeypatch.setattr(apiwire, "_transport", None)
    monkeypatch.delenv("APIWIRE_HTTP_BACKEND", raising=False)
    yield
