"""Fixtures specific to unit tests."""

import pytest

from apiwire.http import SyncTransport


@pytest.fixture
def sync_transport(sync_http_config):
    """Provide a sync transport closed after the test."""
    transport = SyncTransport(sync_http_config)
    yield transport
    transport.close()

