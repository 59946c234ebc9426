"""Shared fixtures for announcer tests."""
import fakeredis
import pytest

from storage.watermark_store import WatermarkStore


@pytest.fixture
def redis_client():
    """Fake Redis client backed by a private in-memory server."""
    return fakeredis.FakeRedis(server=fakeredis.FakeServer())


@pytest.fixture
def watermark_store(redis_client):
    return WatermarkStore(redis_client)
