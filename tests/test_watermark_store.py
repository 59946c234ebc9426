"""Unit tests for the Redis watermark store."""
from unittest.mock import Mock

import pytest
import redis

from processor.errors import StoreError
from storage.watermark_store import WatermarkStore


def test_load_absent_key_defaults_to_zero(watermark_store):
    """Test load returns 0 when nothing has been stored."""
    assert watermark_store.load() == 0


def test_save_then_load(watermark_store, redis_client):
    """Test the watermark round-trips through Redis under its fixed key."""
    assert watermark_store.save(1704164400000) is True

    assert watermark_store.load() == 1704164400000
    assert redis_client.get('events:last-announced') == b'1704164400000'


def test_save_overwrites_previous_value(watermark_store):
    """Test that only the latest watermark is kept."""
    watermark_store.save(1500)
    watermark_store.save(2000)

    assert watermark_store.load() == 2000


def test_load_unparsable_value(watermark_store, redis_client):
    """Test that garbage in the key is treated as no watermark."""
    redis_client.set('events:last-announced', 'not-a-number')

    assert watermark_store.load() == 0


def test_load_store_error_defaults_to_zero():
    """Test load returns 0 when Redis fails."""
    client = Mock()
    client.get.side_effect = redis.ConnectionError("connection refused")

    assert WatermarkStore(client).load() == 0


def test_save_store_error_returns_false():
    """Test save reports failure instead of raising."""
    client = Mock()
    client.set.side_effect = redis.ConnectionError("connection refused")

    assert WatermarkStore(client).save(2000) is False
    client.set.assert_called_once_with('events:last-announced', 2000)


def test_connect_success(watermark_store):
    """Test connect against a reachable server."""
    watermark_store.connect()


def test_connect_unreachable_raises_store_error():
    """Test connect wraps a failed PING in StoreError."""
    client = Mock()
    client.ping.side_effect = redis.ConnectionError("connection refused")

    with pytest.raises(StoreError):
        WatermarkStore(client).connect()


class TestFromUrl:
    """Test cases for WatermarkStore.from_url."""

    def test_full_url(self):
        """Test that host, port, password and database index reach the client."""
        store = WatermarkStore.from_url('redis://:pw@localhost:6390/3')

        kwargs = store.client.connection_pool.connection_kwargs
        assert kwargs['host'] == 'localhost'
        assert kwargs['port'] == 6390
        assert kwargs['password'] == 'pw'
        assert kwargs['db'] == 3

    def test_tls_url_keeps_username_and_query_options(self):
        """Test that the ACL username and query options are not dropped."""
        store = WatermarkStore.from_url(
            'rediss://default:pw@example.com:6380/2?ssl_cert_reqs=none'
        )

        kwargs = store.client.connection_pool.connection_kwargs
        assert kwargs['username'] == 'default'
        assert kwargs['password'] == 'pw'
        assert kwargs['ssl_cert_reqs'] == 'none'
        assert kwargs['port'] == 6380
        assert kwargs['db'] == 2

    def test_percent_encoded_password(self):
        """Test that the password is URL-decoded."""
        store = WatermarkStore.from_url('redis://:p%40ss@localhost:6379')

        assert store.client.connection_pool.connection_kwargs['password'] == 'p@ss'

    def test_socket_timeout(self):
        """Test that store calls are bounded by the given timeout."""
        store = WatermarkStore.from_url('redis://localhost:6379', socket_timeout=5)

        assert store.client.connection_pool.connection_kwargs['socket_timeout'] == 5

    def test_non_numeric_database(self):
        """Test that a non-numeric database path is rejected."""
        with pytest.raises(ValueError):
            WatermarkStore.from_url('redis://localhost:6379/events')

    def test_unsupported_scheme(self):
        """Test that non-Redis URLs are rejected."""
        with pytest.raises(ValueError):
            WatermarkStore.from_url('http://localhost:6379')
