"""Redis-backed storage for the last announced event time."""
import logging

import redis

from processor.errors import StoreError

logger = logging.getLogger(__name__)


class WatermarkStore:
    """Persists the time of the most recently announced event."""

    LAST_ANNOUNCED_KEY = 'events:last-announced'

    def __init__(self, client: redis.Redis):
        """
        Initialize the store around a Redis client.

        Args:
            client: Redis client (decode_responses is not required)
        """
        self.client = client

    @classmethod
    def from_url(cls, url: str, socket_timeout: float = None) -> 'WatermarkStore':
        """
        Build a store from a redis:// or rediss:// URL.

        Username, password, database index and query options such as
        ssl_cert_reqs are taken from the URL.

        Args:
            url: Store URL, e.g. redis://:secret@localhost:6379/2
            socket_timeout: Seconds before a store call gives up (default: none)

        Raises:
            ValueError: If the URL scheme or database index is invalid
        """
        client = redis.Redis.from_url(url, socket_timeout=socket_timeout)
        kwargs = client.connection_pool.connection_kwargs
        logger.info(
            f"Initialized WatermarkStore for "
            f"{kwargs.get('host')}:{kwargs.get('port')}/{kwargs.get('db', 0)}"
        )
        return cls(client)

    def connect(self) -> None:
        """
        Check that the store is reachable.

        Raises:
            StoreError: If the server does not answer a PING
        """
        try:
            self.client.ping()
        except redis.RedisError as e:
            raise StoreError(f"Key-value store unreachable: {e}") from e

    def load(self) -> int:
        """
        Read the watermark.

        Returns:
            Stored epoch-ms value, or 0 if absent or unreadable
        """
        try:
            raw = self._get(self.LAST_ANNOUNCED_KEY)
        except StoreError as e:
            logger.error(f"Error loading watermark, defaulting to 0: {e}")
            return 0

        if raw is None:
            logger.info("No watermark stored, defaulting to 0")
            return 0

        if isinstance(raw, bytes):
            raw = raw.decode('utf-8')
        try:
            return int(raw)
        except ValueError:
            logger.warning(f"Ignoring unparsable watermark value: {raw!r}")
            return 0

    def save(self, timestamp: int) -> bool:
        """
        Write the watermark.

        Args:
            timestamp: Epoch-ms time of the latest announced event

        Returns:
            True on success, False if the write failed
        """
        try:
            self._set(self.LAST_ANNOUNCED_KEY, int(timestamp))
        except StoreError as e:
            logger.error(f"Error saving watermark {timestamp}: {e}")
            return False

        logger.info(f"Saved watermark {timestamp}")
        return True

    def _get(self, key: str):
        try:
            return self.client.get(key)
        except redis.RedisError as e:
            raise StoreError(f"GET {key} failed: {e}") from e

    def _set(self, key: str, value: int) -> None:
        try:
            self.client.set(key, value)
        except redis.RedisError as e:
            raise StoreError(f"SET {key} failed: {e}") from e
