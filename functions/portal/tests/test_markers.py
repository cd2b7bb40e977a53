import unittest
from unittest import mock

from redis import exceptions as redis_exceptions

from portal.markers import InMemoryMarkerStore, RedisMarkerStore


class InMemoryMarkerStoreTests(unittest.TestCase):
    def test_get_and_set(self):
        markers = InMemoryMarkerStore()
        self.assertIsNone(markers.get("user-1"))
        markers.set("user-1", "2026-01-01T00:00:00.000Z")
        self.assertEqual(markers.get("user-1"), "2026-01-01T00:00:00.000Z")


class RedisMarkerStoreTests(unittest.TestCase):
    def setUp(self):
        patcher = mock.patch("portal.markers.redis.Redis.from_url")
        self.from_url = patcher.start()
        self.addCleanup(patcher.stop)

    def test_reads_and_writes_prefixed_keys(self):
        client = self.from_url.return_value
        client.get.return_value = b"2026-01-01T00:00:00.000Z"
        markers = RedisMarkerStore("redis://localhost:6379/0", key_prefix="test:")

        self.assertEqual(markers.get("user-1"), "2026-01-01T00:00:00.000Z")
        client.get.assert_called_once_with("test:user-1")
        markers.set("user-1", "2026-01-02T00:00:00.000Z")
        client.set.assert_called_once_with("test:user-1", "2026-01-02T00:00:00.000Z")

    def test_missing_marker(self):
        self.from_url.return_value.get.return_value = None
        self.assertIsNone(RedisMarkerStore("redis://localhost").get("user-1"))

    def test_get_reconnects_after_connection_error(self):
        broken, fresh = mock.MagicMock(), mock.MagicMock()
        broken.get.side_effect = redis_exceptions.ConnectionError("closed")
        self.from_url.side_effect = [broken, fresh]
        markers = RedisMarkerStore("redis://localhost")

        self.assertIsNone(markers.get("user-1"))
        self.assertIs(markers.client, fresh)

    def test_set_retries_on_new_connection(self):
        broken, fresh = mock.MagicMock(), mock.MagicMock()
        broken.set.side_effect = redis_exceptions.ConnectionError("closed")
        self.from_url.side_effect = [broken, fresh]
        markers = RedisMarkerStore("redis://localhost", key_prefix="m:")

        markers.set("user-1", "ts")
        fresh.set.assert_called_once_with("m:user-1", "ts")


if __name__ == "__main__":
    unittest.main()
