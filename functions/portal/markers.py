"""
Per-user "last seen notification" markers.

Supports an in-memory fallback for tests/local runs and a Redis-backed
implementation so several checker processes share the same markers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol

import redis
from redis import exceptions as redis_exceptions


class MarkerStore(Protocol):
    """Stores the created_at of the last notification shown to each user."""

    def get(self, user_id: str) -> Optional[str]:
        ...

    def set(self, user_id: str, timestamp: str) -> None:
        ...


@dataclass
class InMemoryMarkerStore:
    markers: dict[str, str] = field(default_factory=dict)

    def get(self, user_id: str) -> Optional[str]:
        return self.markers.get(user_id)

    def set(self, user_id: str, timestamp: str) -> None:
        self.markers[user_id] = timestamp


@dataclass
class RedisMarkerStore:
    """Redis-backed markers stored as plain string keys."""

    url: str
    key_prefix: str = "portal:last-notification:"

    def __post_init__(self):
        self.client = redis.Redis.from_url(self.url)

    def _key(self, user_id: str) -> str:
        return f"{self.key_prefix}{user_id}"

    def get(self, user_id: str) -> Optional[str]:
        try:
            value = self.client.get(self._key(user_id))
        except redis_exceptions.ConnectionError:
            # Managed Redis drops idle connections; reconnect and report no
            # marker so the caller shows the newest notification again.
            self.client = redis.Redis.from_url(self.url)
            return None
        if value is None:
            return None
        return value.decode("utf-8")

    def set(self, user_id: str, timestamp: str) -> None:
        try:
            self.client.set(self._key(user_id), timestamp)
        except redis_exceptions.ConnectionError:
            self.client = redis.Redis.from_url(self.url)
            self.client.set(self._key(user_id), timestamp)
