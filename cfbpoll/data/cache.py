"""Persistent, compressed, expiring cache over the cache_entry table.

Values are serialized to JSON, gzip-compressed, and stored as bytes. Callers
only ever see deserialized values; the raw bytes stay inside this module.

Expiration is absolute and computed by the caller at write time. Entries for a
past season never change upstream and are cached permanently; entries for the
current season expire after a configured number of hours.
"""

import gzip
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, TypeVar

from pydantic import TypeAdapter
from pydantic_core import to_json

from cfbpoll.data.models import CacheDataEntry
from cfbpoll.data.storage import Storage

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Sentinel horizon for data that never changes (past seasons)
PERMANENT_EXPIRY = datetime.max.replace(tzinfo=timezone.utc)


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def expiration_for(year: int, expiration_hours: int, now: datetime | None = None) -> datetime:
    """
    Compute the absolute expiry for data keyed by a season/year.

    Args:
        year: Season year the cached data belongs to
        expiration_hours: Horizon for current-season data
        now: Override for the current time (tests)

    Returns:
        PERMANENT_EXPIRY for past seasons, otherwise now + expiration_hours
    """
    now = now or utc_now()
    if year < now.year:
        return PERMANENT_EXPIRY
    return now + timedelta(hours=expiration_hours)


def _require_key(key: str) -> None:
    if key is None or not key.strip():
        raise ValueError("Cache key cannot be null or empty")


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class PersistentCache:
    """Typed get/set/remove over gzip-compressed JSON payloads."""

    def __init__(self, storage: Storage):
        if storage is None:
            raise ValueError("storage must not be None")
        self.storage = storage

    async def get(self, key: str, model: type[T] | Any) -> T | None:
        """
        Read a cached value.

        Expired entries are treated as a miss and removed on the spot.

        Args:
            key: Cache key
            model: Type to deserialize into (a model class or e.g. list[Game])

        Returns:
            The cached value, or None on miss/expiry

        Raises:
            ValueError: If key is blank
        """
        _require_key(key)

        entry = await self.storage.get_cache_entry(key)
        if entry is None:
            logger.debug("Cache miss for key: %s", key)
            return None

        if _as_utc(entry.expires_at) < utc_now():
            logger.debug("Cache expired for key: %s", key)
            await self.storage.remove_cache_entry(key)
            return None

        logger.debug("Cache hit for key: %s", key)
        return TypeAdapter(model).validate_json(gzip.decompress(entry.data))

    async def set(self, key: str, value: Any, expires_at: datetime) -> bool:
        """
        Store a value until `expires_at`.

        Raises:
            ValueError: If key is blank or value is None
        """
        _require_key(key)
        if value is None:
            raise ValueError("Cache value must not be None")

        entry = CacheDataEntry(
            cache_key=key,
            data=gzip.compress(to_json(value)),
            cached_at=utc_now(),
            expires_at=_as_utc(expires_at),
        )
        stored = await self.storage.set_cache_entry(entry)
        logger.debug("Cached data for key: %s, expires at: %s", key, entry.expires_at)
        return stored

    async def remove(self, key: str) -> bool:
        """
        Evict a key. Returns False if it was not cached.

        Raises:
            ValueError: If key is blank
        """
        _require_key(key)
        return await self.storage.remove_cache_entry(key)

    async def cleanup_expired(self) -> int:
        """Reclaim every expired entry, read or not. Returns the count removed."""
        count = await self.storage.delete_expired_cache_entries(utc_now())
        logger.info("Cache cleanup complete. Removed %d expired entries", count)
        return count
