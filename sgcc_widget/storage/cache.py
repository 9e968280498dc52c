"""
Cache persistence for the upstream account payload.

Wraps the key/value store with the timestamped ``{timestamp, data}``
envelope. Neither operation ever raises to the caller.
"""

import json
import logging
import time
from typing import Any, List, Optional

from .models import CachedPayload
from .repository import KeyValueStore

logger = logging.getLogger(__name__)

CACHE_KEY = "sgcc_data_cache"


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


class CacheStore:
    """Timestamped payload cache on top of a KeyValueStore."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def read(self, key: str = CACHE_KEY) -> Optional[CachedPayload]:
        """Return the cached payload, or None if missing or unreadable.

        Args:
            key: Storage key of the cache envelope

        Returns:
            CachedPayload, or None on a missing key, malformed JSON, a
            bad envelope shape or any storage error
        """
        try:
            raw = self.store.read(key)
        except Exception:
            logger.exception("Reading cache key %s failed", key)
            return None
        if not raw:
            return None

        try:
            envelope = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning("Discarding corrupt cache entry %s: %s", key, e)
            return None

        if not isinstance(envelope, dict):
            logger.warning("Discarding cache entry %s: envelope is not an object", key)
            return None

        timestamp = envelope.get("timestamp")
        data = envelope.get("data")
        # bool is an int subclass; a true/false timestamp is still corrupt
        if isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
            logger.warning("Discarding cache entry %s: missing timestamp", key)
            return None
        if not isinstance(data, list):
            logger.warning("Discarding cache entry %s: data is not a list", key)
            return None

        return CachedPayload(timestamp=int(timestamp), data=data)

    def write(
        self,
        key: str,
        data: List[Any],
        timestamp: Optional[int] = None
    ) -> Optional[CachedPayload]:
        """Stamp and persist ``data``.

        Args:
            key: Storage key of the cache envelope
            data: Account records to cache
            timestamp: Fetch time in epoch ms; defaults to now

        Returns:
            The written payload, or None if persisting failed
        """
        payload = CachedPayload(
            timestamp=now_ms() if timestamp is None else timestamp,
            data=data
        )
        try:
            self.store.write(key, json.dumps(payload.to_dict(), ensure_ascii=False))
        except Exception:
            logger.exception("Writing cache key %s failed", key)
            return None
        logger.debug("Cached %d account record(s) at %d", len(data), payload.timestamp)
        return payload
