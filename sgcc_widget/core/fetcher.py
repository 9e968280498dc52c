"""
Account data retrieval with cache and failure fallback.

Availability wins over freshness: every path ends in a usable, possibly
empty, result and nothing is raised to the render path.

Resolution order:
1. Fresh cache (younger than 4 hours, not force-refreshing)
2. Network fetch, cached on success
3. Cached payload of any age
4. Empty result stamped now
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from sgcc_widget.config.settings import Settings
from sgcc_widget.sdk.wsgw_client import AccountApiError, WsgwClient
from sgcc_widget.storage.cache import CACHE_KEY, CacheStore, now_ms
from sgcc_widget.storage.models import CachedPayload

logger = logging.getLogger(__name__)

CACHE_TTL_MS = 4 * 60 * 60 * 1000


@dataclass(frozen=True)
class FetchResult:
    """Account records and the epoch-ms time they were fetched."""
    data: List[Dict[str, Any]]
    timestamp: int


def empty_account(timestamp: int) -> Dict[str, Any]:
    """Zero-valued account record used when no data is available."""
    return {
        "eleBill": {"sumMoney": "0.00"},
        "arrearsOfFees": False,
        "stepElecQuantity": [],
        "monthElecQuantity": {"dataInfo": {}, "mothEleList": []},
        "dayElecQuantity31": {"sevenEleList": []},
        "lastUpdateTime": timestamp,
    }


def select_account(
    result: FetchResult,
    settings: Settings,
    clock: Callable[[], int] = now_ms
) -> Dict[str, Any]:
    """Pick the configured account from a fetch result.

    ``settings.account_index`` is clamped into range, so a stale index
    after an account was unbound still selects something.

    Args:
        result: Output of ``AccountDataFetcher.fetch``
        settings: Widget settings
        clock: Epoch-ms clock for the empty-record timestamp

    Returns:
        Shallow copy of the account record with ``lastUpdateTime`` set
    """
    accounts: Sequence[Any] = result.data or []
    if not accounts:
        return empty_account(clock())

    index = min(max(0, settings.account_index), len(accounts) - 1)
    account = accounts[index]
    if not isinstance(account, dict):
        logger.warning("Account record %d is not an object; using empty record", index)
        return empty_account(result.timestamp)

    return {**account, "lastUpdateTime": result.timestamp}


class AccountDataFetcher:
    """Fetches the multi-account payload through a TTL cache."""

    def __init__(
        self,
        cache: CacheStore,
        client: WsgwClient,
        cache_key: str = CACHE_KEY,
        clock: Callable[[], int] = now_ms
    ):
        """Initialize the fetcher.

        Args:
            cache: Cache store for the payload envelope
            client: Upstream API client
            cache_key: Storage key of the cache envelope
            clock: Epoch-ms clock (injectable for tests)
        """
        self.cache = cache
        self.client = client
        self.cache_key = cache_key
        self.clock = clock

    def fetch(self, force_refresh: bool = False) -> FetchResult:
        """Return account data, preferring a fresh cache.

        Args:
            force_refresh: Skip the freshness check (the failure fallback
                still uses the cache)

        Returns:
            FetchResult; never raises
        """
        cached = self.cache.read(self.cache_key)
        now = self.clock()

        if cached is not None and not force_refresh and now - cached.timestamp < CACHE_TTL_MS:
            logger.info("Using cached data from %d", cached.timestamp)
            return FetchResult(data=cached.data, timestamp=cached.timestamp)

        try:
            data = self.client.fetch_accounts()
        except AccountApiError as e:
            logger.error("Network request failed: %s", e)
            return self._fallback(cached, now)
        except Exception:
            logger.exception("Unexpected error while fetching account data")
            return self._fallback(cached, now)

        self.cache.write(self.cache_key, data, timestamp=now)
        return FetchResult(data=data, timestamp=now)

    def _fallback(self, cached: Optional[CachedPayload], now: int) -> FetchResult:
        """Cached payload of any age, else an empty result stamped now."""
        if cached is not None:
            logger.info("Falling back to cached data from %d", cached.timestamp)
            return FetchResult(data=cached.data, timestamp=cached.timestamp)
        return FetchResult(data=[], timestamp=now)

    def get_account(self, settings: Settings, force_refresh: bool = False) -> Dict[str, Any]:
        """Fetch and select the configured account in one step."""
        return select_account(self.fetch(force_refresh), settings, clock=self.clock)
