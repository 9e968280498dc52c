"""
HTTP client for the account billing endpoint.

One GET returns every bound account's bill, monthly, 31-day and step data.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from ..config.loader import DEFAULT_API_URL, DEFAULT_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class AccountApiError(RuntimeError):
    """Raised when the account endpoint cannot deliver a usable payload."""


class WsgwClient:
    """Thin wrapper around the rewrite endpoint.

    Every failure (transport, HTTP status, body decoding, payload shape)
    surfaces as AccountApiError so callers have one exception to handle.
    """

    def __init__(
        self,
        url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        session: Optional[requests.Session] = None
    ):
        """Initialize the client.

        Args:
            url: Full endpoint URL including feature-flag query parameters
            timeout: Request timeout in seconds
            session: Optional requests session; plain ``requests.get`` when omitted

        Raises:
            ValueError: If url is empty
        """
        if not url or not url.strip():
            raise ValueError("url is required and cannot be empty")

        self.url = url
        self.timeout = timeout
        self.session = session

    def fetch_accounts(self) -> List[Dict[str, Any]]:
        """Fetch the full multi-account payload.

        Returns:
            List of per-account records (possibly empty)

        Raises:
            AccountApiError: On transport errors, error status, a non-JSON
                body, a falsy result or a non-list result
        """
        logger.debug("Fetching account data from %s", self.url)
        try:
            get = self.session.get if self.session is not None else requests.get
            response = get(self.url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise AccountApiError(f"Request to {self.url} failed: {e}") from e

        # deeply nested bodies exhaust the decoder's recursion limit
        try:
            payload = response.json()
        except (ValueError, RecursionError) as e:
            raise AccountApiError(f"Response from {self.url} is not JSON: {e}") from e

        # an empty array is a valid answer (no bound accounts)
        if payload is None or payload is False or payload == 0 or payload == "":
            raise AccountApiError(f"Empty response from {self.url}: {payload!r}")
        if not isinstance(payload, list):
            raise AccountApiError(f"Unexpected payload shape from {self.url}: {type(payload).__name__}")

        logger.info("Fetched %d account record(s)", len(payload))
        return payload
