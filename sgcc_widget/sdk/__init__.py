"""
SDK for the upstream account API.

Provides programmatic access to the multi-account billing payload.
"""

from .wsgw_client import AccountApiError, WsgwClient

__all__ = ["AccountApiError", "WsgwClient"]
