"""
Data models for storage layer.

Defines the persisted cache envelope.
"""

from dataclasses import dataclass
from typing import Any, Dict, List


@dataclass(frozen=True)
class CachedPayload:
    """Snapshot of the upstream account payload.
    
    ``timestamp`` is the epoch-millisecond moment ``data`` was fetched.
    A newer fetch supersedes the whole snapshot; entries are never merged.
    """
    timestamp: int
    data: List[Dict[str, Any]]

    def to_dict(self) -> Dict[str, Any]:
        return {"timestamp": self.timestamp, "data": self.data}
