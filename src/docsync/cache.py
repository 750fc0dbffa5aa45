"""Per-run response cache for versioned remote listings.

Entries are keyed by (resource kind, version) and hold the decoded body of
the first successful response. Payloads are copied on the way in and on
the way out, so callers may mutate what they get back. Nothing is evicted
or expired: a cache lives exactly as long as the Requestor that owns it,
which is one sync run.

A per-key ``asyncio.Lock`` lets the Requestor serialize concurrent fetches
of the same key so only one network call is ever issued for it.
"""

from __future__ import annotations

import asyncio
import copy
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from docsync.models.entities import ResourceKind

log = structlog.get_logger()

CacheKey = tuple[str, str]


class ResponseCache:
    """In-memory cache implementing CacheProtocol."""

    def __init__(self) -> None:
        self._entries: dict[CacheKey, Any] = {}
        self._locks: dict[CacheKey, asyncio.Lock] = {}

    def get(self, kind: ResourceKind, version: str, default: Any = None) -> Any:
        """Return a private copy of the cached payload, or ``default`` on a miss.

        A cached JSON ``null`` is a hit; pass a sentinel as ``default`` to tell
        it apart from a miss.
        """
        key = (str(kind), version)
        if key not in self._entries:
            return default
        return copy.deepcopy(self._entries[key])

    def set(self, kind: ResourceKind, version: str, payload: Any) -> None:
        """Store a payload. The first write for a key wins."""
        key = (str(kind), version)
        if key in self._entries:
            log.debug("cache_write_ignored", kind=str(kind), version=version)
            return
        self._entries[key] = copy.deepcopy(payload)

    def lock(self, kind: ResourceKind, version: str) -> asyncio.Lock:
        # Safe without synchronization: no await between lookup and insert.
        return self._locks.setdefault((str(kind), version), asyncio.Lock())

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, tuple) or len(key) != 2:
            return False
        return (str(key[0]), key[1]) in self._entries

    def __len__(self) -> int:
        return len(self._entries)
