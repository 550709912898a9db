"""
In-memory, time-bounded key/value cache shared by every analysis tier.

Entries expire after a per-entry TTL; there is no size bound and no eviction
other than expiry. The clock is injectable so tests can advance time.
"""

import hashlib
import logging
import re
import threading
import time
from typing import Any, Callable, Optional, Protocol

from config import DEFAULT_CACHE_TTL, NO_CONTENT_PLACEHOLDER

logger = logging.getLogger(__name__)


# =============================================================================
# Key helpers
# =============================================================================


def content_digest(*parts: str) -> str:
    """Fixed-length SHA-256 digest of the given text parts."""
    hasher = hashlib.sha256()
    for i, part in enumerate(parts):
        if i:
            hasher.update(b"\x1f")
        hasher.update((part or "").encode("utf-8"))
    return hasher.hexdigest()


def normalize_source_key(source: str) -> str:
    """'Fox News.com' -> 'fox_news_com'"""
    return re.sub(r"[^a-z0-9]", "_", (source or "").lower())


def is_cacheable_content(content: str) -> bool:
    """True when content is a real article body, not blank and not the no-content placeholder."""
    return bool(content and content.strip()) and content != NO_CONTENT_PLACEHOLDER


class CacheStore(Protocol):
    """Minimal cache contract the analyzers depend on."""

    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        ...

    def purge_expired(self) -> int:
        ...


class TTLCache:
    """
    Thread-safe dict cache with per-key expiry.

    Args:
        default_ttl: Lifetime in seconds used when set() gets no ttl
        clock: Zero-argument callable returning seconds (monotonic)
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_CACHE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, tuple[Any, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        lifetime = self.default_ttl if ttl is None else ttl
        with self._lock:
            self._entries[key] = (value, self._clock() + lifetime)

    def purge_expired(self) -> int:
        """Drop expired entries; returns how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, (_, exp) in self._entries.items() if now >= exp]
            for key in expired:
                del self._entries[key]
        if expired:
            logger.debug(f"Purged {len(expired)} expired cache entries")
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
