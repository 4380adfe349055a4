"""
Freshness-aware access to the cost result cache.
"""
import logging
import time
from typing import Any, Callable, Dict, Optional

from ..data_access.cost_cache_repository import CostCacheRepository
from ..exceptions import CacheStoreError
from ..models.cache_entry import CacheEntry

logger = logging.getLogger(__name__)

HIT = 'HIT'
MISS = 'MISS'
STALE = 'STALE'
ERROR = 'ERROR'


class ReportCache:
    """
    Cache policy on top of the cache repository.

    Reads fail open: a store failure is a miss. Writes fail soft: a store
    failure is logged and the caller carries on with its result.
    """

    def __init__(
        self,
        repository: CostCacheRepository,
        ttl_seconds: int,
        metrics=None,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize report cache.

        Args:
            repository: Cache repository
            ttl_seconds: Freshness window of new entries
            metrics: Optional MetricsPublisher
            clock: Source of the current Unix time
        """
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.repository = repository
        self.ttl_seconds = ttl_seconds
        self.metrics = metrics
        self.clock = clock

    def lookup(self, cache_key: str) -> Optional[CacheEntry]:
        """
        Return the fresh entry for a key, or None.

        Args:
            cache_key: Canonical cache key

        Returns:
            Unexpired CacheEntry, or None on miss, expiry or store failure
        """
        try:
            entry = self.repository.get_entry(cache_key)
        except CacheStoreError as e:
            logger.warning(f"Cache lookup failed, treating as miss: {e}")
            self._emit(ERROR)
            return None

        if entry is None:
            self._emit(MISS)
            return None

        if entry.is_expired(now=self.clock()):
            logger.debug(f"Cache entry {cache_key} expired at {entry.expires_at}")
            self._emit(STALE)
            return None

        self._emit(HIT)
        return entry

    def store(
        self,
        cache_key: str,
        raw_data: Dict[str, Any],
        artifact_url: Optional[str] = None,
        summary: Optional[str] = None
    ) -> Optional[CacheEntry]:
        """
        Write (overwrite) the entry for a key.

        Args:
            cache_key: Canonical cache key
            raw_data: Billing backend response
            artifact_url: Rendered report URL, if any
            summary: Narrative summary, if any

        Returns:
            The stored entry, or None if the write failed
        """
        entry = CacheEntry.create(
            cache_key=cache_key,
            raw_data=raw_data,
            ttl_seconds=self.ttl_seconds,
            artifact_url=artifact_url,
            summary_text=summary,
            now=self.clock(),
        )
        try:
            self.repository.put_entry(entry)
        except CacheStoreError as e:
            logger.warning(f"Cache write failed, result not cached: {e}")
            return None
        return entry

    def _emit(self, result: str) -> None:
        if self.metrics is not None:
            self.metrics.emit_cache_lookup(result)
