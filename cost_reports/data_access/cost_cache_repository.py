"""
Repository for the Cost Explorer cache table.
"""
import logging
from typing import Optional

from .dynamodb_client import DynamoDBClient
from .exceptions import DynamoDBError
from ..exceptions import CacheStoreError
from ..models.cache_entry import CacheEntry

logger = logging.getLogger(__name__)


class CostCacheRepository:
    """
    Repository for cached billing results keyed by canonical cache key.

    Writes are whole-item puts, so a later write for the same key fully
    replaces the earlier entry. Expiry is also stored as the table's TTL
    attribute; DynamoDB purges dead items on its own schedule, so readers
    must still check freshness themselves.
    """

    def __init__(self, table_name: str, dynamodb_client: Optional[DynamoDBClient] = None):
        """
        Initialize cache repository.

        Args:
            table_name: Name of the cache table
            dynamodb_client: Optional DynamoDB client instance
        """
        self.table_name = table_name
        self.client = dynamodb_client or DynamoDBClient()

    def get_entry(self, cache_key: str) -> Optional[CacheEntry]:
        """
        Get cache entry by key, expired or not.

        Args:
            cache_key: Canonical cache key

        Returns:
            CacheEntry or None if not found

        Raises:
            CacheStoreError: If the read fails or the stored item is malformed
        """
        try:
            item = self.client.get_item(
                table_name=self.table_name,
                key={'cacheKey': cache_key}
            )
        except DynamoDBError as e:
            raise CacheStoreError(f"Cache read failed: {e}") from e

        if item is None:
            return None

        try:
            return CacheEntry.from_item(item)
        except ValueError as e:
            raise CacheStoreError(f"Cache item unreadable: {e}") from e

    def put_entry(self, entry: CacheEntry) -> None:
        """
        Write (or overwrite) a cache entry.

        Args:
            entry: Entry to store

        Raises:
            CacheStoreError: If the write fails
        """
        try:
            self.client.put_item(
                table_name=self.table_name,
                item=entry.to_item()
            )
        except DynamoDBError as e:
            raise CacheStoreError(f"Cache write failed: {e}") from e

        logger.debug(
            f"Cached entry {entry.cache_key} "
            f"(artifact={'yes' if entry.has_artifact else 'no'})"
        )
