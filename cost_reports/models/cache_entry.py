"""
Cached Cost Explorer result.
"""
import json
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class CacheEntry:
    """
    Entry in the Cost Explorer result cache.

    An entry with raw data but no artifact URL means the billing data is
    known and fresh but no report has been rendered for it yet, so a new
    report can be produced without calling the billing backend again.

    Attributes:
        cache_key: Canonical cache key
        raw_data: Billing backend response payload
        written_at: Unix timestamp (seconds) of the write
        expires_at: Unix timestamp (seconds) after which the entry is dead
        artifact_url: Public URL of the rendered report, if any
        summary_text: Narrative summary of the report, if any
    """

    cache_key: str
    raw_data: Dict[str, Any]
    written_at: int
    expires_at: int
    artifact_url: Optional[str] = None
    summary_text: Optional[str] = None

    def __post_init__(self):
        """Validate field constraints."""
        if not self.cache_key:
            raise ValueError("cache_key cannot be empty")

        if self.expires_at < self.written_at:
            raise ValueError(
                f"expires_at ({self.expires_at}) precedes written_at ({self.written_at})"
            )

    @classmethod
    def create(
        cls,
        cache_key: str,
        raw_data: Dict[str, Any],
        ttl_seconds: int,
        artifact_url: Optional[str] = None,
        summary_text: Optional[str] = None,
        now: Optional[float] = None
    ) -> 'CacheEntry':
        """
        Create an entry that stays fresh for ttl_seconds.

        Args:
            cache_key: Canonical cache key
            raw_data: Billing backend response payload
            ttl_seconds: Freshness window in seconds
            artifact_url: Optional report URL
            summary_text: Optional narrative summary
            now: Optional current Unix time (defaults to time.time())

        Returns:
            New CacheEntry
        """
        written_at = int(now if now is not None else time.time())
        return cls(
            cache_key=cache_key,
            raw_data=raw_data,
            written_at=written_at,
            expires_at=written_at + ttl_seconds,
            artifact_url=artifact_url,
            summary_text=summary_text,
        )

    @property
    def has_artifact(self) -> bool:
        """True when a rendered report exists for this entry."""
        return bool(self.artifact_url)

    def is_expired(self, now: Optional[float] = None) -> bool:
        """
        Check if entry has expired.

        Returns:
            True if current time is past expires_at
        """
        current = now if now is not None else time.time()
        return current > self.expires_at

    def to_item(self) -> Dict[str, Any]:
        """
        Convert to DynamoDB item.

        The payload is stored as a JSON string, which keeps float amounts
        out of DynamoDB's Decimal-only number type.

        Returns:
            DynamoDB item dictionary
        """
        item = {
            'cacheKey': self.cache_key,
            'data': json.dumps(self.raw_data, default=str),
            'writtenAt': self.written_at,
            'expiresAt': self.expires_at,
            'ttl': self.expires_at,
        }
        if self.artifact_url:
            item['reportUrl'] = self.artifact_url
        if self.summary_text is not None:
            item['costSummaryText'] = self.summary_text
        return item

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> 'CacheEntry':
        """
        Create CacheEntry from DynamoDB item.

        Args:
            item: DynamoDB item dictionary

        Returns:
            CacheEntry instance

        Raises:
            ValueError: If the item is malformed
        """
        try:
            raw_data = json.loads(item['data'])
            return cls(
                cache_key=item['cacheKey'],
                raw_data=raw_data,
                written_at=int(item['writtenAt']),
                expires_at=int(item['expiresAt']),
                artifact_url=item.get('reportUrl') or None,
                summary_text=item.get('costSummaryText'),
            )
        except (KeyError, TypeError, json.JSONDecodeError) as e:
            raise ValueError(f"Malformed cache item: {e}")
