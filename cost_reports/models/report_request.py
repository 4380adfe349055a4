"""
Report request ledger record.
"""
import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from .intent import ParsedIntent

PENDING_MARKER = 'PENDING'
ERROR_MARKER = 'ERROR'


class ReportStatus(Enum):
    """
    Lifecycle of a deferred report.

    PENDING is initial; DELIVERED and ERROR are terminal and each is
    reached at most once.
    """

    PENDING = 'PENDING'
    DELIVERED = 'DELIVERED'
    ERROR = 'ERROR'


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ReportRequest:
    """
    Durable tracking record of a deferred report.

    The status is encoded in report_url: the PENDING or ERROR marker, or
    the delivered report's URL. summary_text mirrors it with the narrative
    or the failure diagnostic.

    Attributes:
        request_id: Unique request identifier
        original_command: Free text the user sent
        parsed_query: Snapshot of the parsed intent
        report_url: Status marker or report URL
        summary_text: Status marker, narrative, or diagnostic
        email: Recipient address, may be attached later
        created_at: Creation time (UTC)
    """

    request_id: str
    original_command: str
    parsed_query: ParsedIntent
    report_url: str = PENDING_MARKER
    summary_text: str = PENDING_MARKER
    email: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self):
        """Validate field constraints."""
        if not self.request_id:
            raise ValueError("request_id cannot be empty")
        if not self.report_url:
            raise ValueError("report_url cannot be empty")

    @classmethod
    def pending(
        cls,
        request_id: str,
        original_command: str,
        parsed_query: ParsedIntent,
        email: Optional[str] = None,
        created_at: Optional[datetime] = None
    ) -> 'ReportRequest':
        """Create a new PENDING request."""
        return cls(
            request_id=request_id,
            original_command=original_command or '',
            parsed_query=parsed_query,
            email=email,
            created_at=created_at or _utcnow(),
        )

    @property
    def status(self) -> ReportStatus:
        if self.report_url == PENDING_MARKER:
            return ReportStatus.PENDING
        if self.report_url == ERROR_MARKER:
            return ReportStatus.ERROR
        return ReportStatus.DELIVERED

    @property
    def is_terminal(self) -> bool:
        return self.status is not ReportStatus.PENDING

    def to_item(self) -> Dict[str, Any]:
        """
        Convert to DynamoDB item.

        Returns:
            DynamoDB item dictionary
        """
        item = {
            'requestId': self.request_id,
            'originalCommand': self.original_command,
            'parsedQuery': json.dumps(self.parsed_query.to_dict(), sort_keys=True),
            'reportUrl': self.report_url,
            'summaryText': self.summary_text,
            'createdAt': self.created_at.isoformat(),
        }
        if self.email:
            item['email'] = self.email
        return item

    @classmethod
    def from_item(cls, item: Dict[str, Any]) -> 'ReportRequest':
        """
        Create ReportRequest from DynamoDB item.

        Args:
            item: DynamoDB item dictionary (plain Python types)

        Returns:
            ReportRequest instance

        Raises:
            ValidationError: If the stored query is not a valid intent
            ValueError: If required attributes are missing or malformed
        """
        try:
            request_id = item['requestId']
            query = json.loads(item['parsedQuery'])
        except (KeyError, TypeError, json.JSONDecodeError) as e:
            raise ValueError(f"Malformed report request item: {e}")

        created_at = item.get('createdAt')
        if created_at:
            created = datetime.fromisoformat(created_at)
            if created.tzinfo is None:
                created = created.replace(tzinfo=timezone.utc)
        else:
            created = _utcnow()

        return cls(
            request_id=request_id,
            original_command=item.get('originalCommand', ''),
            parsed_query=ParsedIntent.from_dict(query),
            report_url=item.get('reportUrl') or PENDING_MARKER,
            summary_text=item.get('summaryText') or PENDING_MARKER,
            email=item.get('email') or None,
            created_at=created,
        )

    def to_status_dict(self) -> Dict[str, Any]:
        """Public view of the request for status lookups."""
        body = {
            'requestId': self.request_id,
            'status': self.status.value,
            'createdAt': self.created_at.isoformat(),
        }
        if self.status is ReportStatus.DELIVERED:
            body['reportUrl'] = self.report_url
            body['summary'] = self.summary_text
        elif self.status is ReportStatus.ERROR:
            body['message'] = self.summary_text
        return body
