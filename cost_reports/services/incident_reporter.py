"""
Recent incident lookup through AWS Systems Manager Incident Manager.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..exceptions import IncidentLookupError
from ..models.resolution import IncidentReport

logger = logging.getLogger(__name__)

MAX_RECORDS = 50
DEFAULT_DAYS = 7


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IncidentReporter:
    """
    Lists incident records created within the last N days.
    """

    def __init__(
        self,
        region: str = 'us-east-1',
        incidents_client=None,
        clock: Callable[[], datetime] = _utcnow
    ):
        self.client = incidents_client or boto3.client('ssm-incidents', region_name=region)
        self.clock = clock

    def report(self, days: Optional[int] = None) -> IncidentReport:
        """
        Summarize recent incidents.

        Args:
            days: Look-back window (default 7)

        Returns:
            IncidentReport with a message and the matching records

        Raises:
            IncidentLookupError: If the records cannot be listed
        """
        days = days or DEFAULT_DAYS
        try:
            response = self.client.list_incident_records(maxResults=MAX_RECORDS)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Error listing incident records: {e}")
            raise IncidentLookupError(f"Failed to fetch incidents: {e}") from e

        cutoff = self.clock() - timedelta(days=days)
        incidents = [
            self._summarize(record)
            for record in response.get('incidentRecordSummaries', [])
            if self._created_after(record, cutoff)
        ]

        if not incidents:
            message = f'No incidents found in the last {days} day(s).'
        else:
            lines = [
                f"- {incident['id']} - {incident['status']} - impact {incident['impact']}"
                for incident in incidents
            ]
            message = f'Incidents in the last {days} day(s):\n\n' + '\n'.join(lines)

        logger.info(f"Found {len(incidents)} incidents in the last {days} day(s)")
        return IncidentReport(message=message, incidents=incidents)

    @staticmethod
    def _created_after(record: Dict[str, Any], cutoff: datetime) -> bool:
        created = record.get('creationTime')
        if not isinstance(created, datetime):
            return False
        if created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        return created >= cutoff

    @staticmethod
    def _summarize(record: Dict[str, Any]) -> Dict[str, Any]:
        return {
            'id': record.get('arn', '').split('/')[-1],
            'title': record.get('title', ''),
            'status': record.get('status', 'UNKNOWN'),
            'impact': record.get('impact'),
            'createdAt': record['creationTime'].isoformat(),
        }
