"""
Repository for the report request ledger.
"""
import logging
from typing import Any, Dict, Optional

from .dynamodb_client import DynamoDBClient
from ..models.report_request import ERROR_MARKER, PENDING_MARKER, ReportRequest

logger = logging.getLogger(__name__)


class ReportRequestsRepository:
    """
    Repository for deferred report requests.

    Inserting a row is what triggers deferred processing (through the
    table's stream), so rows are created at most once per requestId and
    terminal transitions only ever apply to PENDING rows.
    """

    def __init__(self, table_name: str, dynamodb_client: Optional[DynamoDBClient] = None):
        """
        Initialize ledger repository.

        Args:
            table_name: Name of the report requests table
            dynamodb_client: Optional DynamoDB client instance
        """
        self.table_name = table_name
        self.client = dynamodb_client or DynamoDBClient()

    def create_request(self, request: ReportRequest) -> Dict[str, Any]:
        """
        Insert a new PENDING request.

        Args:
            request: Request to insert

        Returns:
            Created item

        Raises:
            ConditionalCheckFailedError: If the requestId already exists
        """
        item = request.to_item()

        # One row per requestId; a duplicate insert would re-trigger processing
        self.client.put_item(
            table_name=self.table_name,
            item=item,
            condition_expression='attribute_not_exists(requestId)'
        )

        logger.info(f"Created report request {request.request_id}")
        return item

    def get_item(self, request_id: str) -> Optional[Dict[str, Any]]:
        """
        Get the raw ledger item with a consistent read.

        Args:
            request_id: Request identifier

        Returns:
            Item dict or None if not found
        """
        return self.client.get_item(
            table_name=self.table_name,
            key={'requestId': request_id},
            consistent_read=True
        )

    def get_request(self, request_id: str) -> Optional[ReportRequest]:
        """
        Get a request by ID.

        Args:
            request_id: Request identifier

        Returns:
            ReportRequest or None if not found

        Raises:
            ValueError: If the stored item is malformed
        """
        item = self.get_item(request_id)
        if item is None:
            return None
        return ReportRequest.from_item(item)

    def update_email(self, request_id: str, email: str) -> None:
        """
        Attach a recipient address to an existing request.

        Only the email attribute changes, so the stream sees a MODIFY and
        generation is not triggered again.

        Raises:
            ConditionalCheckFailedError: If the request does not exist
        """
        self.client.set_attributes(
            table_name=self.table_name,
            key={'requestId': request_id},
            attributes={'email': email},
            condition_expression='attribute_exists(requestId)'
        )
        logger.info(f"Attached email to report request {request_id}")

    def mark_delivered(self, request_id: str, report_url: str, summary: str) -> None:
        """
        Transition a PENDING request to DELIVERED.

        Args:
            request_id: Request identifier
            report_url: Public URL of the report
            summary: Narrative summary

        Raises:
            ConditionalCheckFailedError: If the request is not PENDING
        """
        self._transition(request_id, report_url, summary)
        logger.info(f"Report request {request_id} delivered")

    def mark_failed(self, request_id: str, message: str) -> None:
        """
        Transition a PENDING request to ERROR.

        Args:
            request_id: Request identifier
            message: Diagnostic message

        Raises:
            ConditionalCheckFailedError: If the request is not PENDING
        """
        self._transition(request_id, ERROR_MARKER, message or 'Report generation failed')
        logger.info(f"Report request {request_id} failed")

    def _transition(self, request_id: str, report_url: str, summary: str) -> None:
        self.client.set_attributes(
            table_name=self.table_name,
            key={'requestId': request_id},
            attributes={
                'reportUrl': report_url,
                'summaryText': summary,
            },
            condition_expression='reportUrl = :pending',
            condition_values={':pending': PENDING_MARKER}
        )
