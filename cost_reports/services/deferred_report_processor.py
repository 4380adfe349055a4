"""
Deferred report processing driven by the ledger's change stream.

Each INSERT of a PENDING row is processed once: the report is taken from
the cache when a concurrent request already produced it, otherwise it is
generated, and the row moves to DELIVERED or ERROR with a conditional
write. Replays of the same event re-read the row, find it terminal and
do nothing; the conditional write covers replays that overlap a run
still in progress.
"""
from typing import Any, Dict, List, Optional

from boto3.dynamodb.types import TypeDeserializer

from ..data_access.exceptions import ConditionalCheckFailedError, DynamoDBError
from ..data_access.report_requests_repository import ReportRequestsRepository
from ..exceptions import CostReportError, NotificationError
from ..models.report_request import PENDING_MARKER, ReportRequest, ReportStatus
from ..utils.structured_logger import StructuredLogger, get_structured_logger
from ..utils.validators import ValidationError
from .notification_channel import build_report_notification
from .query_planner import QueryPlanner
from .report_builder import ReportBuilder
from .report_cache import ReportCache

DELIVERED = 'DELIVERED'
DELIVERED_FROM_CACHE = 'DELIVERED_FROM_CACHE'
FAILED = 'FAILED'
SKIPPED = 'SKIPPED'

_deserializer = TypeDeserializer()


def deserialize_image(image: Dict[str, Any]) -> Dict[str, Any]:
    """Convert a stream image in DynamoDB JSON into plain values."""
    return {name: _deserializer.deserialize(value) for name, value in image.items()}


class DeferredReportProcessor:
    """
    Turns PENDING ledger rows into delivered (or failed) reports.

    Report failures are recorded on the row, never raised. Ledger write
    failures other than a lost condition propagate so the event source
    retries the batch.
    """

    def __init__(
        self,
        planner: QueryPlanner,
        cache: ReportCache,
        ledger: ReportRequestsRepository,
        builder: ReportBuilder,
        notifier,
        metrics=None
    ):
        """
        Args:
            planner: Query planner (same policy as the engine)
            cache: Report cache
            ledger: Report request ledger
            builder: Report production pipeline
            notifier: SesNotificationChannel or compatible
            metrics: Optional MetricsPublisher
        """
        self.planner = planner
        self.cache = cache
        self.ledger = ledger
        self.builder = builder
        self.notifier = notifier
        self.metrics = metrics
        self.logger = get_structured_logger('DeferredReportProcessor')

    def process_stream_event(self, event: Dict[str, Any]) -> List[str]:
        """
        Process every record of a DynamoDB stream event.

        Args:
            event: Stream event with Records

        Returns:
            Outcome per record
        """
        return [self.process_record(record) for record in event.get('Records', [])]

    def process_record(self, record: Dict[str, Any]) -> str:
        """
        Process one stream record.

        Args:
            record: DynamoDB stream record

        Returns:
            DELIVERED, DELIVERED_FROM_CACHE, FAILED or SKIPPED
        """
        # Updates are our own terminal writes or email attachments
        if record.get('eventName') != 'INSERT':
            return self._outcome(SKIPPED)

        image = record.get('dynamodb', {}).get('NewImage')
        if not image:
            self.logger.warning('INSERT record without NewImage', operation='process_record')
            return self._outcome(SKIPPED)

        item = deserialize_image(image)
        request_id = item.get('requestId')
        if not request_id or not item.get('parsedQuery'):
            self.logger.warning(
                'Ledger row missing requestId or parsedQuery',
                operation='process_record',
                request_id=request_id,
            )
            return self._outcome(SKIPPED)

        log = self.logger.bind(request_id=request_id)
        if item.get('reportUrl') != PENDING_MARKER:
            log.info(
                'Ledger row already terminal, skipping',
                operation='process_record',
                report_url=item.get('reportUrl'),
            )
            return self._outcome(SKIPPED)

        # A redelivered INSERT still carries the PENDING image
        current = self.ledger.get_item(request_id)
        if current is None or current.get('reportUrl') != PENDING_MARKER:
            log.info(
                'Ledger row no longer PENDING, skipping',
                operation='process_record',
                report_url=current.get('reportUrl') if current else None,
            )
            return self._outcome(SKIPPED)

        try:
            request = ReportRequest.from_item(item)
            plan = self.planner.plan(request.parsed_query, today=request.created_at.date())
        except (ValueError, ValidationError) as e:
            log.error('Stored query cannot be resolved', operation='process_record', error=e)
            self._fail(request_id, f'Invalid report request: {e}', log)
            return self._outcome(FAILED)

        log = log.bind(cache_key=plan.cache_key)
        entry = self.cache.lookup(plan.cache_key)
        if entry is not None and entry.has_artifact:
            log.info('Report already cached, delivering', operation='process_record')
            if self._deliver(request_id, entry.artifact_url, entry.summary_text or '', item, log):
                return self._outcome(DELIVERED_FROM_CACHE)
            return self._outcome(SKIPPED)

        try:
            artifact_url, summary = self.builder.build(
                plan,
                original_command=request.original_command,
                cached=entry,
                artifact_name=f'cost-report-{request_id}',
            )
        except CostReportError as e:
            log.error('Report generation failed', operation='process_record', error=e)
            self._fail(request_id, str(e) or type(e).__name__, log)
            return self._outcome(FAILED)

        if self._deliver(request_id, artifact_url, summary, item, log):
            return self._outcome(DELIVERED)
        return self._outcome(SKIPPED)

    def _deliver(
        self,
        request_id: str,
        artifact_url: str,
        summary: str,
        item: Dict[str, Any],
        log: StructuredLogger
    ) -> bool:
        """Mark the row DELIVERED and notify; False if it was already terminal."""
        try:
            self.ledger.mark_delivered(request_id, artifact_url, summary)
        except ConditionalCheckFailedError:
            log.warning('Ledger row no longer PENDING, not notifying', operation='deliver')
            return False

        log.log_state_change('reportStatus', ReportStatus.PENDING.value, ReportStatus.DELIVERED.value)
        self._notify(request_id, artifact_url, summary, item.get('email'), log)
        return True

    def _fail(self, request_id: str, message: str, log: StructuredLogger) -> None:
        try:
            self.ledger.mark_failed(request_id, message)
        except ConditionalCheckFailedError:
            log.warning('Ledger row no longer PENDING, failure not recorded', operation='fail')
            return
        log.log_state_change('reportStatus', ReportStatus.PENDING.value, ReportStatus.ERROR.value)

    def _notify(
        self,
        request_id: str,
        artifact_url: str,
        summary: str,
        fallback_email: Optional[str],
        log: StructuredLogger
    ) -> None:
        """
        Email the recipient, if one is known by now.

        The row is re-read because the email may have been attached after
        the INSERT was emitted.
        """
        email = fallback_email
        try:
            row = self.ledger.get_item(request_id)
            if row and row.get('email'):
                email = row['email']
        except DynamoDBError as e:
            log.warning('Could not re-read ledger row for email', operation='notify', error=str(e))

        if not email:
            log.info('No recipient for delivered report', operation='notify')
            return

        subject, body = build_report_notification(artifact_url, summary)
        try:
            self.notifier.send(email, subject, body)
        except NotificationError as e:
            log.error('Notification failed, report stays delivered', operation='notify', error=e)

    def _outcome(self, outcome: str) -> str:
        if self.metrics is not None:
            self.metrics.emit_deferred_outcome(outcome)
        return outcome
