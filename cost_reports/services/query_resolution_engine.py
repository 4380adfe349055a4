"""
Query Resolution & Caching Engine.

Given a parsed billing intent, the engine plans the query, consults the
cache, and either answers from the cache, defers generation to the
report processor through a PENDING ledger row, or produces the report
synchronously.
"""
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional, Union

from ..data_access.exceptions import ConditionalCheckFailedError
from ..data_access.report_requests_repository import ReportRequestsRepository
from ..exceptions import TransientBackendError
from ..models.intent import ParsedIntent
from ..models.report_request import ReportRequest, ReportStatus
from ..models.resolution import Accepted, Failed, Generated, Ready
from ..utils.structured_logger import LoggingContext, get_structured_logger
from .query_planner import QueryPlanner
from .report_builder import ReportBuilder
from .report_cache import ReportCache

Resolution = Union[Ready, Accepted, Generated, Failed]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_request_id() -> str:
    return str(uuid.uuid4())


class QueryResolutionEngine:
    """
    Decides how a billing intent is answered.

    Concurrent requests for the same key may both miss and both generate;
    the later cache write wins. Only ledger rows are guarded: one row per
    requestId, created with a conditional put.
    """

    def __init__(
        self,
        planner: QueryPlanner,
        cache: ReportCache,
        ledger: ReportRequestsRepository,
        builder: ReportBuilder,
        metrics=None,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = _new_request_id
    ):
        """
        Args:
            planner: Query planner
            cache: Report cache
            ledger: Report request ledger
            builder: Report production pipeline
            metrics: Optional MetricsPublisher
            clock: Source of the current UTC time
            id_factory: Generator of new request ids
        """
        self.planner = planner
        self.cache = cache
        self.ledger = ledger
        self.builder = builder
        self.metrics = metrics
        self.clock = clock
        self.id_factory = id_factory
        self.logger = get_structured_logger('QueryResolutionEngine')

    def resolve(
        self,
        intent: ParsedIntent,
        email: Optional[str] = None,
        request_id: Optional[str] = None,
        original_command: str = ''
    ) -> Resolution:
        """
        Resolve a billing intent.

        Args:
            intent: Parsed billing intent
            email: Optional recipient for deferred reports
            request_id: Caller-supplied id for idempotent resubmission
            original_command: User's question

        Returns:
            Ready, Accepted, Generated, or Failed for a resubmitted
            request that already ended in ERROR

        Raises:
            ValidationError: If the intent cannot be planned
            TransientBackendError: If synchronous generation fails
        """
        now = self.clock()
        plan = self.planner.plan(intent, today=now.date())
        log = self.logger.bind(request_id=request_id, cache_key=plan.cache_key)

        if request_id:
            existing = self.ledger.get_request(request_id)
            if existing is not None:
                return self._record(self._resume(existing, email, log))

        entry = self.cache.lookup(plan.cache_key)
        if entry is not None and entry.has_artifact:
            log.info('Serving cached report', operation='resolve', intent=intent.intent.value)
            return self._record(Ready(
                artifact_url=entry.artifact_url,
                summary=entry.summary_text or '',
                request_id=request_id,
            ))

        if plan.deferred:
            return self._record(self._defer(intent, email, request_id, original_command, now, log))

        try:
            with LoggingContext(log, 'generate_report', intent=intent.intent.value):
                artifact_url, summary = self.builder.build(
                    plan,
                    original_command=original_command,
                    cached=entry,
                )
        except TransientBackendError:
            if self.metrics is not None:
                self.metrics.emit_resolution('FAILED')
            raise
        return self._record(Generated(artifact_url=artifact_url, summary=summary, request_id=request_id))

    def get_request(self, request_id: str) -> Optional[ReportRequest]:
        """Look up a deferred request by id."""
        return self.ledger.get_request(request_id)

    def _defer(
        self,
        intent: ParsedIntent,
        email: Optional[str],
        request_id: Optional[str],
        original_command: str,
        now: datetime,
        log
    ) -> Resolution:
        request_id = request_id or self.id_factory()
        request = ReportRequest.pending(
            request_id=request_id,
            original_command=original_command,
            parsed_query=intent,
            email=email,
            created_at=now,
        )
        try:
            self.ledger.create_request(request)
        except ConditionalCheckFailedError:
            # Another invocation created the row between our read and write
            existing = self.ledger.get_request(request_id)
            if existing is None:
                raise
            return self._resume(existing, email, log)

        log.bind(request_id=request_id).log_state_change('reportStatus', None, ReportStatus.PENDING.value)
        return Accepted(request_id=request_id, need_email=email is None)

    def _resume(self, existing: ReportRequest, email: Optional[str], log) -> Resolution:
        """Answer a resubmitted requestId from its ledger row."""
        status = existing.status
        log.info(
            'Request already known',
            operation='resume',
            request_id=existing.request_id,
            status=status.value,
        )

        if status is ReportStatus.DELIVERED:
            return Ready(
                artifact_url=existing.report_url,
                summary=existing.summary_text,
                request_id=existing.request_id,
            )
        if status is ReportStatus.ERROR:
            return Failed(request_id=existing.request_id, message=existing.summary_text)

        if email and email != existing.email:
            self.ledger.update_email(existing.request_id, email)
        return Accepted(
            request_id=existing.request_id,
            need_email=not (email or existing.email),
        )

    def _record(self, result: Resolution) -> Resolution:
        if self.metrics is not None:
            self.metrics.emit_resolution(result.status)
        return result
