"""
Scheduled Report Lambda Handler

Invoked by the EventBridge rules created for scheduled-report queries,
with the stored query as input ({"query": {...}}).
"""
from typing import Any, Dict

from cost_reports.models import ParsedIntent
from cost_reports.services.factory import get_resolution_engine
from cost_reports.services.report_scheduler import scheduled_billing_intent
from cost_reports.utils.structured_logger import (
    LoggingContext,
    configure_lambda_logging,
    get_structured_logger,
)
from cost_reports.utils.validators import ValidationError

configure_lambda_logging()
logger = get_structured_logger('ScheduledReportHandler')

SCHEDULED_COMMAND = 'Scheduled cost report'


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Produce (or reuse) the report a schedule asks for.

    Args:
        event: {"query": ParsedIntent dict}
        context: Lambda context

    Returns:
        Result summary

    Raises:
        TransientBackendError: If generation fails (EventBridge retries
            the asynchronous invocation)
    """
    try:
        query = ParsedIntent.from_dict(event.get('query'))
    except ValidationError as e:
        logger.error('Scheduled query is invalid', operation='lambda_handler', error=e)
        return {'status': 'INVALID', 'message': e.message}

    intent = scheduled_billing_intent(query)
    command = query.special_requirements or SCHEDULED_COMMAND

    try:
        with LoggingContext(logger, 'scheduled_report', intent=intent.intent.value):
            result = get_resolution_engine().resolve(intent, original_command=command)
    except ValidationError as e:
        return {'status': 'INVALID', 'message': e.message}

    body = {'status': result.status}
    for attribute in ('artifact_url', 'summary', 'request_id'):
        value = getattr(result, attribute, None)
        if value is not None:
            body[attribute] = value

    logger.info('Scheduled report resolved', operation='lambda_handler', **body)
    return body
