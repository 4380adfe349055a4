"""
Report Processor Lambda Handler

Triggered by the report request table's DynamoDB stream. Produces the
report for every newly inserted PENDING request and emails it.
"""
from typing import Any, Dict

from cost_reports.services.factory import get_deferred_processor
from cost_reports.utils.structured_logger import (
    configure_lambda_logging,
    get_structured_logger,
)

configure_lambda_logging()
logger = get_structured_logger('ReportProcessor')


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Process a batch of ledger stream records.

    Ledger write failures propagate so Lambda retries the batch; report
    failures are already recorded on the rows.

    Args:
        event: DynamoDB stream event
        context: Lambda context

    Returns:
        Outcome summary
    """
    records = event.get('Records', [])
    logger.info(
        'Received ledger stream batch',
        operation='lambda_handler',
        record_count=len(records),
        aws_request_id=getattr(context, 'aws_request_id', None),
    )

    outcomes = get_deferred_processor().process_stream_event(event)

    summary = {outcome: outcomes.count(outcome) for outcome in set(outcomes)}
    logger.info('Ledger stream batch processed', operation='lambda_handler', outcomes=summary)
    return {
        'processed': len(outcomes),
        'outcomes': outcomes,
    }
