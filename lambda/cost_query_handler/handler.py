"""
HTTP API Lambda handler for cost queries.

Routes:
- POST /query - Answer a natural-language cost question
- GET /reports/{requestId} - Status of a deferred report
- OPTIONS * - CORS preflight
"""
import base64
import json
from typing import Any, Dict, Optional, Tuple

from cost_reports.data_access.exceptions import DynamoDBError
from cost_reports.exceptions import (
    IncidentLookupError,
    SchedulingError,
    TransientBackendError,
)
from cost_reports.models import (
    Accepted,
    Failed,
    Generated,
    IntentType,
    Ready,
)
from cost_reports.services.factory import (
    get_incident_reporter,
    get_intent_translator,
    get_report_scheduler,
    get_resolution_engine,
)
from cost_reports.utils.response_builder import (
    error_response,
    preflight_response,
    success_response,
)
from cost_reports.utils.structured_logger import (
    configure_lambda_logging,
    get_structured_logger,
)
from cost_reports.utils.validators import (
    ValidationError,
    validate_command,
    validate_email,
    validate_request_id,
)

configure_lambda_logging()
logger = get_structured_logger('CostQueryHandler')

NEED_EMAIL_MESSAGE = (
    'Resource-level reports take a few minutes to prepare. '
    'Please provide your email address and we will send the report when it is ready.'
)
PROCESSING_MESSAGE = (
    'Your report is being generated. We will email it to you when it is ready.'
)


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    HTTP API Lambda handler for cost queries.

    Accepts both REST API (v1) and HTTP API (v2) event shapes.
    """
    aws_request_id = getattr(context, 'aws_request_id', None)
    try:
        method, path = _route(event)
        logger.info(
            'HTTP request received',
            operation='lambda_handler',
            method=method,
            path=path,
            aws_request_id=aws_request_id,
        )

        if method == 'OPTIONS':
            return preflight_response()
        if method == 'POST' and (path.rstrip('/').endswith('/query') or path in ('', '/')):
            return handle_query(event)
        if method == 'GET' and '/reports/' in path:
            return handle_report_status(event, path)

        return error_response(404, 'NOT_FOUND', 'Not found')

    except Exception as e:
        logger.error('Unhandled error', operation='lambda_handler', error=e)
        return error_response(500, 'INTERNAL_ERROR', 'Internal server error')


def handle_query(event: Dict[str, Any]) -> Dict[str, Any]:
    """Translate, route and resolve a cost question."""
    try:
        body = _parse_body(event)
        command = validate_command(body.get('message'))
        email = validate_email(body.get('email'))
        request_id = validate_request_id(body.get('requestId'))

        intent = get_intent_translator().translate(command)
        log = logger.bind(request_id=request_id)
        log.info('Query translated', operation='handle_query', intent=intent.intent.value)

        if intent.intent is IntentType.SCHEDULED_REPORT:
            scheduled = get_report_scheduler().schedule(intent)
            return success_response(200, {
                'status': scheduled.status,
                'message': f'Cost report scheduled ({scheduled.schedule_expression}).',
                'ruleName': scheduled.rule_name,
                'scheduleExpression': scheduled.schedule_expression,
            })

        if intent.intent is IntentType.ANOMALY_REPORT:
            report = get_incident_reporter().report(intent.days)
            return success_response(200, {
                'status': report.status,
                'message': report.message,
                'incidents': report.incidents,
            })

        result = get_resolution_engine().resolve(
            intent,
            email=email,
            request_id=request_id,
            original_command=command,
        )
        return resolution_response(result)

    except ValidationError as e:
        logger.warning('Invalid request', operation='handle_query', field=e.field, error=e.message)
        return error_response(400, 'INVALID_REQUEST', e.message, {'field': e.field} if e.field else None)
    except (TransientBackendError, SchedulingError, IncidentLookupError) as e:
        logger.error('Backend failure', operation='handle_query', error=e)
        return error_response(502, 'BACKEND_UNAVAILABLE', f'Failed to generate the report: {e}')


def handle_report_status(event: Dict[str, Any], path: str) -> Dict[str, Any]:
    """Return the ledger status of a deferred report."""
    path_parameters = event.get('pathParameters') or {}
    raw_id = path_parameters.get('requestId') or path.rstrip('/').split('/')[-1]

    try:
        request_id = validate_request_id(raw_id)
    except ValidationError as e:
        return error_response(400, 'INVALID_REQUEST', e.message, {'field': e.field})
    if request_id is None:
        return error_response(400, 'INVALID_REQUEST', 'requestId is required', {'field': 'requestId'})

    try:
        request = get_resolution_engine().get_request(request_id)
    except (DynamoDBError, ValueError) as e:
        logger.error('Report lookup failed', operation='handle_report_status', error=e)
        return error_response(500, 'INTERNAL_ERROR', 'Could not read report status')

    if request is None:
        return error_response(404, 'REPORT_NOT_FOUND', f'Report {request_id} not found')
    return success_response(200, request.to_status_dict())


def resolution_response(result) -> Dict[str, Any]:
    """Map an engine result onto an HTTP response."""
    if isinstance(result, Ready):
        return success_response(200, {
            'status': result.status,
            'message': f'Cost Report (cached). You can view the report here: {result.artifact_url}',
            'reportUrl': result.artifact_url,
            'summary': result.summary,
            'requestId': result.request_id,
        })
    if isinstance(result, Generated):
        return success_response(200, {
            'status': result.status,
            'message': f'Cost Report generated. You can view the report here: {result.artifact_url}',
            'reportUrl': result.artifact_url,
            'summary': result.summary,
            'requestId': result.request_id,
        })
    if isinstance(result, Accepted):
        return success_response(202, {
            'status': result.status,
            'requestId': result.request_id,
            'needEmail': result.need_email,
            'message': NEED_EMAIL_MESSAGE if result.need_email else PROCESSING_MESSAGE,
        })
    if isinstance(result, Failed):
        return success_response(200, {
            'status': result.status,
            'requestId': result.request_id,
            'message': f'Report generation failed: {result.message}',
        })
    raise TypeError(f'Unexpected resolution result: {type(result).__name__}')


def _route(event: Dict[str, Any]) -> Tuple[str, str]:
    http = (event.get('requestContext') or {}).get('http') or {}
    method = event.get('httpMethod') or http.get('method') or ''
    path = event.get('path') or event.get('rawPath') or http.get('path') or ''
    return method.upper(), path


def _parse_body(event: Dict[str, Any]) -> Dict[str, Any]:
    raw: Optional[str] = event.get('body')
    if not raw:
        return {}
    if event.get('isBase64Encoded'):
        raw = base64.b64decode(raw).decode('utf-8')
    try:
        body = json.loads(raw)
    except json.JSONDecodeError:
        raise ValidationError('Request body must be valid JSON', field='body')
    if not isinstance(body, dict):
        raise ValidationError('Request body must be a JSON object', field='body')
    return body
