"""
Utility for building standardized API Gateway responses.
"""
import json
import time
from decimal import Decimal
from typing import Dict, Any, Optional

CORS_HEADERS = {
    'Content-Type': 'application/json',
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Headers': 'Content-Type',
    'Access-Control-Allow-Methods': 'OPTIONS,POST,GET',
}


def _default(obj):
    if isinstance(obj, Decimal):
        return float(obj)
    return str(obj)


def success_response(
    status_code: int = 200,
    body: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Build success response.

    Args:
        status_code: HTTP status code
        body: Response body dict

    Returns:
        API Gateway response dict
    """
    return {
        'statusCode': status_code,
        'headers': dict(CORS_HEADERS),
        'body': json.dumps(body or {}, default=_default)
    }


def error_response(
    status_code: int,
    error_code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Build error response.

    Args:
        status_code: HTTP status code
        error_code: Application error code
        message: Human-readable error message
        details: Optional additional error details

    Returns:
        API Gateway response dict
    """
    body = {
        'type': 'error',
        'code': error_code,
        'message': message,
        'timestamp': int(time.time() * 1000)
    }

    if details:
        body['details'] = details

    return {
        'statusCode': status_code,
        'headers': dict(CORS_HEADERS),
        'body': json.dumps(body, default=_default)
    }


def preflight_response() -> Dict[str, Any]:
    """Response to a CORS preflight (OPTIONS) request."""
    return {
        'statusCode': 200,
        'headers': dict(CORS_HEADERS),
        'body': ''
    }
