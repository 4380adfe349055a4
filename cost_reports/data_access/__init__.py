"""
Data access layer for DynamoDB operations.
"""
from .dynamodb_client import DynamoDBClient
from .cost_cache_repository import CostCacheRepository
from .report_requests_repository import ReportRequestsRepository
from .exceptions import (
    DynamoDBError,
    ItemNotFoundError,
    ConditionalCheckFailedError,
    RetryableError,
)

__all__ = [
    'DynamoDBClient',
    'CostCacheRepository',
    'ReportRequestsRepository',
    'DynamoDBError',
    'ItemNotFoundError',
    'ConditionalCheckFailedError',
    'RetryableError',
]
