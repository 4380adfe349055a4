"""
Pytest configuration and fixtures.
"""
import importlib.util
import os
from pathlib import Path
from typing import Any, Dict, Optional

import pytest

from cost_reports.config import reset_settings
from cost_reports.data_access.exceptions import ConditionalCheckFailedError
from cost_reports.models.cache_entry import CacheEntry
from cost_reports.models.report_request import ERROR_MARKER, PENDING_MARKER, ReportRequest
from cost_reports.services import factory

LAMBDA_ROOT = Path(__file__).resolve().parent.parent / 'lambda'


@pytest.fixture(scope="session")
def aws_credentials():
    """Mock AWS credentials for testing."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"


@pytest.fixture(scope="session", autouse=True)
def env_vars(aws_credentials):
    """Set up environment variables for tests."""
    os.environ["AWS_REGION"] = "us-east-1"
    os.environ["LOG_LEVEL"] = "INFO"
    os.environ["REPORT_REQUESTS_TABLE_NAME"] = "CostReportRequests-test"
    os.environ["COST_CACHE_TABLE_NAME"] = "CostExplorerCache-test"
    os.environ["REPORTS_BUCKET"] = "cost-reports-test"
    os.environ["ARTIFACT_BASE_URL"] = "https://reports.example.com"
    os.environ["REPORT_SENDER_EMAIL"] = "reports@example.com"
    os.environ["SCHEDULED_REPORT_FUNCTION_ARN"] = (
        "arn:aws:lambda:us-east-1:123456789012:function:scheduled-cost-report"
    )


@pytest.fixture(autouse=True)
def reset_singletons():
    """Each test starts without cached settings or collaborators."""
    reset_settings()
    factory.reset_factory()
    yield
    reset_settings()
    factory.reset_factory()


def _load_handler(function_name: str):
    path = LAMBDA_ROOT / function_name / 'handler.py'
    spec = importlib.util.spec_from_file_location(f'{function_name}_handler', path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def load_handler():
    """Load a Lambda handler module by function directory name."""
    return _load_handler


class InMemoryCacheRepository:
    """Cache repository double keeping entries in a dict."""

    def __init__(self):
        self.entries: Dict[str, CacheEntry] = {}
        self.puts = []

    def get_entry(self, cache_key: str) -> Optional[CacheEntry]:
        return self.entries.get(cache_key)

    def put_entry(self, entry: CacheEntry) -> None:
        self.puts.append(entry)
        self.entries[entry.cache_key] = entry


@pytest.fixture
def cache_repository():
    return InMemoryCacheRepository()


def cost_and_usage(groups: Dict[str, float], start: str = '2024-06-01', end: str = '2024-06-02') -> Dict[str, Any]:
    """Cost Explorer get_cost_and_usage payload with one period."""
    return {
        'ResultsByTime': [
            {
                'TimePeriod': {'Start': start, 'End': end},
                'Total': {},
                'Groups': [
                    {
                        'Keys': [name],
                        'Metrics': {'UnblendedCost': {'Amount': str(amount), 'Unit': 'USD'}},
                    }
                    for name, amount in groups.items()
                ],
                'Estimated': False,
            }
        ],
        'GroupBy': 'SERVICE',
    }


@pytest.fixture
def make_cost_data():
    return cost_and_usage


@pytest.fixture
def sample_cost_data():
    return cost_and_usage({
        'Amazon Elastic Compute Cloud - Compute': 120.5,
        'Amazon Simple Storage Service': 30.25,
        'AWS Lambda': 4.0,
    })


class InMemoryLedger:
    """Report request ledger double with the repository's conditional semantics."""

    def __init__(self):
        self.items: Dict[str, Dict[str, Any]] = {}

    def create_request(self, request: ReportRequest) -> Dict[str, Any]:
        if request.request_id in self.items:
            raise ConditionalCheckFailedError("Conditional check failed")
        item = request.to_item()
        self.items[request.request_id] = item
        return item

    def get_item(self, request_id: str) -> Optional[Dict[str, Any]]:
        item = self.items.get(request_id)
        return dict(item) if item is not None else None

    def get_request(self, request_id: str) -> Optional[ReportRequest]:
        item = self.get_item(request_id)
        return ReportRequest.from_item(item) if item is not None else None

    def update_email(self, request_id: str, email: str) -> None:
        if request_id not in self.items:
            raise ConditionalCheckFailedError("Conditional check failed")
        self.items[request_id]['email'] = email

    def mark_delivered(self, request_id: str, report_url: str, summary: str) -> None:
        self._transition(request_id, report_url, summary)

    def mark_failed(self, request_id: str, message: str) -> None:
        self._transition(request_id, ERROR_MARKER, message)

    def _transition(self, request_id: str, report_url: str, summary: str) -> None:
        item = self.items.get(request_id)
        if item is None or item['reportUrl'] != PENDING_MARKER:
            raise ConditionalCheckFailedError("Conditional check failed")
        item['reportUrl'] = report_url
        item['summaryText'] = summary


@pytest.fixture
def memory_ledger():
    return InMemoryLedger()
