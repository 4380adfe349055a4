"""
Unit tests for DynamoDBClient and the report request ledger, backed by moto.
"""
from datetime import datetime, timezone
from unittest.mock import Mock

import boto3
import pytest
from botocore.exceptions import ClientError, EndpointConnectionError, ReadTimeoutError
from moto import mock_aws

from cost_reports.data_access import (
    ConditionalCheckFailedError,
    DynamoDBClient,
    DynamoDBError,
    ReportRequestsRepository,
    RetryableError,
)
from cost_reports.models import IntentType, ParsedIntent, ReportRequest, ReportStatus

TABLE_NAME = 'CostReportRequests-test'


@pytest.fixture
def dynamodb():
    with mock_aws():
        resource = boto3.resource('dynamodb', region_name='us-east-1')
        resource.create_table(
            TableName=TABLE_NAME,
            KeySchema=[{'AttributeName': 'requestId', 'KeyType': 'HASH'}],
            AttributeDefinitions=[{'AttributeName': 'requestId', 'AttributeType': 'S'}],
            BillingMode='PAY_PER_REQUEST'
        )
        yield resource


@pytest.fixture
def ledger(dynamodb):
    return ReportRequestsRepository(TABLE_NAME, DynamoDBClient(dynamodb_resource=dynamodb))


def _pending(request_id='req-1', email=None):
    return ReportRequest.pending(
        request_id=request_id,
        original_command='costs per resource',
        parsed_query=ParsedIntent(intent=IntentType.RESOURCE_BREAKDOWN, days=14),
        email=email,
        created_at=datetime(2024, 6, 15, 10, 0, tzinfo=timezone.utc),
    )


class TestReportRequestsRepository:
    """Test suite for the ledger repository."""

    def test_create_and_get(self, ledger):
        ledger.create_request(_pending(email='me@example.com'))

        request = ledger.get_request('req-1')

        assert request.status is ReportStatus.PENDING
        assert request.email == 'me@example.com'
        assert request.parsed_query.days == 14

    def test_get_missing_request(self, ledger):
        assert ledger.get_request('absent') is None

    def test_duplicate_create_rejected(self, ledger):
        ledger.create_request(_pending())

        with pytest.raises(ConditionalCheckFailedError):
            ledger.create_request(_pending())

    def test_update_email(self, ledger):
        ledger.create_request(_pending())

        ledger.update_email('req-1', 'later@example.com')

        assert ledger.get_request('req-1').email == 'later@example.com'

    def test_update_email_requires_existing_row(self, ledger):
        with pytest.raises(ConditionalCheckFailedError):
            ledger.update_email('absent', 'me@example.com')

    def test_mark_delivered(self, ledger):
        ledger.create_request(_pending())

        ledger.mark_delivered('req-1', 'https://cdn/r.pdf', 'Summary')

        request = ledger.get_request('req-1')
        assert request.status is ReportStatus.DELIVERED
        assert request.report_url == 'https://cdn/r.pdf'
        assert request.summary_text == 'Summary'

    def test_mark_failed(self, ledger):
        ledger.create_request(_pending())

        ledger.mark_failed('req-1', 'Cost Explorer unavailable')

        request = ledger.get_request('req-1')
        assert request.status is ReportStatus.ERROR
        assert request.summary_text == 'Cost Explorer unavailable'

    def test_terminal_state_reached_once(self, ledger):
        ledger.create_request(_pending())
        ledger.mark_delivered('req-1', 'https://cdn/r.pdf', 'Summary')

        with pytest.raises(ConditionalCheckFailedError):
            ledger.mark_failed('req-1', 'late failure')
        with pytest.raises(ConditionalCheckFailedError):
            ledger.mark_delivered('req-1', 'https://cdn/other.pdf', 'Other')

        assert ledger.get_request('req-1').report_url == 'https://cdn/r.pdf'


class TestDynamoDBClientErrors:
    """Test suite for botocore error translation."""

    def _client_error(self, code):
        return ClientError({'Error': {'Code': code, 'Message': code}}, 'PutItem')

    def _client_with_table(self, table):
        resource = Mock()
        resource.Table.return_value = table
        return DynamoDBClient(dynamodb_resource=resource)

    def test_throttling_is_retryable(self):
        table = Mock()
        table.get_item.side_effect = self._client_error('ProvisionedThroughputExceededException')
        client = self._client_with_table(table)

        with pytest.raises(RetryableError):
            client.get_item('t', {'requestId': 'x'})

    def test_other_errors(self):
        table = Mock()
        table.put_item.side_effect = self._client_error('ValidationException')
        client = self._client_with_table(table)

        with pytest.raises(DynamoDBError) as exc_info:
            client.put_item('t', {'requestId': 'x'})

        assert not isinstance(exc_info.value, RetryableError)

    @pytest.mark.parametrize('operation', ['get_item', 'put_item', 'update_item'])
    def test_connection_errors_are_retryable(self, operation):
        table = Mock()
        getattr(table, operation).side_effect = EndpointConnectionError(
            endpoint_url='https://dynamodb.us-east-1.amazonaws.com'
        )
        client = self._client_with_table(table)

        with pytest.raises(RetryableError):
            if operation == 'get_item':
                client.get_item('t', {'requestId': 'x'})
            elif operation == 'put_item':
                client.put_item('t', {'requestId': 'x'})
            else:
                client.update_item('t', {'requestId': 'x'}, 'SET email = :e')

    def test_read_timeout_is_retryable(self):
        table = Mock()
        table.get_item.side_effect = ReadTimeoutError(endpoint_url='https://dynamodb.us-east-1.amazonaws.com')
        client = self._client_with_table(table)

        with pytest.raises(RetryableError):
            client.get_item('t', {'requestId': 'x'})

    def test_conditional_failure(self):
        table = Mock()
        table.update_item.side_effect = self._client_error('ConditionalCheckFailedException')
        client = self._client_with_table(table)

        with pytest.raises(ConditionalCheckFailedError):
            client.set_attributes('t', {'requestId': 'x'}, {'email': 'a@b.co'})

    def test_set_attributes_aliases_names(self):
        table = Mock()
        table.update_item.return_value = {}
        client = self._client_with_table(table)

        client.set_attributes(
            't', {'requestId': 'x'}, {'reportUrl': 'u', 'ttl': 5},
            condition_expression='reportUrl = :pending',
            condition_values={':pending': 'PENDING'}
        )

        kwargs = table.update_item.call_args.kwargs
        assert kwargs['UpdateExpression'] == 'SET #a0 = :v0, #a1 = :v1'
        assert kwargs['ExpressionAttributeNames'] == {'#a0': 'reportUrl', '#a1': 'ttl'}
        assert kwargs['ExpressionAttributeValues'] == {':pending': 'PENDING', ':v0': 'u', ':v1': 5}

    def test_set_attributes_requires_attributes(self):
        client = self._client_with_table(Mock())

        with pytest.raises(ValueError):
            client.set_attributes('t', {'requestId': 'x'}, {})
