"""
Unit tests for intent, cache entry and ledger models.
"""
import json
from datetime import date, datetime, timezone

import pytest

from cost_reports.models import (
    CacheEntry,
    DateRange,
    Granularity,
    IntentType,
    ParsedIntent,
    ReportRequest,
    ReportStatus,
)
from cost_reports.utils.validators import ValidationError


class TestIntentType:
    """Test suite for intent tag parsing."""

    @pytest.mark.parametrize('tag,expected', [
        ('monthly-billing', IntentType.MONTHLY_BILLING),
        ('Daily Billing', IntentType.DAILY_BILLING),
        ('resource_breakdown', IntentType.RESOURCE_BREAKDOWN),
        ('period-comparison', IntentType.PERIOD_COMPARISON),
    ])
    def test_parse_canonical_tags(self, tag, expected):
        assert IntentType.parse(tag) is expected

    @pytest.mark.parametrize('alias,expected', [
        ('monthly', IntentType.MONTHLY_BILLING),
        ('daily', IntentType.DAILY_BILLING),
        ('resource', IntentType.RESOURCE_BREAKDOWN),
        ('resource level breakdown', IntentType.RESOURCE_BREAKDOWN),
        ('scheduled', IntentType.SCHEDULED_REPORT),
        ('compare-months', IntentType.PERIOD_COMPARISON),
        ('anomaly', IntentType.ANOMALY_REPORT),
    ])
    def test_parse_aliases(self, alias, expected):
        assert IntentType.parse(alias) is expected

    @pytest.mark.parametrize('value', [None, '', '   ', 'weather', 42])
    def test_parse_rejects_unknown(self, value):
        with pytest.raises(ValidationError) as exc_info:
            IntentType.parse(value)

        assert exc_info.value.field == 'intent'

    def test_is_billing(self):
        assert IntentType.DAILY_BILLING.is_billing
        assert IntentType.PERIOD_COMPARISON.is_billing
        assert not IntentType.SCHEDULED_REPORT.is_billing
        assert not IntentType.ANOMALY_REPORT.is_billing


class TestParsedIntent:
    """Test suite for ParsedIntent parsing and serialization."""

    def test_from_dict_full(self):
        intent = ParsedIntent.from_dict({
            'intent': 'daily-billing',
            'days': 14,
            'specialRequirements': 'top 5 services',
            'granularity': 'daily',
        })

        assert intent.intent is IntentType.DAILY_BILLING
        assert intent.days == 14
        assert intent.special_requirements == 'top 5 services'
        assert intent.granularity is Granularity.DAILY

    def test_from_dict_periods(self):
        intent = ParsedIntent.from_dict({
            'intent': 'compare-months',
            'period1': {'start': '2024-06-01', 'end': '2024-07-01'},
            'period2': {'start': '2024-05-01T00:00:00Z', 'end': '2024-06-01'},
        })

        assert intent.period1 == DateRange(date(2024, 6, 1), date(2024, 7, 1))
        assert intent.period2 == DateRange(date(2024, 5, 1), date(2024, 6, 1))

    def test_days_as_numeric_string(self):
        assert ParsedIntent.from_dict({'intent': 'daily', 'days': '30'}).days == 30

    @pytest.mark.parametrize('days', [0, -3, 2.5, 'two', True])
    def test_invalid_days(self, days):
        with pytest.raises(ValidationError) as exc_info:
            ParsedIntent.from_dict({'intent': 'daily', 'days': days})

        assert exc_info.value.field == 'days'

    def test_invalid_date(self):
        with pytest.raises(ValidationError) as exc_info:
            ParsedIntent.from_dict({'intent': 'daily', 'startDate': '06/01/2024', 'endDate': '2024-06-10'})

        assert exc_info.value.field == 'startDate'

    def test_invalid_granularity(self):
        with pytest.raises(ValidationError):
            ParsedIntent.from_dict({'intent': 'daily', 'granularity': 'HOURLY'})

    def test_non_object_rejected(self):
        with pytest.raises(ValidationError):
            ParsedIntent.from_dict(['daily'])

    def test_to_dict_omits_missing_fields(self):
        data = ParsedIntent(intent=IntentType.DAILY_BILLING, days=7).to_dict()

        assert data == {'intent': 'daily-billing', 'days': 7}

    def test_to_dict_keeps_empty_special_requirements(self):
        data = ParsedIntent(intent=IntentType.DAILY_BILLING, special_requirements='').to_dict()

        assert data['specialRequirements'] == ''

    def test_round_trip(self):
        original = ParsedIntent.from_dict({
            'intent': 'period-comparison',
            'period1': {'start': '2024-06-01', 'end': '2024-07-01'},
            'period2': {'start': '2024-05-01', 'end': '2024-06-01'},
            'specialRequirements': 'EC2 only',
        })

        assert ParsedIntent.from_dict(original.to_dict()) == original

    def test_with_intent(self):
        intent = ParsedIntent(intent=IntentType.SCHEDULED_REPORT, days=3)

        assert intent.with_intent(IntentType.DAILY_BILLING) == ParsedIntent(
            intent=IntentType.DAILY_BILLING, days=3
        )


class TestCacheEntry:
    """Test suite for CacheEntry."""

    def test_create_sets_expiry(self):
        entry = CacheEntry.create('key', {'a': 1}, ttl_seconds=3600, now=1000)

        assert entry.written_at == 1000
        assert entry.expires_at == 4600
        assert not entry.has_artifact

    def test_is_expired(self):
        entry = CacheEntry.create('key', {}, ttl_seconds=10, now=1000)

        assert not entry.is_expired(now=1010)
        assert entry.is_expired(now=1011)

    def test_item_round_trip(self):
        entry = CacheEntry.create(
            'key', {'ResultsByTime': [{'Amount': 1.5}]}, ttl_seconds=60,
            artifact_url='https://cdn/r.pdf', summary_text='Summary', now=500
        )

        item = entry.to_item()

        assert item['ttl'] == item['expiresAt'] == 560
        assert json.loads(item['data']) == {'ResultsByTime': [{'Amount': 1.5}]}
        assert CacheEntry.from_item(item) == entry

    def test_raw_only_item_has_no_report_url(self):
        item = CacheEntry.create('key', {}, ttl_seconds=60, now=0).to_item()

        assert 'reportUrl' not in item
        assert 'costSummaryText' not in item

    def test_from_item_malformed(self):
        with pytest.raises(ValueError):
            CacheEntry.from_item({'cacheKey': 'key', 'data': '{not json'})

    def test_empty_key_rejected(self):
        with pytest.raises(ValueError):
            CacheEntry.create('', {}, ttl_seconds=60)


class TestReportRequest:
    """Test suite for ledger rows."""

    def _request(self, **overrides):
        values = {
            'request_id': 'req-1',
            'original_command': 'costs per resource',
            'parsed_query': ParsedIntent(intent=IntentType.RESOURCE_BREAKDOWN, days=14),
            'created_at': datetime(2024, 6, 15, 10, 30, tzinfo=timezone.utc),
        }
        values.update(overrides)
        return ReportRequest.pending(**values)

    def test_pending_defaults(self):
        request = self._request()

        assert request.report_url == 'PENDING'
        assert request.summary_text == 'PENDING'
        assert request.status is ReportStatus.PENDING
        assert not request.is_terminal

    @pytest.mark.parametrize('report_url,status', [
        ('ERROR', ReportStatus.ERROR),
        ('https://cdn/r.pdf', ReportStatus.DELIVERED),
    ])
    def test_terminal_status(self, report_url, status):
        request = ReportRequest(
            request_id='req-1',
            original_command='',
            parsed_query=ParsedIntent(intent=IntentType.DAILY_BILLING),
            report_url=report_url,
        )

        assert request.status is status
        assert request.is_terminal

    def test_item_round_trip(self):
        request = self._request(email='me@example.com')

        item = request.to_item()

        assert item['reportUrl'] == 'PENDING'
        assert item['email'] == 'me@example.com'
        assert json.loads(item['parsedQuery']) == {'intent': 'resource-breakdown', 'days': 14}
        assert ReportRequest.from_item(item) == request

    def test_item_without_email(self):
        assert 'email' not in self._request().to_item()

    def test_from_item_missing_query(self):
        with pytest.raises(ValueError):
            ReportRequest.from_item({'requestId': 'req-1'})

    def test_status_dict_delivered(self):
        request = ReportRequest(
            request_id='req-1',
            original_command='',
            parsed_query=ParsedIntent(intent=IntentType.DAILY_BILLING),
            report_url='https://cdn/r.pdf',
            summary_text='All good',
        )

        body = request.to_status_dict()

        assert body['status'] == 'DELIVERED'
        assert body['reportUrl'] == 'https://cdn/r.pdf'
        assert body['summary'] == 'All good'
