"""
Unit tests for QueryResolutionEngine and ReportBuilder.
"""
from datetime import date, datetime, timezone
from unittest.mock import Mock

import pytest

from cost_reports.exceptions import BillingDataError, CacheStoreError, RenderingError
from cost_reports.models import (
    Accepted,
    CacheEntry,
    DateRange,
    Failed,
    Generated,
    IntentType,
    ParsedIntent,
    Ready,
    ReportRequest,
)
from cost_reports.services import QueryPlanner, QueryResolutionEngine, ReportBuilder, ReportCache
from cost_reports.utils.validators import ValidationError

NOW = datetime(2024, 6, 15, 10, 0, tzinfo=timezone.utc)
CACHED_URL = 'https://reports.example.com/cost-reports/cached.pdf'


def _daily(days=7, **fields):
    return ParsedIntent(intent=IntentType.DAILY_BILLING, days=days, **fields)


def _resource(days=14):
    return ParsedIntent(intent=IntentType.RESOURCE_BREAKDOWN, days=days)


def _plan(intent):
    return QueryPlanner().plan(intent, today=NOW.date())


@pytest.fixture
def cache(cache_repository):
    return ReportCache(cache_repository, ttl_seconds=43200, clock=lambda: NOW.timestamp())


@pytest.fixture
def builder():
    builder = Mock()
    builder.build.return_value = ('https://reports.example.com/cost-reports/new.pdf', 'Fresh summary')
    return builder


@pytest.fixture
def metrics():
    return Mock()


@pytest.fixture
def engine(cache, memory_ledger, builder, metrics):
    ids = iter(['generated-1', 'generated-2'])
    return QueryResolutionEngine(
        planner=QueryPlanner(),
        cache=cache,
        ledger=memory_ledger,
        builder=builder,
        metrics=metrics,
        clock=lambda: NOW,
        id_factory=lambda: next(ids),
    )


def _seed_cache(cache, intent, artifact_url=CACHED_URL, summary='Cached summary'):
    cache.store(_plan(intent).cache_key, {'ResultsByTime': []}, artifact_url=artifact_url, summary=summary)


class TestCachedResolution:
    """Test suite for answers served from the cache."""

    def test_fresh_report_is_ready(self, engine, cache, builder, metrics):
        _seed_cache(cache, _daily())

        result = engine.resolve(_daily(), original_command='costs last week')

        assert result == Ready(artifact_url=CACHED_URL, summary='Cached summary')
        builder.build.assert_not_called()
        metrics.emit_resolution.assert_called_once_with('READY')

    def test_cached_deferred_query_is_ready_without_ledger_row(self, engine, cache, memory_ledger):
        _seed_cache(cache, _resource())

        result = engine.resolve(_resource(), email='me@example.com')

        assert isinstance(result, Ready)
        assert memory_ledger.items == {}

    def test_expired_report_is_regenerated(self, engine, cache_repository, builder):
        key = _plan(_daily()).cache_key
        cache_repository.entries[key] = CacheEntry.create(
            key, {}, ttl_seconds=60, artifact_url=CACHED_URL, summary_text='old',
            now=NOW.timestamp() - 3600
        )

        result = engine.resolve(_daily())

        assert isinstance(result, Generated)
        assert builder.build.call_args.kwargs['cached'] is None

    def test_cache_failure_fails_open(self, memory_ledger, builder):
        repository = Mock()
        repository.get_entry.side_effect = CacheStoreError('table missing')
        engine = QueryResolutionEngine(
            planner=QueryPlanner(),
            cache=ReportCache(repository, ttl_seconds=60),
            ledger=memory_ledger,
            builder=builder,
            clock=lambda: NOW,
        )

        result = engine.resolve(_daily())

        assert isinstance(result, Generated)


class TestSynchronousResolution:
    """Test suite for reports produced inline."""

    def test_miss_generates_report(self, engine, builder, metrics):
        result = engine.resolve(_daily(), original_command='costs last week')

        assert result == Generated(
            artifact_url='https://reports.example.com/cost-reports/new.pdf',
            summary='Fresh summary',
        )
        plan = builder.build.call_args.args[0]
        assert plan.window.start == date(2024, 6, 8)
        assert builder.build.call_args.kwargs['original_command'] == 'costs last week'
        metrics.emit_resolution.assert_called_once_with('GENERATED')

    def test_raw_only_entry_is_passed_to_builder(self, engine, cache, builder):
        cache.store(_plan(_daily()).cache_key, {'ResultsByTime': [{'Groups': []}]})

        engine.resolve(_daily())

        cached = builder.build.call_args.kwargs['cached']
        assert cached.raw_data == {'ResultsByTime': [{'Groups': []}]}

    def test_backend_failure_propagates(self, engine, builder, metrics):
        builder.build.side_effect = BillingDataError('Cost Explorer unavailable')

        with pytest.raises(BillingDataError):
            engine.resolve(_daily())

        metrics.emit_resolution.assert_called_once_with('FAILED')

    def test_non_billing_intent_rejected(self, engine):
        with pytest.raises(ValidationError):
            engine.resolve(ParsedIntent(intent=IntentType.ANOMALY_REPORT))


class TestDeferredResolution:
    """Test suite for deferred requests and the ledger."""

    def test_resource_breakdown_is_accepted(self, engine, memory_ledger, builder, metrics):
        result = engine.resolve(_resource(), email='me@example.com', original_command='per resource')

        assert result == Accepted(request_id='generated-1', need_email=False)
        builder.build.assert_not_called()
        request = memory_ledger.get_request('generated-1')
        assert request.report_url == 'PENDING'
        assert request.email == 'me@example.com'
        assert request.original_command == 'per resource'
        assert request.created_at == NOW
        metrics.emit_resolution.assert_called_once_with('ACCEPTED')

    def test_missing_email_is_requested(self, engine):
        result = engine.resolve(_resource())

        assert result == Accepted(request_id='generated-1', need_email=True)

    def test_caller_request_id_is_used(self, engine, memory_ledger):
        engine.resolve(_resource(), request_id='client-42')

        assert 'client-42' in memory_ledger.items

    def test_resubmission_attaches_email_without_new_row(self, engine, memory_ledger):
        engine.resolve(_resource(), request_id='client-42')

        result = engine.resolve(_resource(), email='later@example.com', request_id='client-42')

        assert result == Accepted(request_id='client-42', need_email=False)
        assert list(memory_ledger.items) == ['client-42']
        assert memory_ledger.get_request('client-42').email == 'later@example.com'

    def test_resubmission_without_email_keeps_stored_email(self, engine):
        engine.resolve(_resource(), email='me@example.com', request_id='client-42')

        result = engine.resolve(_resource(), request_id='client-42')

        assert result == Accepted(request_id='client-42', need_email=False)

    def test_resubmitted_delivered_request_is_ready(self, engine, memory_ledger):
        engine.resolve(_resource(), request_id='client-42')
        memory_ledger.mark_delivered('client-42', 'https://cdn/r.pdf', 'Done')

        result = engine.resolve(_resource(), request_id='client-42')

        assert result == Ready(artifact_url='https://cdn/r.pdf', summary='Done', request_id='client-42')

    def test_resubmitted_failed_request_reports_failure(self, engine, memory_ledger, builder):
        engine.resolve(_resource(), request_id='client-42')
        memory_ledger.mark_failed('client-42', 'Cost Explorer unavailable')

        result = engine.resolve(_resource(), request_id='client-42')

        assert result == Failed(request_id='client-42', message='Cost Explorer unavailable')
        builder.build.assert_not_called()

    def test_lost_insert_race_resumes_existing_row(self, engine, memory_ledger):
        racing = ReportRequest.pending(
            request_id='client-42',
            original_command='per resource',
            parsed_query=_resource(),
            email='first@example.com',
            created_at=NOW,
        )
        real_get_request = memory_ledger.get_request
        calls = []

        def get_request(request_id):
            calls.append(request_id)
            if len(calls) == 1:
                memory_ledger.create_request(racing)
                return None
            return real_get_request(request_id)

        memory_ledger.get_request = get_request

        result = engine.resolve(_resource(), request_id='client-42')

        assert result == Accepted(request_id='client-42', need_email=False)
        assert memory_ledger.items['client-42']['email'] == 'first@example.com'


class TestReportBuilder:
    """Test suite for the report production pipeline."""

    @pytest.fixture
    def collaborators(self, sample_cost_data):
        billing = Mock()
        billing.fetch.return_value = sample_cost_data
        narrative = Mock()
        narrative.summarize.return_value = 'Narrative'
        renderer = Mock()
        renderer.render.return_value = b'%PDF'
        store = Mock()
        store.put.return_value = 'https://cdn/report.pdf'
        return billing, narrative, renderer, store

    def test_build_fetches_and_caches(self, collaborators, cache, cache_repository, sample_cost_data):
        billing, narrative, renderer, store = collaborators
        metrics = Mock()
        builder = ReportBuilder(billing, narrative, renderer, store, cache, metrics=metrics)
        plan = _plan(_daily())

        url, summary = builder.build(plan, original_command='costs', artifact_name='cost-report-x')

        assert (url, summary) == ('https://cdn/report.pdf', 'Narrative')
        billing.fetch.assert_called_once_with(
            start='2024-06-08', end='2024-06-15', granularity='DAILY', group_by='SERVICE'
        )
        assert renderer.render.call_args.kwargs['title'] == 'AWS Cost Report'
        store.put.assert_called_once_with(b'%PDF', 'cost-report-x')
        assert [entry.has_artifact for entry in cache_repository.puts] == [False, True]
        final = cache_repository.entries[plan.cache_key]
        assert final.raw_data == sample_cost_data
        assert final.summary_text == 'Narrative'
        metrics.emit_generation_latency.assert_called_once()

    def test_cached_raw_data_skips_fetch(self, collaborators, cache):
        billing, narrative, renderer, store = collaborators
        builder = ReportBuilder(billing, narrative, renderer, store, cache)
        plan = _plan(_daily())
        entry = CacheEntry.create(plan.cache_key, {'ResultsByTime': []}, ttl_seconds=60, now=NOW.timestamp())

        builder.build(plan, cached=entry)

        billing.fetch.assert_not_called()
        assert narrative.summarize.call_args.args[1] == {'ResultsByTime': []}

    def test_failure_after_fetch_keeps_raw_data(self, collaborators, cache, cache_repository):
        billing, narrative, renderer, store = collaborators
        renderer.render.side_effect = RenderingError('no fonts')
        builder = ReportBuilder(billing, narrative, renderer, store, cache)
        plan = _plan(_daily())

        with pytest.raises(RenderingError):
            builder.build(plan)

        entry = cache_repository.entries[plan.cache_key]
        assert not entry.has_artifact
        store.put.assert_not_called()

    def test_comparison_fetch(self, collaborators, cache):
        billing, narrative, renderer, store = collaborators
        billing.fetch_comparison.return_value = {'CostAndUsageComparisons': []}
        builder = ReportBuilder(billing, narrative, renderer, store, cache)
        plan = _plan(ParsedIntent(
            intent=IntentType.PERIOD_COMPARISON,
            period1=DateRange(date(2024, 6, 1), date(2024, 7, 1)),
            period2=DateRange(date(2024, 5, 1), date(2024, 6, 1)),
        ))

        builder.build(plan)

        kwargs = billing.fetch_comparison.call_args.kwargs
        assert kwargs['baseline'] == DateRange(date(2024, 5, 1), date(2024, 6, 1))
        assert kwargs['comparison'] == DateRange(date(2024, 6, 1), date(2024, 7, 1))
        assert kwargs['metric'] == 'UnblendedCost'
        assert kwargs['granularity'] == 'MONTHLY'
        assert renderer.render.call_args.kwargs['title'] == 'AWS Cost Comparison Report'
