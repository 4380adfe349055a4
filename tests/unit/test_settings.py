"""
Unit tests for settings and table names.
"""
import pytest

from cost_reports.config import Settings, get_settings, get_table_name, reset_settings


class TestSettings:
    """Test suite for environment driven settings."""

    def test_defaults(self, monkeypatch):
        for name in ('CACHE_TTL_HOURS', 'DEFERRED_GROUPING_DIMENSIONS', 'ARTIFACT_BASE_URL', 'CF_URL'):
            monkeypatch.delenv(name, raising=False)

        settings = Settings()

        assert settings.cache_ttl_seconds == 43200
        assert settings.deferred_grouping_dimensions == frozenset({'RESOURCE_ID'})
        assert settings.default_window_days == 7
        assert settings.comparison_metric == 'UnblendedCost'
        assert settings.artifact_base_url == ''

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv('CACHE_TTL_HOURS', '0.5')
        monkeypatch.setenv('DEFERRED_GROUPING_DIMENSIONS', 'resource_id, linked_account')
        monkeypatch.delenv('ARTIFACT_BASE_URL', raising=False)
        monkeypatch.setenv('CF_URL', 'https://d123.cloudfront.net/')

        settings = Settings()

        assert settings.cache_ttl_seconds == 1800
        assert settings.deferred_grouping_dimensions == frozenset({'RESOURCE_ID', 'LINKED_ACCOUNT'})
        assert settings.artifact_base_url == 'https://d123.cloudfront.net'

    @pytest.mark.parametrize('name,value', [
        ('CACHE_TTL_HOURS', '0'),
        ('DEFAULT_WINDOW_DAYS', '0'),
        ('DEFERRED_GROUPING_DIMENSIONS', 'COLOUR'),
        ('BILLING_MAX_RETRIES', '-1'),
        ('LOG_LEVEL', 'LOUD'),
    ])
    def test_invalid_values(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)

        with pytest.raises(ValueError):
            Settings()

    def test_singleton(self):
        assert get_settings() is get_settings()

        first = get_settings()
        reset_settings()

        assert get_settings() is not first


class TestTableNames:
    """Test suite for table name resolution."""

    def test_env_override(self):
        assert get_table_name('REPORT_REQUESTS_TABLE_NAME') == 'CostReportRequests-test'

    def test_legacy_variable(self, monkeypatch):
        monkeypatch.delenv('COST_CACHE_TABLE_NAME', raising=False)
        monkeypatch.setenv('COST_EXPLORER_CACHE_TABLE', 'legacy-cache')

        assert get_table_name('COST_CACHE_TABLE_NAME') == 'legacy-cache'

    def test_default(self, monkeypatch):
        monkeypatch.delenv('COST_CACHE_TABLE_NAME', raising=False)
        monkeypatch.delenv('COST_CACHE_TABLE', raising=False)
        monkeypatch.delenv('COST_EXPLORER_CACHE_TABLE', raising=False)

        assert get_table_name('COST_CACHE_TABLE_NAME') == 'CostExplorerCache'
