"""
Configuration settings for the cost reporting functions.

Loads configuration from environment variables with sensible defaults.
"""

import os
from typing import FrozenSet, Optional

from .table_names import (
    COST_CACHE_TABLE_NAME,
    REPORT_REQUESTS_TABLE_NAME,
    get_table_name,
)


class Settings:
    """
    Configuration settings for query resolution, caching and delivery.

    All settings are loaded from environment variables with defaults.
    """

    VALID_GROUPING_DIMENSIONS = {
        'SERVICE', 'RESOURCE_ID', 'LINKED_ACCOUNT', 'REGION',
        'USAGE_TYPE', 'INSTANCE_TYPE', 'OPERATION',
    }

    def __init__(self):
        """Initialize settings from environment variables."""
        # AWS Configuration
        self.aws_region: str = os.getenv('AWS_REGION', 'us-east-1')
        self.bedrock_region: str = os.getenv('BEDROCK_REGION', self.aws_region)

        # Tables
        self.report_requests_table: str = get_table_name(
            'REPORT_REQUESTS_TABLE_NAME', REPORT_REQUESTS_TABLE_NAME
        )
        self.cost_cache_table: str = get_table_name(
            'COST_CACHE_TABLE_NAME', COST_CACHE_TABLE_NAME
        )

        # Cache and routing policy
        self.cache_ttl_hours: float = float(os.getenv('CACHE_TTL_HOURS', '12'))
        self.deferred_grouping_dimensions: FrozenSet[str] = self._parse_list(
            os.getenv('DEFERRED_GROUPING_DIMENSIONS', 'RESOURCE_ID')
        )
        self.default_window_days: int = int(os.getenv('DEFAULT_WINDOW_DAYS', '7'))
        self.comparison_metric: str = os.getenv('COMPARISON_METRIC', 'UnblendedCost')

        # Artifact storage
        self.reports_bucket: str = os.getenv('REPORTS_BUCKET', 'lambda-cost-reports')
        self.reports_prefix: str = os.getenv('REPORTS_PREFIX', 'cost-reports').strip('/')
        self.artifact_base_url: str = (
            os.getenv('ARTIFACT_BASE_URL') or os.getenv('CF_URL', '')
        ).rstrip('/')

        # Bedrock models
        self.narrative_model_id: str = os.getenv(
            'NARRATIVE_MODEL_ID', 'us.amazon.nova-premier-v1:0'
        )
        self.translator_model_id: str = os.getenv(
            'TRANSLATOR_MODEL_ID', self.narrative_model_id
        )

        # Delivery and scheduling
        self.report_sender_email: str = os.getenv(
            'REPORT_SENDER_EMAIL', 'cost-reports@example.com'
        )
        self.scheduled_report_function_arn: str = os.getenv(
            'SCHEDULED_REPORT_FUNCTION_ARN', ''
        )

        # Retry Configuration
        self.billing_max_retries: int = int(os.getenv('BILLING_MAX_RETRIES', '2'))

        # Logging Configuration
        self.log_level: str = os.getenv('LOG_LEVEL', 'INFO')

        self._validate()

    @property
    def cache_ttl_seconds(self) -> int:
        """Freshness window of a cache entry in seconds."""
        return int(self.cache_ttl_hours * 3600)

    def _parse_list(self, value: str) -> FrozenSet[str]:
        """
        Parse a comma separated list into an upper-cased set.

        Args:
            value: Comma separated string

        Returns:
            Set of non-empty entries
        """
        return frozenset(
            item.strip().upper() for item in value.split(',') if item.strip()
        )

    def _validate(self):
        """Validate configuration values."""
        if self.cache_ttl_hours <= 0:
            raise ValueError(
                f"CACHE_TTL_HOURS must be positive, got {self.cache_ttl_hours}"
            )

        if self.default_window_days < 1:
            raise ValueError(
                f"DEFAULT_WINDOW_DAYS must be at least 1, got {self.default_window_days}"
            )

        unknown = self.deferred_grouping_dimensions - self.VALID_GROUPING_DIMENSIONS
        if unknown:
            raise ValueError(
                f"Invalid DEFERRED_GROUPING_DIMENSIONS: {sorted(unknown)}. "
                f"Must be drawn from {sorted(self.VALID_GROUPING_DIMENSIONS)}"
            )

        if self.billing_max_retries < 0:
            raise ValueError(
                f"BILLING_MAX_RETRIES must be non-negative, got {self.billing_max_retries}"
            )

        valid_log_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        if self.log_level.upper() not in valid_log_levels:
            raise ValueError(
                f"Invalid LOG_LEVEL: {self.log_level}. "
                f"Must be one of {valid_log_levels}"
            )


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get global settings instance (singleton pattern).

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
