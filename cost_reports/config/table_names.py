"""
DynamoDB table name constants.

This module provides centralized table name constants so the query
handler, the deferred report processor and the scheduled report function
all read and write the same tables.
"""
import os
from typing import Optional

# Report request ledger (stream enabled, NEW_IMAGE)
REPORT_REQUESTS_TABLE_NAME = 'CostReportRequests'

# Cost Explorer result cache (TTL attribute: ttl)
COST_CACHE_TABLE_NAME = 'CostExplorerCache'

# Table name mapping for environment variable overrides
TABLE_NAME_ENV_VARS = {
    'REPORT_REQUESTS_TABLE_NAME': REPORT_REQUESTS_TABLE_NAME,
    'COST_CACHE_TABLE_NAME': COST_CACHE_TABLE_NAME,
}

# Names used by earlier deployments of the same tables
LEGACY_ENV_VARS = {
    'REPORT_REQUESTS_TABLE_NAME': 'REPORTS_DDB_TABLE',
    'COST_CACHE_TABLE_NAME': 'COST_EXPLORER_CACHE_TABLE',
}


def get_table_name(table_key: str, default: Optional[str] = None) -> str:
    """
    Get table name from environment variable or use default constant.

    Supports the current naming convention (with _NAME suffix), the same
    name without the suffix, and the variable names used by earlier
    deployments.

    Args:
        table_key: Environment variable key (e.g., 'COST_CACHE_TABLE_NAME')
        default: Default table name if no environment variable is set

    Returns:
        Table name from environment or default

    Example:
        >>> os.environ['COST_CACHE_TABLE_NAME'] = 'CostExplorerCache-dev'
        >>> get_table_name('COST_CACHE_TABLE_NAME')
        'CostExplorerCache-dev'
    """
    if default is None:
        default = TABLE_NAME_ENV_VARS.get(table_key, '')

    value = os.getenv(table_key)
    if value:
        return value

    value = os.getenv(table_key.replace('_TABLE_NAME', '_TABLE'))
    if value:
        return value

    legacy_key = LEGACY_ENV_VARS.get(table_key)
    if legacy_key:
        value = os.getenv(legacy_key)
        if value:
            return value

    return default
