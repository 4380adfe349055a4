"""
Configuration for the cost reporting functions.
"""

from .settings import Settings, get_settings, reset_settings
from .table_names import (
    REPORT_REQUESTS_TABLE_NAME,
    COST_CACHE_TABLE_NAME,
    get_table_name,
)

__all__ = [
    'Settings',
    'get_settings',
    'reset_settings',
    'REPORT_REQUESTS_TABLE_NAME',
    'COST_CACHE_TABLE_NAME',
    'get_table_name',
]
