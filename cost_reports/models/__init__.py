"""
Data models for cost query resolution.
"""
from .intent import (
    IntentType,
    Granularity,
    DateRange,
    ParsedIntent,
    parse_iso_date,
)
from .cache_entry import CacheEntry
from .report_request import (
    ReportRequest,
    ReportStatus,
    PENDING_MARKER,
    ERROR_MARKER,
)
from .query_plan import ComparisonWindow, QueryPlan
from .resolution import (
    Ready,
    Generated,
    Accepted,
    Failed,
    Scheduled,
    IncidentReport,
)

__all__ = [
    'IntentType',
    'Granularity',
    'DateRange',
    'ParsedIntent',
    'parse_iso_date',
    'CacheEntry',
    'ReportRequest',
    'ReportStatus',
    'PENDING_MARKER',
    'ERROR_MARKER',
    'ComparisonWindow',
    'QueryPlan',
    'Ready',
    'Generated',
    'Accepted',
    'Failed',
    'Scheduled',
    'IncidentReport',
]
