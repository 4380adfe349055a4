"""
Services for cost query resolution and report delivery.
"""
from .query_planner import QueryPlanner, normalize_comparison, to_full_month
from .report_cache import ReportCache
from .report_builder import ReportBuilder
from .query_resolution_engine import QueryResolutionEngine
from .deferred_report_processor import DeferredReportProcessor

__all__ = [
    'QueryPlanner',
    'normalize_comparison',
    'to_full_month',
    'ReportCache',
    'ReportBuilder',
    'QueryResolutionEngine',
    'DeferredReportProcessor',
]
