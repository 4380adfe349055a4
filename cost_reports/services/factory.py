"""
Process-wide collaborators.

Each object is created on first use and reused by every invocation the
Lambda worker serves. They are never mutated after construction.
"""
from typing import Optional

from ..config import get_settings
from ..data_access import CostCacheRepository, DynamoDBClient, ReportRequestsRepository
from ..utils.metrics import get_metrics_publisher
from .artifact_store import S3ArtifactStore
from .bedrock_client import BedrockClient
from .billing_data_source import CostExplorerDataSource
from .deferred_report_processor import DeferredReportProcessor
from .document_renderer import PdfReportRenderer
from .incident_reporter import IncidentReporter
from .intent_translator import IntentTranslator
from .narrative_generator import NarrativeGenerator
from .notification_channel import SesNotificationChannel
from .query_planner import QueryPlanner
from .query_resolution_engine import QueryResolutionEngine
from .report_builder import ReportBuilder
from .report_cache import ReportCache
from .report_scheduler import ReportScheduler

_dynamodb_client: Optional[DynamoDBClient] = None
_report_cache: Optional[ReportCache] = None
_ledger: Optional[ReportRequestsRepository] = None
_report_builder: Optional[ReportBuilder] = None
_engine: Optional[QueryResolutionEngine] = None
_processor: Optional[DeferredReportProcessor] = None
_translator: Optional[IntentTranslator] = None
_scheduler: Optional[ReportScheduler] = None
_incident_reporter: Optional[IncidentReporter] = None


def get_dynamodb_client() -> DynamoDBClient:
    global _dynamodb_client
    if _dynamodb_client is None:
        _dynamodb_client = DynamoDBClient(region=get_settings().aws_region)
    return _dynamodb_client


def get_report_cache() -> ReportCache:
    global _report_cache
    if _report_cache is None:
        settings = get_settings()
        _report_cache = ReportCache(
            repository=CostCacheRepository(settings.cost_cache_table, get_dynamodb_client()),
            ttl_seconds=settings.cache_ttl_seconds,
            metrics=get_metrics_publisher(),
        )
    return _report_cache


def get_ledger() -> ReportRequestsRepository:
    global _ledger
    if _ledger is None:
        _ledger = ReportRequestsRepository(
            get_settings().report_requests_table,
            get_dynamodb_client()
        )
    return _ledger


def get_report_builder() -> ReportBuilder:
    global _report_builder
    if _report_builder is None:
        settings = get_settings()
        _report_builder = ReportBuilder(
            billing_source=CostExplorerDataSource(
                region=settings.aws_region,
                max_retries=settings.billing_max_retries,
            ),
            narrative_generator=NarrativeGenerator(
                BedrockClient(
                    model_id=settings.narrative_model_id,
                    region=settings.bedrock_region,
                )
            ),
            renderer=PdfReportRenderer(),
            artifact_store=S3ArtifactStore(
                bucket=settings.reports_bucket,
                prefix=settings.reports_prefix,
                base_url=settings.artifact_base_url,
                region=settings.aws_region,
            ),
            cache=get_report_cache(),
            metrics=get_metrics_publisher(),
        )
    return _report_builder


def get_resolution_engine() -> QueryResolutionEngine:
    global _engine
    if _engine is None:
        _engine = QueryResolutionEngine(
            planner=QueryPlanner.from_settings(get_settings()),
            cache=get_report_cache(),
            ledger=get_ledger(),
            builder=get_report_builder(),
            metrics=get_metrics_publisher(),
        )
    return _engine


def get_deferred_processor() -> DeferredReportProcessor:
    global _processor
    if _processor is None:
        settings = get_settings()
        _processor = DeferredReportProcessor(
            planner=QueryPlanner.from_settings(settings),
            cache=get_report_cache(),
            ledger=get_ledger(),
            builder=get_report_builder(),
            notifier=SesNotificationChannel(
                sender=settings.report_sender_email,
                region=settings.aws_region,
            ),
            metrics=get_metrics_publisher(),
        )
    return _processor


def get_intent_translator() -> IntentTranslator:
    global _translator
    if _translator is None:
        settings = get_settings()
        _translator = IntentTranslator(
            BedrockClient(
                model_id=settings.translator_model_id,
                region=settings.bedrock_region,
                max_tokens=1024,
            )
        )
    return _translator


def get_report_scheduler() -> ReportScheduler:
    global _scheduler
    if _scheduler is None:
        settings = get_settings()
        _scheduler = ReportScheduler(
            target_arn=settings.scheduled_report_function_arn,
            region=settings.aws_region,
        )
    return _scheduler


def get_incident_reporter() -> IncidentReporter:
    global _incident_reporter
    if _incident_reporter is None:
        _incident_reporter = IncidentReporter(region=get_settings().aws_region)
    return _incident_reporter


def reset_factory() -> None:
    """Drop every cached collaborator (tests and configuration changes)."""
    global _dynamodb_client, _report_cache, _ledger, _report_builder
    global _engine, _processor, _translator, _scheduler, _incident_reporter
    _dynamodb_client = None
    _report_cache = None
    _ledger = None
    _report_builder = None
    _engine = None
    _processor = None
    _translator = None
    _scheduler = None
    _incident_reporter = None
