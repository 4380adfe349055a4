"""
Report production pipeline: fetch, narrate, render, store, cache.

Shared by the synchronous path of the query engine and by the deferred
processor, so both produce and cache reports the same way.
"""
import logging
import time
from typing import Any, Dict, Optional, Tuple

from ..models.cache_entry import CacheEntry
from ..models.intent import IntentType
from ..models.query_plan import QueryPlan
from .report_cache import ReportCache

logger = logging.getLogger(__name__)

REPORT_TITLES = {
    IntentType.MONTHLY_BILLING: 'AWS Monthly Cost Report',
    IntentType.DAILY_BILLING: 'AWS Cost Report',
    IntentType.RESOURCE_BREAKDOWN: 'AWS Resource Cost Report',
    IntentType.PERIOD_COMPARISON: 'AWS Cost Comparison Report',
}


class ReportBuilder:
    """
    Produces a report for a plan and records it in the cache.

    Collaborator failures propagate as TransientBackendError subclasses;
    cache write failures never do.
    """

    def __init__(
        self,
        billing_source,
        narrative_generator,
        renderer,
        artifact_store,
        cache: ReportCache,
        metrics=None
    ):
        """
        Args:
            billing_source: CostExplorerDataSource or compatible
            narrative_generator: NarrativeGenerator
            renderer: PdfReportRenderer or compatible
            artifact_store: S3ArtifactStore or compatible
            cache: ReportCache
            metrics: Optional MetricsPublisher
        """
        self.billing_source = billing_source
        self.narrative_generator = narrative_generator
        self.renderer = renderer
        self.artifact_store = artifact_store
        self.cache = cache
        self.metrics = metrics

    def fetch(self, plan: QueryPlan) -> Dict[str, Any]:
        """
        Retrieve the billing data a plan describes.

        Raises:
            BillingDataError: If retrieval fails
        """
        if plan.is_comparison:
            return self.billing_source.fetch_comparison(
                baseline=plan.comparison.baseline,
                comparison=plan.comparison.comparison,
                metric=plan.metric,
                granularity=plan.granularity.value,
                group_by=plan.grouping_dimension,
            )
        return self.billing_source.fetch(
            start=plan.window.start.isoformat(),
            end=plan.window.end.isoformat(),
            granularity=plan.granularity.value,
            group_by=plan.grouping_dimension,
        )

    def build(
        self,
        plan: QueryPlan,
        original_command: Optional[str] = None,
        cached: Optional[CacheEntry] = None,
        artifact_name: Optional[str] = None
    ) -> Tuple[str, str]:
        """
        Produce the report for a plan.

        Raw data from a fresh cache entry is reused; otherwise it is
        fetched and cached on its own first, so a later failure still
        spares the next request a backend call.

        Args:
            plan: Resolved plan
            original_command: User's question, used as narrative focus
            cached: Fresh cache entry without an artifact, if any
            artifact_name: Object name for the stored report

        Returns:
            (artifact_url, summary)

        Raises:
            TransientBackendError: If a collaborator fails
        """
        started = time.time()

        if cached is not None:
            raw_data = cached.raw_data
            logger.info(f"Reusing cached billing data for {plan.cache_key}")
        else:
            raw_data = self.fetch(plan)
            self.cache.store(plan.cache_key, raw_data)

        summary = self.narrative_generator.summarize(plan, raw_data, original_command)
        document = self.renderer.render(
            summary,
            raw_data,
            title=REPORT_TITLES.get(plan.intent.intent, 'AWS Cost Report')
        )
        artifact_url = self.artifact_store.put(document, artifact_name)
        self.cache.store(plan.cache_key, raw_data, artifact_url=artifact_url, summary=summary)

        duration_ms = (time.time() - started) * 1000
        if self.metrics is not None:
            self.metrics.emit_generation_latency(duration_ms, plan.intent.intent.value)
        logger.info(f"Generated report {artifact_url} in {duration_ms:.0f}ms")
        return artifact_url, summary
