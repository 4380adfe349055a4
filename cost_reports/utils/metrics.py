"""
CloudWatch metrics utility for emitting custom metrics.

Provides methods for emitting:
- Cache lookup results (hit, miss, stale, error)
- Resolution outcomes of the query engine
- Deferred report outcomes
- Report generation latency
"""
import logging
import os
from datetime import datetime, timezone
from typing import Dict, List, Optional

import boto3

logger = logging.getLogger(__name__)


class MetricsPublisher:
    """
    CloudWatch metrics publisher for cost reporting metrics.
    """

    def __init__(self, namespace: str = 'CostReporting', cloudwatch_client=None):
        """
        Initialize metrics publisher.

        Args:
            namespace: CloudWatch metrics namespace
            cloudwatch_client: Optional boto3 CloudWatch client (for testing)
        """
        self.namespace = namespace
        self.cloudwatch = cloudwatch_client or boto3.client(
            'cloudwatch', region_name=os.environ.get('AWS_REGION', 'us-east-1')
        )

    def put_latency_metric(
        self,
        metric_name: str,
        value: float,
        dimensions: Optional[List[Dict[str, str]]] = None
    ):
        """
        Emit latency metric in milliseconds.

        Args:
            metric_name: Metric name (e.g., 'ReportGenerationLatency')
            value: Latency value in milliseconds
            dimensions: Metric dimensions
        """
        self._put_metric(
            metric_name=metric_name,
            value=value,
            unit='Milliseconds',
            dimensions=dimensions or []
        )

    def put_count_metric(
        self,
        metric_name: str,
        value: int = 1,
        dimensions: Optional[List[Dict[str, str]]] = None
    ):
        """
        Emit count metric.

        Args:
            metric_name: Metric name (e.g., 'CacheLookup')
            value: Count value (default: 1)
            dimensions: Metric dimensions
        """
        self._put_metric(
            metric_name=metric_name,
            value=value,
            unit='Count',
            dimensions=dimensions or []
        )

    def _put_metric(
        self,
        metric_name: str,
        value: float,
        unit: str,
        dimensions: List[Dict[str, str]]
    ):
        try:
            metric_data = {
                'MetricName': metric_name,
                'Value': value,
                'Unit': unit,
                'Timestamp': datetime.now(timezone.utc)
            }

            if dimensions:
                metric_data['Dimensions'] = dimensions

            self.cloudwatch.put_metric_data(
                Namespace=self.namespace,
                MetricData=[metric_data]
            )
        except Exception as e:
            # Metrics never fail the request
            logger.warning(f"Failed to emit metric {metric_name}: {e}")

    def emit_cache_lookup(self, result: str):
        """
        Emit cache lookup result.

        Args:
            result: HIT, MISS, STALE or ERROR
        """
        self.put_count_metric(
            metric_name='CacheLookup',
            dimensions=[{'Name': 'Result', 'Value': result}]
        )

    def emit_resolution(self, outcome: str):
        """
        Emit query resolution outcome.

        Args:
            outcome: READY, ACCEPTED, GENERATED or FAILED
        """
        self.put_count_metric(
            metric_name='ReportResolution',
            dimensions=[{'Name': 'Outcome', 'Value': outcome}]
        )

    def emit_deferred_outcome(self, outcome: str):
        """
        Emit deferred report outcome.

        Args:
            outcome: DELIVERED, DELIVERED_FROM_CACHE, FAILED or SKIPPED
        """
        self.put_count_metric(
            metric_name='DeferredReportOutcome',
            dimensions=[{'Name': 'Outcome', 'Value': outcome}]
        )

    def emit_generation_latency(self, duration_ms: float, intent: Optional[str] = None):
        """
        Emit report generation latency.

        Args:
            duration_ms: Duration in milliseconds
            intent: Intent tag (optional dimension)
        """
        dimensions = []
        if intent:
            dimensions.append({'Name': 'Intent', 'Value': intent})

        self.put_latency_metric(
            metric_name='ReportGenerationLatency',
            value=duration_ms,
            dimensions=dimensions
        )


# Global metrics publisher instance
_metrics_publisher: Optional[MetricsPublisher] = None


def get_metrics_publisher() -> MetricsPublisher:
    """
    Get global metrics publisher instance.

    Returns:
        MetricsPublisher instance
    """
    global _metrics_publisher
    if _metrics_publisher is None:
        _metrics_publisher = MetricsPublisher()
    return _metrics_publisher
