"""
Cost Explorer client for billing data retrieval.
"""
import logging
from typing import Any, Dict, List, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..data_access.exceptions import RetryableError
from ..exceptions import BillingDataError
from ..models.intent import DateRange
from ..utils.retry import retry_operation

logger = logging.getLogger(__name__)

DEFAULT_METRIC = 'UnblendedCost'

# Credits and refunds distort usage reports
DEFAULT_FILTER = {
    'Not': {
        'Dimensions': {
            'Key': 'RECORD_TYPE',
            'Values': ['Credit', 'Refund'],
        }
    }
}

THROTTLING_ERROR_CODES = {
    'ThrottlingException',
    'LimitExceededException',
    'RequestLimitExceeded',
    'ServiceUnavailable',
    'InternalServerError',
}

RESOURCE_DIMENSION = 'RESOURCE_ID'


class CostExplorerDataSource:
    """
    Billing Data Source backed by AWS Cost Explorer.

    Follows NextPageToken pagination and merges pages into one payload.
    Throttling is retried with backoff; every other failure, and
    throttling that outlasts the retries, raises BillingDataError.
    """

    def __init__(
        self,
        region: str = 'us-east-1',
        ce_client=None,
        max_retries: int = 2,
        base_delay: float = 1.0
    ):
        """
        Initialize Cost Explorer data source.

        Args:
            region: AWS region of the Cost Explorer endpoint
            ce_client: Optional boto3 Cost Explorer client (for testing)
            max_retries: Retries for throttled calls
            base_delay: Initial backoff delay in seconds
        """
        self.client = ce_client or boto3.client('ce', region_name=region)
        self.max_retries = max_retries
        self.base_delay = base_delay

    def fetch(
        self,
        start: str,
        end: str,
        granularity: str,
        group_by: str,
        filter: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Get cost and usage grouped by one dimension.

        Args:
            start: Window start (YYYY-MM-DD)
            end: Window end, exclusive (YYYY-MM-DD)
            granularity: DAILY or MONTHLY
            group_by: Grouping dimension (SERVICE, RESOURCE_ID, ...)
            filter: Cost Explorer filter expression (defaults to excluding
                credits and refunds)

        Returns:
            Dict with merged ResultsByTime plus the request parameters

        Raises:
            BillingDataError: If retrieval fails
        """
        operation = (
            'get_cost_and_usage_with_resources'
            if group_by == RESOURCE_DIMENSION else 'get_cost_and_usage'
        )
        params = {
            'TimePeriod': {'Start': start, 'End': end},
            'Granularity': granularity,
            'Metrics': [DEFAULT_METRIC],
            'GroupBy': [{'Type': 'DIMENSION', 'Key': group_by}],
            'Filter': filter or DEFAULT_FILTER,
        }

        pages = self._paginate(operation, params)
        results: List[Dict[str, Any]] = []
        for page in pages:
            results.extend(page.get('ResultsByTime', []))

        logger.info(
            f"Fetched {len(results)} result periods from {operation} "
            f"for {start} to {end} grouped by {group_by}"
        )
        return {
            'TimePeriod': {'Start': start, 'End': end},
            'Granularity': granularity,
            'GroupBy': group_by,
            'ResultsByTime': results,
        }

    def fetch_comparison(
        self,
        baseline: DateRange,
        comparison: DateRange,
        metric: str,
        granularity: str,
        group_by: str,
        filter: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Compare cost between a baseline and a comparison period.

        Args:
            baseline: Earlier period
            comparison: Later period
            metric: Metric to compare (e.g. UnblendedCost)
            granularity: MONTHLY (Cost Explorer only compares whole months)
            group_by: Grouping dimension
            filter: Cost Explorer filter expression

        Returns:
            Dict with merged CostAndUsageComparisons and TotalCostAndUsage

        Raises:
            BillingDataError: If retrieval fails
        """
        params = {
            'BaselineTimePeriod': {
                'Start': baseline.start.isoformat(),
                'End': baseline.end.isoformat(),
            },
            'ComparisonTimePeriod': {
                'Start': comparison.start.isoformat(),
                'End': comparison.end.isoformat(),
            },
            'MetricForComparison': metric,
            'Granularity': granularity,
            'GroupBy': [{'Type': 'DIMENSION', 'Key': group_by}],
            'Filter': filter or DEFAULT_FILTER,
        }

        comparisons: List[Dict[str, Any]] = []
        totals: Dict[str, Any] = {}
        for page in self._paginate('get_cost_and_usage_comparisons', params):
            comparisons.extend(page.get('CostAndUsageComparisons', []))
            totals.update(page.get('TotalCostAndUsage', {}))

        logger.info(
            f"Fetched {len(comparisons)} comparison groups for "
            f"{baseline.start} vs {comparison.start}"
        )
        return {
            'BaselineTimePeriod': params['BaselineTimePeriod'],
            'ComparisonTimePeriod': params['ComparisonTimePeriod'],
            'MetricForComparison': metric,
            'GroupBy': group_by,
            'CostAndUsageComparisons': comparisons,
            'TotalCostAndUsage': totals,
        }

    def _paginate(self, operation: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        pages = []
        token = None
        while True:
            request = dict(params)
            if token:
                request['NextPageToken'] = token
            page = self._call(operation, request)
            pages.append(page)
            token = page.get('NextPageToken')
            if not token:
                return pages

    def _call(self, operation: str, params: Dict[str, Any]) -> Dict[str, Any]:
        method = getattr(self.client, operation)

        def attempt():
            try:
                return method(**params)
            except ClientError as e:
                error = e.response.get('Error', {})
                code = error.get('Code', '')
                if code in THROTTLING_ERROR_CODES:
                    raise RetryableError(f"{operation} throttled: {code}") from e
                raise BillingDataError(
                    f"{operation} failed: {code}: {error.get('Message', str(e))}"
                ) from e
            except BotoCoreError as e:
                raise BillingDataError(f"{operation} failed: {e}") from e

        try:
            return retry_operation(
                attempt,
                max_retries=self.max_retries,
                base_delay=self.base_delay
            )
        except RetryableError as e:
            raise BillingDataError(f"Cost Explorer unavailable: {e}") from e
