"""
Resolved query plan.
"""
from dataclasses import dataclass
from typing import Optional

from .intent import DateRange, Granularity, ParsedIntent


@dataclass(frozen=True)
class ComparisonWindow:
    """
    Ordered pair of full-month periods.

    baseline.start is never after comparison.start, so the backend's
    comparison-minus-baseline deltas carry the right sign.
    """

    baseline: DateRange
    comparison: DateRange


@dataclass(frozen=True)
class QueryPlan:
    """
    Everything needed to answer a billing intent.

    Exactly one of window and comparison is set.

    Attributes:
        intent: Parsed intent the plan was built from
        grouping_dimension: Cost Explorer dimension to group by
        granularity: Record granularity
        cache_key: Canonical cache key
        deferred: True when the report must be produced asynchronously
        window: Single-period range
        comparison: Baseline and comparison ranges
        metric: Cost metric for comparisons
    """

    intent: ParsedIntent
    grouping_dimension: str
    granularity: Granularity
    cache_key: str
    deferred: bool
    window: Optional[DateRange] = None
    comparison: Optional[ComparisonWindow] = None
    metric: Optional[str] = None

    @property
    def is_comparison(self) -> bool:
        return self.comparison is not None

    def describe_period(self) -> str:
        """Human readable period, used in prompts and titles."""
        if self.comparison is not None:
            return (
                f"{self.comparison.baseline.start.isoformat()} to "
                f"{self.comparison.baseline.end.isoformat()} vs "
                f"{self.comparison.comparison.start.isoformat()} to "
                f"{self.comparison.comparison.end.isoformat()}"
            )
        return f"{self.window.start.isoformat()} to {self.window.end.isoformat()}"
