"""
Query planning: time windows, grouping, comparison normalization and
synchronous-versus-deferred routing.

The planner is pure; both the query engine and the deferred processor
build plans with it, which is what keeps their cache keys identical.
"""
from datetime import date, timedelta
from typing import FrozenSet, Iterable, Optional

from ..models.intent import DateRange, Granularity, IntentType, ParsedIntent
from ..models.query_plan import ComparisonWindow, QueryPlan
from ..utils.validators import ValidationError
from . import cache_key as keys

RESOURCE_DIMENSION = 'RESOURCE_ID'
SERVICE_DIMENSION = 'SERVICE'

DEFAULT_DEFERRED_DIMENSIONS = frozenset({RESOURCE_DIMENSION})


def first_of_month(day: date) -> date:
    return day.replace(day=1)


def first_of_next_month(day: date) -> date:
    if day.month == 12:
        return date(day.year + 1, 1, 1)
    return date(day.year, day.month + 1, 1)


def to_full_month(period: DateRange) -> DateRange:
    """
    Stretch a period to the calendar month its start falls in.

    Args:
        period: Any range

    Returns:
        [first of start month, first of next month)
    """
    return DateRange(
        start=first_of_month(period.start),
        end=first_of_next_month(period.start),
    )


def normalize_comparison(period1: DateRange, period2: DateRange) -> ComparisonWindow:
    """
    Normalize two periods to full months and order them chronologically.

    The result does not depend on argument order. Equal periods are kept
    as they are; the backend reports a zero delta for them.

    Args:
        period1: First period as given
        period2: Second period as given

    Returns:
        ComparisonWindow with the earlier month as baseline
    """
    first = to_full_month(period1)
    second = to_full_month(period2)
    if second.start < first.start:
        first, second = second, first
    return ComparisonWindow(baseline=first, comparison=second)


class QueryPlanner:
    """
    Turns a ParsedIntent into a QueryPlan.

    Args:
        deferred_grouping_dimensions: Dimensions that are always deferred
        default_window_days: Trailing window for intents without one
        comparison_metric: Cost metric compared between periods
    """

    def __init__(
        self,
        deferred_grouping_dimensions: Iterable[str] = DEFAULT_DEFERRED_DIMENSIONS,
        default_window_days: int = 7,
        comparison_metric: str = 'UnblendedCost'
    ):
        if default_window_days < 1:
            raise ValueError("default_window_days must be at least 1")
        self.deferred_grouping_dimensions: FrozenSet[str] = frozenset(
            dimension.upper() for dimension in deferred_grouping_dimensions
        )
        self.default_window_days = default_window_days
        self.comparison_metric = comparison_metric

    @classmethod
    def from_settings(cls, settings) -> 'QueryPlanner':
        return cls(
            deferred_grouping_dimensions=settings.deferred_grouping_dimensions,
            default_window_days=settings.default_window_days,
            comparison_metric=settings.comparison_metric,
        )

    def plan(self, intent: ParsedIntent, today: Optional[date] = None) -> QueryPlan:
        """
        Build the plan for a billing intent.

        Args:
            intent: Parsed intent
            today: Reference date for relative windows (defaults to today)

        Returns:
            QueryPlan

        Raises:
            ValidationError: If the intent is not a billing intent or its
                window fields are missing or inconsistent
        """
        if not intent.intent.is_billing:
            raise ValidationError(
                f'{intent.intent.value} does not produce a cost report',
                field='intent'
            )

        today = today or date.today()
        dimension = self.grouping_dimension(intent.intent)
        granularity = self.granularity(intent)
        deferred = dimension in self.deferred_grouping_dimensions

        if intent.intent is IntentType.PERIOD_COMPARISON:
            if intent.period1 is None or intent.period2 is None:
                raise ValidationError(
                    'period-comparison requires both period1 and period2',
                    field='period1' if intent.period1 is None else 'period2'
                )
            comparison = normalize_comparison(intent.period1, intent.period2)
            cache_key = keys.comparison_key(
                baseline_start=comparison.baseline.start,
                baseline_end=comparison.baseline.end,
                comparison_start=comparison.comparison.start,
                comparison_end=comparison.comparison.end,
                group_by=dimension,
                granularity=granularity.value,
                metric=self.comparison_metric,
                special_requirements=intent.special_requirements,
            )
            return QueryPlan(
                intent=intent,
                grouping_dimension=dimension,
                granularity=granularity,
                cache_key=cache_key,
                deferred=deferred,
                comparison=comparison,
                metric=self.comparison_metric,
            )

        window = self.resolve_window(intent, today)
        cache_key = keys.single_period_key(
            start=window.start,
            end=window.end,
            group_by=dimension,
            granularity=granularity.value,
            special_requirements=intent.special_requirements,
        )
        return QueryPlan(
            intent=intent,
            grouping_dimension=dimension,
            granularity=granularity,
            cache_key=cache_key,
            deferred=deferred,
            window=window,
        )

    def resolve_window(self, intent: ParsedIntent, today: date) -> DateRange:
        """
        Resolve the single-period window of an intent.

        Explicit dates win over days. End dates are exclusive.

        Raises:
            ValidationError: If only one explicit date is given or the
                range is empty
        """
        if intent.start_date is not None or intent.end_date is not None:
            if intent.start_date is None or intent.end_date is None:
                raise ValidationError(
                    'startDate and endDate must be given together',
                    field='startDate' if intent.start_date is None else 'endDate'
                )
            if intent.start_date >= intent.end_date:
                raise ValidationError(
                    'startDate must be before endDate',
                    field='startDate'
                )
            return DateRange(start=intent.start_date, end=intent.end_date)

        if intent.days is not None:
            if intent.days < 1:
                raise ValidationError('days must be at least 1', field='days')
            return DateRange(start=today - timedelta(days=intent.days), end=today)

        if intent.intent is IntentType.MONTHLY_BILLING:
            return DateRange(start=first_of_month(today), end=today + timedelta(days=1))

        return DateRange(
            start=today - timedelta(days=self.default_window_days),
            end=today
        )

    @staticmethod
    def grouping_dimension(intent_type: IntentType) -> str:
        if intent_type is IntentType.RESOURCE_BREAKDOWN:
            return RESOURCE_DIMENSION
        return SERVICE_DIMENSION

    @staticmethod
    def granularity(intent: ParsedIntent) -> Granularity:
        if intent.granularity is not None:
            return intent.granularity
        if intent.intent in (IntentType.MONTHLY_BILLING, IntentType.PERIOD_COMPARISON):
            return Granularity.MONTHLY
        return Granularity.DAILY
