"""
Parsed cost query intent.

A ParsedIntent is the structured form of a user's cost question, produced
once at the translation boundary. Everything downstream branches on the
closed IntentType enumeration and never re-reads free text.
"""
from dataclasses import dataclass, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional

from ..utils.validators import ValidationError


class IntentType(Enum):
    """Kinds of cost query the system answers."""

    MONTHLY_BILLING = 'monthly-billing'
    DAILY_BILLING = 'daily-billing'
    RESOURCE_BREAKDOWN = 'resource-breakdown'
    SCHEDULED_REPORT = 'scheduled-report'
    PERIOD_COMPARISON = 'period-comparison'
    ANOMALY_REPORT = 'anomaly-report'

    @property
    def is_billing(self) -> bool:
        """True for intents answered with a cost report."""
        return self in (
            IntentType.MONTHLY_BILLING,
            IntentType.DAILY_BILLING,
            IntentType.RESOURCE_BREAKDOWN,
            IntentType.PERIOD_COMPARISON,
        )

    @classmethod
    def parse(cls, value: Any) -> 'IntentType':
        """
        Map a translator tag onto the enumeration.

        Accepts the canonical tags plus the short names the translation
        model has been observed to emit.

        Args:
            value: Raw intent tag

        Returns:
            Matching IntentType

        Raises:
            ValidationError: If the tag is missing or unknown
        """
        if not isinstance(value, str) or not value.strip():
            raise ValidationError('intent is required', field='intent')

        normalized = '-'.join(value.strip().lower().replace('_', ' ').split())
        for member in cls:
            if member.value == normalized:
                return member

        alias = INTENT_ALIASES.get(normalized)
        if alias is None:
            raise ValidationError(f'Unsupported intent: {value}', field='intent')
        return alias


INTENT_ALIASES = {
    'monthly': IntentType.MONTHLY_BILLING,
    'monthly-cost': IntentType.MONTHLY_BILLING,
    'daily': IntentType.DAILY_BILLING,
    'daily-cost': IntentType.DAILY_BILLING,
    'resource': IntentType.RESOURCE_BREAKDOWN,
    'resource-level-breakdown': IntentType.RESOURCE_BREAKDOWN,
    'scheduled': IntentType.SCHEDULED_REPORT,
    'scheduled-cost-report': IntentType.SCHEDULED_REPORT,
    'compare-months': IntentType.PERIOD_COMPARISON,
    'comparison': IntentType.PERIOD_COMPARISON,
    'anomaly': IntentType.ANOMALY_REPORT,
    'incident': IntentType.ANOMALY_REPORT,
}


class Granularity(Enum):
    """Time bucket size of billing records."""

    DAILY = 'DAILY'
    MONTHLY = 'MONTHLY'

    @classmethod
    def parse(cls, value: Any) -> 'Granularity':
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        raise ValidationError(
            f'granularity must be one of DAILY, MONTHLY (got {value!r})',
            field='granularity'
        )


def parse_iso_date(value: Any, field: str) -> date:
    """
    Parse a calendar date, tolerating a trailing time component.

    Args:
        value: 'YYYY-MM-DD' string (or date/datetime)
        field: Field name for error messages

    Returns:
        Parsed date

    Raises:
        ValidationError: If the value is not a valid date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            pass
    raise ValidationError(f'{field} must be an ISO date (YYYY-MM-DD)', field=field)


@dataclass(frozen=True)
class DateRange:
    """
    Half-open calendar range [start, end).

    Attributes:
        start: First day included
        end: First day excluded
    """

    start: date
    end: date

    @classmethod
    def from_dict(cls, data: Any, field: str) -> 'DateRange':
        if not isinstance(data, dict):
            raise ValidationError(f'{field} must be an object with start and end', field=field)
        return cls(
            start=parse_iso_date(data.get('start'), f'{field}.start'),
            end=parse_iso_date(data.get('end'), f'{field}.end'),
        )

    def to_dict(self) -> Dict[str, str]:
        return {'start': self.start.isoformat(), 'end': self.end.isoformat()}


@dataclass(frozen=True)
class ParsedIntent:
    """
    Structured cost query.

    Attributes:
        intent: Kind of query
        days: Trailing window length in days
        start_date: Explicit window start
        end_date: Explicit window end (exclusive)
        period1: First period of a comparison
        period2: Second period of a comparison
        cron_expression: Schedule for scheduled-report
        special_requirements: Free text that shapes the narrative
        granularity: Requested record granularity
    """

    intent: IntentType
    days: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    period1: Optional[DateRange] = None
    period2: Optional[DateRange] = None
    cron_expression: Optional[str] = None
    special_requirements: Optional[str] = None
    granularity: Optional[Granularity] = None

    @classmethod
    def from_dict(cls, data: Any) -> 'ParsedIntent':
        """
        Build a ParsedIntent from translator (or ledger) JSON.

        Args:
            data: Dictionary using camelCase field names

        Returns:
            ParsedIntent instance

        Raises:
            ValidationError: If any field is malformed
        """
        if not isinstance(data, dict):
            raise ValidationError('query must be a JSON object', field='query')

        days = data.get('days')
        if days is not None:
            days = _parse_days(days)

        start_date = data.get('startDate')
        end_date = data.get('endDate')
        period1 = data.get('period1')
        period2 = data.get('period2')
        granularity = data.get('granularity')
        cron_expression = data.get('cronExpression')
        special_requirements = data.get('specialRequirements')

        if special_requirements is not None and not isinstance(special_requirements, str):
            special_requirements = str(special_requirements)

        return cls(
            intent=IntentType.parse(data.get('intent')),
            days=days,
            start_date=parse_iso_date(start_date, 'startDate') if start_date else None,
            end_date=parse_iso_date(end_date, 'endDate') if end_date else None,
            period1=DateRange.from_dict(period1, 'period1') if period1 else None,
            period2=DateRange.from_dict(period2, 'period2') if period2 else None,
            cron_expression=cron_expression.strip() if isinstance(cron_expression, str) and cron_expression.strip() else None,
            special_requirements=special_requirements,
            granularity=Granularity.parse(granularity) if granularity else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialize to camelCase JSON-ready dictionary.

        Fields that are None are omitted; an empty specialRequirements
        string is kept.

        Returns:
            Dictionary representation
        """
        data: Dict[str, Any] = {'intent': self.intent.value}
        if self.days is not None:
            data['days'] = self.days
        if self.start_date is not None:
            data['startDate'] = self.start_date.isoformat()
        if self.end_date is not None:
            data['endDate'] = self.end_date.isoformat()
        if self.period1 is not None:
            data['period1'] = self.period1.to_dict()
        if self.period2 is not None:
            data['period2'] = self.period2.to_dict()
        if self.cron_expression is not None:
            data['cronExpression'] = self.cron_expression
        if self.special_requirements is not None:
            data['specialRequirements'] = self.special_requirements
        if self.granularity is not None:
            data['granularity'] = self.granularity.value
        return data

    def with_intent(self, intent: IntentType) -> 'ParsedIntent':
        """Return a copy answering a different intent with the same window."""
        return replace(self, intent=intent)


def _parse_days(value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError('days must be a positive integer', field='days')
    try:
        days = int(value)
    except (TypeError, ValueError):
        raise ValidationError('days must be a positive integer', field='days')
    if days != value and not (isinstance(value, str) and value.strip().isdigit()):
        raise ValidationError('days must be a positive integer', field='days')
    if days < 1:
        raise ValidationError('days must be at least 1', field='days')
    return days
