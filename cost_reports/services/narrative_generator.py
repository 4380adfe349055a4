"""
Narrative generation for cost reports.

Builds the analyst prompts from Cost Explorer payloads and asks the
language model for a plain-text report.
"""
import json
import logging
from typing import Any, Dict, List, Optional

from ..exceptions import NarrativeGenerationError
from ..models.query_plan import QueryPlan

logger = logging.getLogger(__name__)

SIGNIFICANT_CHANGE = 0.01
TOP_CHANGES = 10

REPORT_INSTRUCTIONS = """As a cloud cost analyst, review the AWS Cost Explorer data and generate a summary:
- {focus}
- Use clear section headings (e.g., "AWS Cost Report", "Top Services by Spend", "Trends and Anomalies" and "Summary").
- Use bullet points for notable trends or anomalies.
- Do NOT use markdown, emojis, or any special formatting.
- Keep the report clear and professional, using ONLY plain text.
- Include calculated total cost: ${total:.2f}."""

COMPARISON_INSTRUCTIONS = """Generate a professional analysis with these sections:
- Use clear section headings (e.g., "Month-to-Month Cost Comparison", "Key Service Changes", "Cost Trends Analysis", "Summary and Recommendations")
- {focus}
- Focus on the most significant cost changes and their business impact
- Identify the largest increases and decreases
- Use bullet points for key findings
- Do NOT use markdown, emojis, or any special formatting
- Keep the report clear and professional, using ONLY plain text
- Provide actionable insights based on the cost trends"""


def _amount(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def calculate_total_cost(raw_data: Dict[str, Any], metric: str = 'UnblendedCost') -> float:
    """
    Sum the metric over every group of every result period.

    Periods without groups fall back to their Total.
    """
    total = 0.0
    for period in raw_data.get('ResultsByTime', []):
        groups = period.get('Groups') or []
        if groups:
            for group in groups:
                total += _amount(group.get('Metrics', {}).get(metric, {}).get('Amount'))
        else:
            total += _amount(period.get('Total', {}).get(metric, {}).get('Amount'))
    return total


def comparison_totals(raw_data: Dict[str, Any], metric: str = 'UnblendedCost') -> Dict[str, float]:
    totals = raw_data.get('TotalCostAndUsage', {}).get(metric, {})
    return {
        'baseline': _amount(totals.get('BaselineTimePeriodAmount')),
        'comparison': _amount(totals.get('ComparisonTimePeriodAmount')),
        'difference': _amount(totals.get('Difference')),
    }


def percent_change(baseline: float, difference: float) -> Optional[float]:
    if baseline <= 0:
        return None
    return difference / baseline * 100


def top_comparison_changes(
    raw_data: Dict[str, Any],
    metric: str = 'UnblendedCost',
    limit: int = TOP_CHANGES
) -> List[Dict[str, Any]]:
    """
    Largest per-group changes between the two periods.

    Args:
        raw_data: Comparison payload
        metric: Compared metric
        limit: Maximum number of groups

    Returns:
        Groups whose absolute difference exceeds one cent, largest first
    """
    changes = []
    for entry in raw_data.get('CostAndUsageComparisons', []):
        metrics = entry.get('Metrics', {}).get(metric, {})
        difference = _amount(metrics.get('Difference'))
        if abs(difference) <= SIGNIFICANT_CHANGE:
            continue

        values = entry.get('CostAndUsageSelector', {}).get('Dimensions', {}).get('Values') or []
        baseline = _amount(metrics.get('BaselineTimePeriodAmount'))
        changes.append({
            'name': values[0] if values else 'Unknown',
            'baseline': baseline,
            'comparison': _amount(metrics.get('ComparisonTimePeriodAmount')),
            'difference': difference,
            'percent_change': percent_change(baseline, difference),
        })

    changes.sort(key=lambda change: abs(change['difference']), reverse=True)
    return changes[:limit]


def _format_percent(value: Optional[float]) -> str:
    return 'N/A' if value is None else f'{value:.1f}%'


def _focus_line(focus: Optional[str]) -> str:
    if focus:
        return f'The user asked: "{focus}". Focus the report on that request.'
    return 'Cover overall spend and the most expensive items.'


def build_cost_summary_prompt(
    raw_data: Dict[str, Any],
    granularity: str,
    focus: Optional[str] = None
) -> str:
    """
    Prompt for a single-period report.

    Args:
        raw_data: Cost and usage payload
        granularity: DAILY or MONTHLY
        focus: Special requirements or the original question

    Returns:
        Prompt text
    """
    instructions = REPORT_INSTRUCTIONS.format(
        focus=_focus_line(focus),
        total=calculate_total_cost(raw_data)
    )
    if granularity == 'DAILY':
        heading = 'Analyze the daily AWS costs and the top items by spend.'
    elif granularity == 'MONTHLY':
        heading = 'Analyze the monthly AWS costs.'
    else:
        heading = 'Summarize AWS costs as per user request.'

    data = json.dumps(raw_data.get('ResultsByTime', []), indent=2, default=str)
    return f"{heading}\n{instructions}\nData:\n{data}\n"


def build_comparison_prompt(plan: QueryPlan, raw_data: Dict[str, Any], focus: Optional[str] = None) -> str:
    """
    Prompt for a two-period comparison.

    Args:
        plan: Comparison plan (baseline is the earlier month)
        raw_data: Comparison payload
        focus: Special requirements or the original question

    Returns:
        Prompt text
    """
    metric = plan.metric or 'UnblendedCost'
    totals = comparison_totals(raw_data, metric)
    overall = percent_change(totals['baseline'], totals['difference'])

    lines = []
    for change in top_comparison_changes(raw_data, metric):
        sign = '+' if change['difference'] >= 0 else '-'
        lines.append(
            f"- {change['name']}: Baseline ${change['baseline']:.2f}, "
            f"Comparison ${change['comparison']:.2f}, "
            f"Difference {sign}${abs(change['difference']):.2f} "
            f"({_format_percent(change['percent_change'])} change)"
        )
    breakdown = '\n'.join(lines) or '- No change above $0.01'

    total_sign = '+' if totals['difference'] >= 0 else '-'
    baseline = plan.comparison.baseline
    comparison = plan.comparison.comparison
    return (
        "As a cloud cost analyst, compare AWS costs between these two periods:\n"
        f"Baseline Period: {baseline.start.isoformat()} to {baseline.end.isoformat()}\n"
        f"Comparison Period: {comparison.start.isoformat()} to {comparison.end.isoformat()}\n"
        "\n"
        "TOTAL COST SUMMARY:\n"
        f"- Baseline Period Total: ${totals['baseline']:.2f}\n"
        f"- Comparison Period Total: ${totals['comparison']:.2f}\n"
        f"- Total Difference: {total_sign}${abs(totals['difference']):.2f}\n"
        f"- Overall Change: {_format_percent(overall)}\n"
        "\n"
        f"TOP CHANGES BY {plan.grouping_dimension}:\n"
        f"{breakdown}\n"
        "\n"
        f"{COMPARISON_INSTRUCTIONS.format(focus=_focus_line(focus))}\n"
    )


class NarrativeGenerator:
    """
    Turns billing data into a plain-text report.

    Any non-empty reply counts as success, including the model client's
    placeholder for unparseable replies.
    """

    def __init__(self, llm_client):
        """
        Args:
            llm_client: Object with invoke(prompt) -> str (BedrockClient)
        """
        self.llm = llm_client

    def summarize(
        self,
        plan: QueryPlan,
        raw_data: Dict[str, Any],
        original_command: Optional[str] = None
    ) -> str:
        """
        Generate the narrative for a plan's data.

        Args:
            plan: Resolved query plan
            raw_data: Billing payload for the plan
            original_command: Free text the user sent, if any

        Returns:
            Narrative text

        Raises:
            NarrativeGenerationError: If the model fails or returns nothing
        """
        focus = plan.intent.special_requirements or original_command or None
        if plan.is_comparison:
            prompt = build_comparison_prompt(plan, raw_data, focus)
        else:
            prompt = build_cost_summary_prompt(raw_data, plan.granularity.value, focus)

        logger.debug(f"Narrative prompt: ~{len(prompt) // 4} tokens")
        text = self.llm.invoke(prompt)

        if not text or not text.strip():
            raise NarrativeGenerationError('Narrative model returned an empty reply')
        return text.strip()
