"""
PDF rendering of cost reports with matplotlib.

The narrative is laid out as text pages; a final page charts the cost
per group (pie) or the change per group (horizontal bars) for
comparisons.
"""
import io
import logging
import textwrap
from collections import defaultdict
from typing import Any, Dict, List, Optional, Tuple

import matplotlib
matplotlib.use('Agg')
from matplotlib.backends.backend_pdf import PdfPages  # noqa: E402
from matplotlib.figure import Figure  # noqa: E402

from ..exceptions import RenderingError  # noqa: E402
from .narrative_generator import top_comparison_changes  # noqa: E402

logger = logging.getLogger(__name__)

PAGE_SIZE = (8.5, 11)
TOP_SLICES = 10
WRAP_WIDTH = 95
LINE_STEP = 0.018
HEADING_STEP = 0.032
TOP_MARGIN = 0.94
BOTTOM_MARGIN = 0.06

COLORS = [
    '#3366CC', '#DC3912', '#FF9900', '#109618', '#990099',
    '#0099C6', '#DD4477', '#66AA00', '#B82E2E', '#316395',
]
OTHER_COLOR = '#AAAAAA'


def extract_cost_breakdown(raw_data: Dict[str, Any], metric: str = 'UnblendedCost') -> List[Tuple[str, float]]:
    """
    Total cost per group across all result periods.

    Args:
        raw_data: Cost and usage payload
        metric: Metric to sum

    Returns:
        (group, cost) pairs with positive cost, most expensive first
    """
    totals: Dict[str, float] = defaultdict(float)
    for period in raw_data.get('ResultsByTime', []):
        for group in period.get('Groups') or []:
            keys = group.get('Keys') or ['Unknown']
            try:
                amount = float(group.get('Metrics', {}).get(metric, {}).get('Amount', 0))
            except (TypeError, ValueError):
                continue
            totals[keys[0]] += amount

    breakdown = [(name, cost) for name, cost in totals.items() if cost > 0]
    breakdown.sort(key=lambda item: (-item[1], item[0]))
    return breakdown


def top_slices(breakdown: List[Tuple[str, float]], limit: int = TOP_SLICES) -> List[Tuple[str, float]]:
    """Keep the largest slices and fold the rest into 'Other'."""
    if len(breakdown) <= limit:
        return list(breakdown)
    head = list(breakdown[:limit])
    head.append(('Other', sum(cost for _, cost in breakdown[limit:])))
    return head


def _is_heading(line: str) -> bool:
    if not line or line[0] in '-*•' or '$' in line:
        return False
    text = line.rstrip(':')
    return len(text) <= 60 and len(text.split()) <= 8 and not text.endswith('.')


class PdfReportRenderer:
    """
    Document Renderer producing PDF bytes.
    """

    def __init__(self, default_title: str = 'AWS Cost Report'):
        self.default_title = default_title

    def render(
        self,
        narrative: str,
        raw_data: Dict[str, Any],
        title: Optional[str] = None
    ) -> bytes:
        """
        Render narrative and chart into a PDF.

        Args:
            narrative: Plain-text report
            raw_data: Billing payload the narrative describes
            title: Document title

        Returns:
            PDF bytes

        Raises:
            RenderingError: If the document cannot be produced
        """
        title = title or self.default_title
        buffer = io.BytesIO()
        try:
            with PdfPages(buffer, metadata={'Title': title}) as pdf:
                for page in self._text_pages(title, narrative):
                    pdf.savefig(page)

                chart = self._chart_page(raw_data)
                if chart is not None:
                    pdf.savefig(chart)
        except Exception as e:
            raise RenderingError(f"PDF rendering failed: {e}") from e

        data = buffer.getvalue()
        logger.debug(f"Rendered PDF report ({len(data)} bytes)")
        return data

    def _new_page(self) -> Figure:
        return Figure(figsize=PAGE_SIZE)

    def _text_pages(self, title: str, narrative: str) -> List[Figure]:
        pages = []
        page = self._new_page()
        page.text(0.5, 0.97, title, ha='center', va='top', fontsize=18, weight='bold', color='#2c3e50')
        y = TOP_MARGIN - 0.02

        for raw_line in narrative.splitlines():
            line = raw_line.strip()
            if not line:
                y -= LINE_STEP / 2
                continue

            if _is_heading(line):
                rows = [(line.rstrip(':'), True)]
            else:
                indent = '    ' if line[0] in '-*•' else ''
                wrapped = textwrap.wrap(line, WRAP_WIDTH, subsequent_indent=indent + '  ')
                rows = [(indent + text if i == 0 else text, False) for i, text in enumerate(wrapped)]

            for text, heading in rows:
                step = HEADING_STEP if heading else LINE_STEP
                if y - step < BOTTOM_MARGIN:
                    pages.append(page)
                    page = self._new_page()
                    y = TOP_MARGIN
                y -= step
                if heading:
                    page.text(0.07, y, text, fontsize=13, weight='bold', color='#34495e')
                else:
                    page.text(0.07, y, text, fontsize=9, color='#222222', family='monospace')

        pages.append(page)
        return pages

    def _chart_page(self, raw_data: Dict[str, Any]) -> Optional[Figure]:
        if 'CostAndUsageComparisons' in raw_data:
            return self._comparison_chart(raw_data)
        return self._pie_chart(raw_data)

    def _pie_chart(self, raw_data: Dict[str, Any]) -> Optional[Figure]:
        slices = top_slices(extract_cost_breakdown(raw_data))
        if not slices:
            return None

        total = sum(cost for _, cost in slices)
        colors = [COLORS[i % len(COLORS)] if name != 'Other' else OTHER_COLOR
                  for i, (name, _) in enumerate(slices)]
        dimension = raw_data.get('GroupBy', 'SERVICE').replace('_', ' ').title()

        page = self._new_page()
        page.suptitle(f'AWS Cost Distribution by {dimension}', fontsize=16, weight='bold', color='#2c3e50')
        axes = page.add_axes([0.15, 0.45, 0.7, 0.45])
        wedges, _ = axes.pie(
            [cost for _, cost in slices],
            colors=colors,
            startangle=90,
            counterclock=False,
            wedgeprops={'edgecolor': 'white'}
        )
        axes.axis('equal')

        labels = [
            f'{name[:60]}: ${cost:,.2f} ({cost / total * 100:.1f}%)'
            for name, cost in slices
        ]
        page.legend(wedges, labels, loc='lower center', bbox_to_anchor=(0.5, 0.05), fontsize=8, frameon=False)
        return page

    def _comparison_chart(self, raw_data: Dict[str, Any]) -> Optional[Figure]:
        metric = raw_data.get('MetricForComparison', 'UnblendedCost')
        changes = top_comparison_changes(raw_data, metric)
        if not changes:
            return None

        changes = list(reversed(changes))
        names = [change['name'][:40] for change in changes]
        differences = [change['difference'] for change in changes]
        colors = ['#DC3912' if value > 0 else '#109618' for value in differences]

        page = self._new_page()
        page.suptitle('Largest Cost Changes', fontsize=16, weight='bold', color='#2c3e50')
        axes = page.add_axes([0.35, 0.2, 0.55, 0.65])
        axes.barh(names, differences, color=colors)
        axes.axvline(0, color='#555555', linewidth=0.8)
        axes.set_xlabel('Change in cost ($)')
        axes.tick_params(axis='y', labelsize=8)
        return page
