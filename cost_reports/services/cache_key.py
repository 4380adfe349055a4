"""
Canonical cache key derivation.

Keys are URL-safe base64 over compact JSON with sorted keys, so two
logically identical queries encode to the same bytes no matter how the
source objects were built. specialRequirements only enters the key when
it is not None: an omitted field and an empty string are different keys.
"""
import base64
import json
from datetime import date
from typing import Any, Dict, Optional

SINGLE_PERIOD = 'single'
COMPARISON = 'comparison'


def _encode(fields: Dict[str, Any]) -> str:
    canonical = json.dumps(fields, sort_keys=True, separators=(',', ':'), ensure_ascii=True)
    return base64.urlsafe_b64encode(canonical.encode('utf-8')).decode('ascii')


def single_period_key(
    start: date,
    end: date,
    group_by: str,
    granularity: str,
    special_requirements: Optional[str] = None
) -> str:
    """
    Key for a single-period cost query.

    Args:
        start: Window start
        end: Window end (exclusive)
        group_by: Grouping dimension
        granularity: DAILY or MONTHLY
        special_requirements: Narrative focus text, if supplied

    Returns:
        Opaque cache key
    """
    fields = {
        'type': SINGLE_PERIOD,
        'start': start.isoformat(),
        'end': end.isoformat(),
        'groupBy': group_by,
        'granularity': granularity,
    }
    if special_requirements is not None:
        fields['specialRequirements'] = special_requirements
    return _encode(fields)


def comparison_key(
    baseline_start: date,
    baseline_end: date,
    comparison_start: date,
    comparison_end: date,
    group_by: str,
    granularity: str,
    metric: str,
    special_requirements: Optional[str] = None
) -> str:
    """
    Key for a two-period comparison.

    Callers pass periods already ordered baseline first.

    Returns:
        Opaque cache key
    """
    fields = {
        'type': COMPARISON,
        'baselineStart': baseline_start.isoformat(),
        'baselineEnd': baseline_end.isoformat(),
        'comparisonStart': comparison_start.isoformat(),
        'comparisonEnd': comparison_end.isoformat(),
        'groupBy': group_by,
        'granularity': granularity,
        'metric': metric,
    }
    if special_requirements is not None:
        fields['specialRequirements'] = special_requirements
    return _encode(fields)


def decode_key(cache_key: str) -> Dict[str, Any]:
    """Decode a key back to its fields (diagnostics only)."""
    return json.loads(base64.urlsafe_b64decode(cache_key.encode('ascii')).decode('utf-8'))
