"""
Insight enrichment adapter.
Summarizes a snapshot for a narrative provider, parses whatever comes back, and merges
it into the snapshot. Enrichment only ever adds to a snapshot; a failing provider
leaves the base snapshot intact with an empty insight block.
"""
import logging
import math
from dataclasses import asdict, replace
from typing import Any, Dict, List, Mapping, Tuple

from snapshot.models import Insights, ProcessedSnapshot

log = logging.getLogger(__name__)

LIST_FIELDS = {
    'key_trends': ('key_trends', 'keyTrends'),
    'areas_of_concern': ('areas_of_concern', 'areasOfConcern'),
    'recommendations': ('recommendations',),
    'achievements': ('achievements',),
}
SCORE_FIELDS = {
    'engagement_score': ('engagement_score', 'engagementScore'),
    'technical_progress': ('technical_progress', 'technicalProgress'),
    'collaboration_index': ('collaboration_index', 'collaborationIndex'),
}


class EnrichmentError(Exception):
    """Raised by insight providers when no usable narrative could be produced."""


def build_enrichment_request(snapshot: ProcessedSnapshot) -> Dict[str, Any]:
    """Summarized, JSON-ready view of the metrics a narrative provider needs."""
    return {
        'weekly_change': snapshot.weekly_change,
        'active_contributors': snapshot.active_contributors,
        'total_contributions': snapshot.total_contributions,
        'program_health': asdict(snapshot.program_health),
        'nps_score': snapshot.program_health.nps_score,
        'engagement_trends': [asdict(p) for p in snapshot.engagement_trends],
        'technical_progress': [asdict(p) for p in snapshot.technical_progress],
        'feedback_sentiment': asdict(snapshot.feedback_sentiment),
        'tech_partners': [
            {'partner': m.partner, 'total_issues': m.total_issues, 'active_contributors': m.active_contributors}
            for m in snapshot.tech_partners
        ],
        'top_performers': [asdict(p) for p in snapshot.top_performers],
        'issue_status': asdict(snapshot.issue_status),
    }


def _first(payload: Mapping, names: Tuple[str, ...]) -> Any:
    for name in names:
        if name in payload:
            return payload[name]
    return None


def _string_list(value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return ()
    out: List[str] = []
    for item in value:
        if isinstance(item, str) and item.strip():
            out.append(item.strip())
    return tuple(out)


def _score(value: Any) -> int:
    if isinstance(value, bool) or value is None:
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    return int(min(100.0, max(0.0, number)) + 0.5)


def parse_insights(payload: Any) -> Insights:
    """
    Tolerant parse of a provider response.

    Accepts snake_case or camelCase keys, with the scores either at the top level or
    under "metrics", and the whole block optionally wrapped in "insights". Non-string
    list items are dropped and scores are clamped to 0-100.
    """
    if not isinstance(payload, Mapping):
        raise EnrichmentError(f"expected a mapping, got {type(payload).__name__}")
    if isinstance(payload.get('insights'), Mapping):
        payload = payload['insights']

    metrics = payload.get('metrics')
    score_source = metrics if isinstance(metrics, Mapping) else payload

    values: Dict[str, Any] = {}
    for field_name, names in LIST_FIELDS.items():
        values[field_name] = _string_list(_first(payload, names))
    for field_name, names in SCORE_FIELDS.items():
        raw = _first(score_source, names)
        if raw is None:
            raw = _first(payload, names)
        values[field_name] = _score(raw)
    return Insights(**values)


def enrich_snapshot(snapshot: ProcessedSnapshot, provider: Any) -> ProcessedSnapshot:
    """Return a copy of the snapshot carrying the provider's insights, or empty insights on any failure."""
    if provider is None:
        return replace(snapshot, insights=Insights.empty())
    try:
        payload = provider.generate(build_enrichment_request(snapshot))
        insights = parse_insights(payload)
    except Exception as ex:  # provider is opaque
        log.warning("Insight enrichment failed, continuing without insights: %s", ex)
        return replace(snapshot, insights=Insights.empty())
    return replace(snapshot, insights=insights)
