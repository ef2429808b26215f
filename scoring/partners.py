"""
Partner aggregation.
Rolls week-indexed records up per tech partner. A record naming two partners counts
toward both, but only once toward each.
"""
from typing import Dict, List, Sequence

from normalize.models import EngagementRecord
from normalize.weeks import WeekBucket
from snapshot.models import PartnerWeekPoint, TechPartnerMetric


def _distinct_names(records: Sequence[EngagementRecord]) -> List[str]:
    names: List[str] = []
    for r in records:
        name = r.canonical_name or r.name
        if name and name not in names:
            names.append(name)
    return names


def _mean_tier(records: Sequence[EngagementRecord]) -> float:
    if not records:
        return 0.0
    return round(sum(r.engagement_score for r in records) / len(records), 2)


def aggregate_partners(buckets: Sequence[WeekBucket]) -> List[TechPartnerMetric]:
    """
    Build one TechPartnerMetric per partner, in first-seen order.

    Totals are summed from the same per-week slices that make up the time series,
    so a partner's total_issues is always the sum of its points' issue counts.
    """
    # partner -> [(bucket, records for that partner in the bucket)]
    slices: Dict[str, List] = {}
    for bucket in buckets:
        per_partner: Dict[str, List[EngagementRecord]] = {}
        for rec in bucket.records:
            for partner in rec.partners:
                per_partner.setdefault(partner, []).append(rec)
        for partner, recs in per_partner.items():
            slices.setdefault(partner, []).append((bucket, recs))

    metrics: List[TechPartnerMetric] = []
    for partner, entries in slices.items():
        points = tuple(
            PartnerWeekPoint(
                week=bucket.display_label,
                week_number=bucket.number,
                issue_count=sum(r.issue_count for r in recs),
                contributors=tuple(_distinct_names(recs)),
                engagement_level=_mean_tier(recs),
            )
            for bucket, recs in entries
        )
        all_recs = [r for _, recs in entries for r in recs]
        total = sum(p.issue_count for p in points)
        active = len(_distinct_names(all_recs))
        metrics.append(TechPartnerMetric(
            partner=partner,
            total_issues=total,
            active_contributors=active,
            avg_issues_per_contributor=round(total / active, 2) if active else 0.0,
            time_series=points,
        ))
    return metrics
