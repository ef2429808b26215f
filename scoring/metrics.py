"""
Scoring metrics.
Program-level calculators over normalized EngagementRecords and their week buckets.
Each calculator has a defined result for empty input and never raises.
"""
import math
from typing import List, Sequence, Set, Tuple

from normalize.models import EngagementRecord
from normalize.weeks import WeekBucket
from snapshot.models import (
    EngagementTrendPoint,
    FeedbackSentiment,
    KeyHighlights,
    TechnicalProgressPoint,
)

PROMOTER_MIN = 9
DETRACTOR_MAX = 6
ENGAGED_TIER = 2

POSITIVE_WORDS = ('great', 'good')
NEGATIVE_WORDS = ('bad',)


def _percent(part: float, whole: float) -> int:
    # halves round up, so -12.5 becomes -12
    if not whole:
        return 0
    value = part / whole * 100
    return int(math.floor(value + 0.5))


def nps_score(records: Sequence[EngagementRecord]) -> int:
    """Net promoter score over the records that carry a recommend score (> 0)."""
    scores = [r.recommend_score for r in records if r.recommend_score > 0]
    if not scores:
        return 0
    promoters = sum(1 for s in scores if s >= PROMOTER_MIN)
    detractors = sum(1 for s in scores if s <= DETRACTOR_MAX)
    return _percent(promoters - detractors, len(scores))


def engagement_rate(records: Sequence[EngagementRecord]) -> int:
    """Share of records at participation tier 2 or 3, as a rounded percentage."""
    if not records:
        return 0
    engaged = sum(1 for r in records if r.engagement_score >= ENGAGED_TIER)
    return _percent(engaged, len(records))


def weekly_change(buckets: Sequence[WeekBucket]) -> int:
    """
    Signed percentage change in summed issue counts between the two latest week buckets.

    Fewer than two buckets gives 0. A previous total of 0 gives 100 when the
    current week has any issues and 0 otherwise.
    """
    if len(buckets) < 2:
        return 0
    current = buckets[-1].issue_total
    previous = buckets[-2].issue_total
    if previous == 0:
        return 100 if current > 0 else 0
    return _percent(current - previous, previous)


def compute_totals(records: Sequence[EngagementRecord]) -> Tuple[int, int]:
    """Return (distinct contributors by raw name, summed issue count). Blank names are not contributors."""
    names: Set[str] = {r.name for r in records if r.name}
    return len(names), sum(r.issue_count for r in records)


def engagement_trends(buckets: Sequence[WeekBucket]) -> List[EngagementTrendPoint]:
    return [
        EngagementTrendPoint(
            week=b.display_label,
            high=b.count_tier(3),
            medium=b.count_tier(2),
            low=b.count_tier(1),
            total=len(b.records),
        )
        for b in buckets
    ]


def technical_progress(buckets: Sequence[WeekBucket]) -> List[TechnicalProgressPoint]:
    return [TechnicalProgressPoint(week=b.display_label, total_issues=b.issue_total) for b in buckets]


def classify_feedback(text: str) -> str:
    """'positive', 'negative', 'neutral', or '' when there is no feedback at all."""
    lowered = (text or '').strip().lower()
    if not lowered:
        return ''
    if any(w in lowered for w in POSITIVE_WORDS):
        return 'positive'
    if any(w in lowered for w in NEGATIVE_WORDS):
        return 'negative'
    return 'neutral'


def feedback_sentiment(records: Sequence[EngagementRecord]) -> FeedbackSentiment:
    counts = {'positive': 0, 'neutral': 0, 'negative': 0}
    for r in records:
        label = classify_feedback(r.feedback)
        if label:
            counts[label] += 1
    return FeedbackSentiment(**counts)


def active_tech_partners(records: Sequence[EngagementRecord]) -> int:
    """Distinct partner names that appear on at least one collaboration-flagged record."""
    active: Set[str] = set()
    for r in records:
        if r.partner_collaboration:
            active.update(r.partners)
    return len(active)


def key_highlights(active_contributors: int, partner_count: int, total_contributions: int,
                   positive_feedback: int, change: int) -> KeyHighlights:
    return KeyHighlights(
        active_contributors_across_partners=f"{active_contributors} across {partner_count}",
        total_contributions=f"{total_contributions} total",
        positive_feedback=f"{positive_feedback} positive",
        weekly_contributions=f"{change}% change",
    )
