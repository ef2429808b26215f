"""
Week indexing: group records by their program-week label and order the groups chronologically.
"""
import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

from normalize.models import EngagementRecord

WEEK_PATTERN = re.compile(r"Week #?(\d+)", re.IGNORECASE)
ANNOTATION_PATTERN = re.compile(r"\(.*?\)")


def week_number(label: str) -> int:
    """Return N from the first "Week N" in the label, or 0 when there is none."""
    match = WEEK_PATTERN.search(label or '')
    return int(match.group(1)) if match else 0


def display_week(label: str) -> str:
    """Strip the first parenthesised annotation, e.g. "Week 3 (2024-01-20)" -> "Week 3"."""
    return ANNOTATION_PATTERN.sub('', label or '', count=1).strip()


@dataclass(frozen=True)
class WeekBucket:
    """
    All records sharing one week label. `number` is the ordering key, parsed once from the label.
    """
    label: str
    number: int
    records: Tuple[EngagementRecord, ...] = field(default_factory=tuple)

    @property
    def display_label(self) -> str:
        return display_week(self.label)

    @property
    def issue_total(self) -> int:
        return sum(r.issue_count for r in self.records)

    def count_tier(self, tier: int) -> int:
        return sum(1 for r in self.records if r.engagement_score == tier)


def index_weeks(records: Iterable[EngagementRecord]) -> List[WeekBucket]:
    """
    Group records by exact (trimmed) week label and sort the buckets by week number.

    Records without a label are left out. Buckets that share a week number keep the
    order in which their labels were first seen.
    """
    grouped: Dict[str, List[EngagementRecord]] = {}
    for rec in records:
        label = (rec.week or '').strip()
        if not label:
            continue
        grouped.setdefault(label, []).append(rec)

    buckets = [WeekBucket(label=label, number=week_number(label), records=tuple(recs)) for label, recs in grouped.items()]
    # sorted() is stable, so ties stay in first-seen order
    return sorted(buckets, key=lambda b: b.number)
