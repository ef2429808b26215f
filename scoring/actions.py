"""
Action item rules.
Each rule inspects the week buckets or records on its own; items accumulate in rule order.
"""
from typing import List, Optional, Sequence, Set

from normalize.models import EngagementRecord
from normalize.weeks import WeekBucket
from scoring.utils import PipelineSettings
from snapshot.models import ACTION_OPPORTUNITY, ACTION_SUCCESS, ACTION_WARNING, ActionItem

HIGH_TIER = 3


def engagement_drop(buckets: Sequence[WeekBucket]) -> Optional[ActionItem]:
    if len(buckets) < 2:
        return None
    previous = buckets[-2].count_tier(HIGH_TIER)
    latest = buckets[-1].count_tier(HIGH_TIER)
    if latest >= previous:
        return None
    return ActionItem(
        type=ACTION_WARNING,
        title='Engagement Drop Detected',
        description=f"High engagement decreased from last week ({previous} to {latest})",
        action='Review recent program changes and gather feedback',
    )


def inactive_partners(records: Sequence[EngagementRecord]) -> List[str]:
    """Partners that are named somewhere but never on a collaboration-flagged record, first-seen order."""
    active: Set[str] = set()
    for r in records:
        if r.partner_collaboration:
            active.update(r.partners)
    out: List[str] = []
    for r in records:
        for p in r.partners:
            if p not in active and p not in out:
                out.append(p)
    return out


def partner_opportunity(records: Sequence[EngagementRecord]) -> Optional[ActionItem]:
    inactive = inactive_partners(records)
    if not inactive:
        return None
    return ActionItem(
        type=ACTION_OPPORTUNITY,
        title='Partner Engagement Opportunity',
        description=f"{len(inactive)} tech partners need attention",
        action='Schedule check-ins with inactive partners',
    )


def new_contributor_growth(buckets: Sequence[WeekBucket], settings: PipelineSettings) -> Optional[ActionItem]:
    weeks = set(settings.new_contributor_weeks)
    count = sum(len(b.records) for b in buckets if b.number in weeks)
    if count <= settings.new_contributor_threshold:
        return None
    return ActionItem(
        type=ACTION_SUCCESS,
        title='New Contributor Growth',
        description=f"{count} check-ins from new contributor weeks",
        action='Pair new contributors with mentors and keep onboarding sessions running',
    )


def synthesize_action_items(buckets: Sequence[WeekBucket], records: Sequence[EngagementRecord],
                            settings: Optional[PipelineSettings] = None) -> List[ActionItem]:
    settings = settings or PipelineSettings()
    candidates = [
        engagement_drop(buckets),
        partner_opportunity(records),
        new_contributor_growth(buckets, settings),
    ]
    return [item for item in candidates if item is not None]
