"""
Value types that make up a processed analytics snapshot.
All of them are frozen; a refresh builds a new snapshot rather than mutating an old one.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Tuple

ACTION_WARNING = 'warning'
ACTION_SUCCESS = 'success'
ACTION_OPPORTUNITY = 'opportunity'


def _listify(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _listify(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_listify(v) for v in value]
    return value


@dataclass(frozen=True)
class ProgramHealth:
    nps_score: int = 0
    engagement_rate: int = 0
    active_tech_partners: int = 0


@dataclass(frozen=True)
class EngagementTrendPoint:
    week: str
    high: int = 0
    medium: int = 0
    low: int = 0
    total: int = 0


@dataclass(frozen=True)
class TechnicalProgressPoint:
    week: str
    total_issues: int = 0


@dataclass(frozen=True)
class PartnerWeekPoint:
    week: str
    week_number: int
    issue_count: int = 0
    contributors: Tuple[str, ...] = field(default_factory=tuple)
    engagement_level: float = 0.0  # mean participation tier for this partner/week slice


@dataclass(frozen=True)
class TechPartnerMetric:
    partner: str
    total_issues: int = 0
    active_contributors: int = 0
    avg_issues_per_contributor: float = 0.0
    time_series: Tuple[PartnerWeekPoint, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class TopPerformer:
    name: str
    total_issues: int = 0
    avg_engagement: float = 0.0


@dataclass(frozen=True)
class ActionItem:
    type: str
    title: str
    description: str
    action: str


@dataclass(frozen=True)
class FeedbackSentiment:
    positive: int = 0
    neutral: int = 0
    negative: int = 0


@dataclass(frozen=True)
class KeyHighlights:
    active_contributors_across_partners: str = '0 across 0'
    total_contributions: str = '0 total'
    positive_feedback: str = '0 positive'
    weekly_contributions: str = '0% change'


@dataclass(frozen=True)
class IssueStatusCounts:
    open: int = 0
    closed: int = 0
    total: int = 0


@dataclass(frozen=True)
class Discrepancy:
    """Self-reported issue total that disagrees with the issue tracker by more than the allowed margin."""
    contributor: str
    reported: int
    tracked: int
    message: str = ''


@dataclass(frozen=True)
class Insights:
    """Narrative enrichment. Every field has a default so an empty block is always valid."""
    key_trends: Tuple[str, ...] = field(default_factory=tuple)
    areas_of_concern: Tuple[str, ...] = field(default_factory=tuple)
    recommendations: Tuple[str, ...] = field(default_factory=tuple)
    achievements: Tuple[str, ...] = field(default_factory=tuple)
    engagement_score: int = 0
    technical_progress: int = 0
    collaboration_index: int = 0

    @classmethod
    def empty(cls) -> 'Insights':
        return cls()

    @property
    def is_empty(self) -> bool:
        return self == Insights.empty()


@dataclass(frozen=True)
class ProcessedSnapshot:
    """
    Root aggregate handed to caches, renderers and exporters.
    """
    weekly_change: int = 0
    active_contributors: int = 0
    total_contributions: int = 0
    program_health: ProgramHealth = field(default_factory=ProgramHealth)
    key_highlights: KeyHighlights = field(default_factory=KeyHighlights)
    engagement_trends: Tuple[EngagementTrendPoint, ...] = field(default_factory=tuple)
    technical_progress: Tuple[TechnicalProgressPoint, ...] = field(default_factory=tuple)
    tech_partners: Tuple[TechPartnerMetric, ...] = field(default_factory=tuple)
    top_performers: Tuple[TopPerformer, ...] = field(default_factory=tuple)
    action_items: Tuple[ActionItem, ...] = field(default_factory=tuple)
    feedback_sentiment: FeedbackSentiment = field(default_factory=FeedbackSentiment)
    issue_status: IssueStatusCounts = field(default_factory=IssueStatusCounts)
    discrepancies: Tuple[Discrepancy, ...] = field(default_factory=tuple)
    insights: Insights = field(default_factory=Insights.empty)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready form; tuples become lists."""
        return _listify(asdict(self))
