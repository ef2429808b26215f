"""
Normalized survey entities and the raw field names they are read from.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Tuple

# raw spreadsheet column names (matched after trimming, so trailing spaces in the export are tolerated)
FIELD_NAME = 'Name'
FIELD_GITHUB = 'Github Username'
FIELD_EMAIL = 'Email Address'
FIELD_WEEK = 'Program Week'
FIELD_PARTICIPATION = 'Engagement Participation'
FIELD_COLLABORATION = 'Tech Partner Collaboration?'
FIELD_PARTNER = 'Which Tech Partner'
FIELD_ISSUES = 'How many issues, PRs, or projects this week?'
FIELD_RECOMMEND = 'How likely are you to recommend the PLDG to others?'
FIELD_FEEDBACK = 'PLDG Feedback'
FIELD_COHORT = 'cohortId'


@dataclass(frozen=True)
class EngagementRecord:
    """
    One contributor's weekly check-in after cleaning.
    """
    name: str = ''
    canonical_name: str = ''
    github_username: str = ''
    email: str = ''
    week: str = ''
    participation: str = ''
    engagement_score: int = 0  # 0-3, from the leading digit of participation
    partner_collaboration: bool = False
    partners: Tuple[str, ...] = field(default_factory=tuple)
    issue_count: int = 0
    recommend_score: int = 0  # 0 means absent or invalid
    feedback: str = ''
    cohort_id: str = ''

    @property
    def partner_set(self) -> FrozenSet[str]:
        return frozenset(self.partners)

