"""
Local, rule-based insight provider.
Produces the same response shape as the remote service from the enrichment request alone,
so snapshots can carry narrative insights without network access.
"""
from typing import Any, Dict, List, Mapping

ENGAGEMENT_WEIGHTS = (0.4, 0.3, 0.2, 0.1)  # rate, nps, contributors, contributions
PROGRESS_WEIGHTS = (0.4, 0.3, 0.3)  # completion, partner diversity, growth
COLLABORATION_WEIGHTS = (0.6, 0.4)  # active partners, issues per partner

CONTRIBUTOR_CAP = 20
CONTRIBUTION_CAP = 50
PARTNER_DIVERSITY_CAP = 10
ACTIVE_PARTNER_CAP = 5
ISSUES_PER_PARTNER_CAP = 10

GROWTH_THRESHOLD = 10
HIGH_COMPLETION = 70
LOW_COMPLETION = 30
STRONG_PARTNER_COUNT = 3


def _num(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _capped(value: float, cap: float) -> float:
    return min(value / cap * 100, 100.0) if cap else 0.0


def _rounded(value: float) -> int:
    return int(max(0.0, min(100.0, value)) + 0.5)


def _health(request: Mapping) -> Mapping:
    health = request.get('program_health')
    return health if isinstance(health, Mapping) else {}


def _partners(request: Mapping) -> List[Mapping]:
    partners = request.get('tech_partners')
    if not isinstance(partners, list):
        return []
    return [p for p in partners if isinstance(p, Mapping)]


def _latest_trend(request: Mapping) -> str:
    points = request.get('engagement_trends')
    if not isinstance(points, list) or not points or not isinstance(points[-1], Mapping):
        return ''
    latest = points[-1]
    return (f"{int(_num(latest.get('high')))} of {int(_num(latest.get('total')))} check-ins "
            f"in {latest.get('week') or 'the latest week'} were highly engaged")


def completion_rate(request: Mapping) -> float:
    """Closed share of tracker issues as a percentage; 0 when there is no tracker data."""
    status = request.get('issue_status')
    if not isinstance(status, Mapping):
        return 0.0
    total = _num(status.get('total'))
    return _num(status.get('closed')) / total * 100 if total else 0.0


def engagement_score(request: Mapping) -> int:
    health = _health(request)
    w_rate, w_nps, w_people, w_work = ENGAGEMENT_WEIGHTS
    return _rounded(
        _num(health.get('engagement_rate')) * w_rate
        + (_num(health.get('nps_score')) + 100) / 2 * w_nps
        + _capped(_num(request.get('active_contributors')), CONTRIBUTOR_CAP) * w_people
        + _capped(_num(request.get('total_contributions')), CONTRIBUTION_CAP) * w_work
    )


def technical_progress(request: Mapping) -> int:
    change = _num(request.get('weekly_change'))
    growth = min(change, 100.0) if change > 0 else 0.0
    w_done, w_diversity, w_growth = PROGRESS_WEIGHTS
    return _rounded(
        completion_rate(request) * w_done
        + _capped(len(_partners(request)), PARTNER_DIVERSITY_CAP) * w_diversity
        + growth * w_growth
    )


def collaboration_index(request: Mapping) -> int:
    partners = _partners(request)
    per_partner = sum(_num(p.get('total_issues')) for p in partners) / (len(partners) or 1)
    w_active, w_issues = COLLABORATION_WEIGHTS
    return _rounded(
        _capped(_num(_health(request).get('active_tech_partners')), ACTIVE_PARTNER_CAP) * w_active
        + _capped(per_partner, ISSUES_PER_PARTNER_CAP) * w_issues
    )


class HeuristicInsightProvider:
    """Rule-based narrative generator; never touches the network."""

    def generate(self, request: Dict[str, Any]) -> Dict[str, Any]:
        if not isinstance(request, Mapping):
            request = {}
        trends: List[str] = []
        concerns: List[str] = []
        recommendations: List[str] = []
        achievements: List[str] = []

        change = int(round(_num(request.get('weekly_change'))))
        if change > GROWTH_THRESHOLD:
            achievements.append(f"Strong growth with {change}% increase in contributions")
        elif change < -GROWTH_THRESHOLD:
            concerns.append(f"Declining engagement with {abs(change)}% decrease in contributions")
            recommendations.append('Schedule community engagement sessions to boost participation')

        latest = _latest_trend(request)
        if latest:
            trends.append(latest)

        status = request.get('issue_status')
        if isinstance(status, Mapping) and _num(status.get('total')) > 0:
            rate = completion_rate(request)
            if rate > HIGH_COMPLETION:
                achievements.append(f"High issue completion rate at {int(round(rate))}%")
            elif rate < LOW_COMPLETION:
                concerns.append(f"Low issue completion rate at {int(round(rate))}%")
                recommendations.append('Review issue complexity and provide additional technical support')

        active_partners = int(_num(_health(request).get('active_tech_partners')))
        if active_partners > STRONG_PARTNER_COUNT:
            achievements.append(f"Strong partner diversity with {active_partners} active tech partners")
        else:
            recommendations.append('Expand tech partner outreach to increase collaboration opportunities')

        return {
            'key_trends': trends,
            'areas_of_concern': concerns,
            'recommendations': recommendations,
            'achievements': achievements,
            'metrics': {
                'engagement_score': engagement_score(request),
                'technical_progress': technical_progress(request),
                'collaboration_index': collaboration_index(request),
            },
        }
