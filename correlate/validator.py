"""
Cross-check self-reported issue counts against an issue-tracker aggregate.
Mismatches are reported as Discrepancy entries; nothing here blocks snapshot assembly.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

from correlate.models import parse_tracker_issues
from normalize.models import EngagementRecord
from snapshot.models import Discrepancy, IssueStatusCounts

log = logging.getLogger(__name__)

DEFAULT_MAX_DIFFERENCE = 2


def tracker_counts(tracker: Any) -> Dict[str, int]:
    """Issues per assignee login, keyed lower-case. Unassigned issues are not counted."""
    counts: Dict[str, int] = {}
    for issue in parse_tracker_issues(tracker):
        if not issue.assignee:
            continue
        key = issue.assignee.lower()
        counts[key] = counts.get(key, 0) + 1
    return counts


def issue_status_counts(tracker: Any) -> IssueStatusCounts:
    issues = parse_tracker_issues(tracker)
    closed = sum(1 for i in issues if i.closed)
    return IssueStatusCounts(open=len(issues) - closed, closed=closed, total=len(issues))


def discrepancy_message(reported: int, tracked: int) -> str:
    return f"Reported {reported} issues but found {tracked} on project board"


def _reported_totals(records: Sequence[EngagementRecord]) -> Dict[str, Dict[str, Any]]:
    # identity -> {'name': display name, 'login': github username or '', 'reported': int}
    totals: Dict[str, Dict[str, Any]] = {}
    for r in records:
        login = r.github_username.strip()
        name = r.canonical_name or r.name
        key = (login or name).lower()
        if not key:
            continue
        entry = totals.setdefault(key, {'name': name or login, 'login': login, 'reported': 0})
        entry['reported'] += r.issue_count
    return totals


def validate_contributions(records: Sequence[EngagementRecord], tracker: Any,
                           max_difference: Optional[int] = DEFAULT_MAX_DIFFERENCE) -> List[Discrepancy]:
    """
    Compare each contributor's summed self-reported count with the tracker.

    Contributors are matched by GitHub username, falling back to the resolved name.
    Contributors with neither a username nor a name known to the tracker are skipped,
    since the tracker cannot say anything about them.
    """
    if tracker is None:
        return []
    if max_difference is None:
        max_difference = DEFAULT_MAX_DIFFERENCE
    counts = tracker_counts(tracker)
    if not counts and not parse_tracker_issues(tracker):
        log.info("Tracker aggregate has no readable issues; skipping cross-validation")
        return []

    found: List[Discrepancy] = []
    for key, entry in _reported_totals(records).items():
        if not entry['login'] and key not in counts:
            continue
        tracked = counts.get(key, 0)
        reported = entry['reported']
        if abs(reported - tracked) > max_difference:
            found.append(Discrepancy(
                contributor=entry['name'],
                reported=reported,
                tracked=tracked,
                message=discrepancy_message(reported, tracked),
            ))
    if found:
        log.info("Found %d contribution discrepancies", len(found))
    return found
