"""
Issue-tracker data as seen by the cross-validation step.
"""
from dataclasses import dataclass
from typing import Any, List, Mapping

CLOSED_STATES = {'closed', 'done'}


@dataclass(frozen=True)
class TrackerIssue:
    """One tracker issue reduced to who owns it and whether it is finished."""
    assignee: str = ''
    state: str = ''

    @property
    def closed(self) -> bool:
        return self.state.lower() in CLOSED_STATES


def _assignee_login(issue: Mapping) -> str:
    assignee = issue.get('assignee')
    if isinstance(assignee, Mapping):
        return str(assignee.get('login') or '').strip()
    if isinstance(assignee, str):
        return assignee.strip()
    return ''


def parse_tracker_issues(tracker: Any) -> List[TrackerIssue]:
    """
    Read `{"issues": [...]}` (or a bare list of issues). Each issue may carry a
    GitHub-style `state` or a project-board `status`; entries that are not mappings are skipped.
    """
    if isinstance(tracker, Mapping):
        issues = tracker.get('issues')
    else:
        issues = tracker
    if not isinstance(issues, (list, tuple)):
        return []
    out: List[TrackerIssue] = []
    for issue in issues:
        if not isinstance(issue, Mapping):
            continue
        state = issue.get('state') or issue.get('status') or ''
        out.append(TrackerIssue(assignee=_assignee_login(issue), state=str(state).strip()))
    return out
