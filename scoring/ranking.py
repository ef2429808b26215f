"""
Contributor ranking.
Groups check-ins per contributor, folds duplicate identities together and keeps the top N.
"""
from typing import Dict, List, Optional, Sequence

from normalize.aliases import CONTRIBUTOR_ALIASES, DUPLICATE_NAME_RULES, apply_duplicate_rules, lookup
from normalize.models import EngagementRecord
from scoring.utils import MAX_TOP_PERFORMERS
from snapshot.models import TopPerformer


def merge_key(canonical_name: str, duplicate_rules=DUPLICATE_NAME_RULES, aliases: Optional[Dict[str, str]] = None) -> str:
    """Identity used to merge contributor groups.

    The duplicate rules run on the alias-resolved name and their result goes back through
    the alias table, so every spelling of one person lands on a single canonical name.
    """
    table = aliases if aliases is not None else CONTRIBUTOR_ALIASES
    return lookup(apply_duplicate_rules(canonical_name, duplicate_rules), table)


def _group_by_raw_name(records: Sequence[EngagementRecord]) -> Dict[str, List[EngagementRecord]]:
    groups: Dict[str, List[EngagementRecord]] = {}
    for rec in records:
        if not rec.name:
            continue
        groups.setdefault(rec.name, []).append(rec)
    return groups


def rank_contributors(records: Sequence[EngagementRecord], limit: Optional[int] = MAX_TOP_PERFORMERS,
                      duplicate_rules=DUPLICATE_NAME_RULES,
                      aliases: Optional[Dict[str, str]] = None) -> List[TopPerformer]:
    """
    Return top performers sorted by (total issues desc, average engagement desc).

    Groups are first formed per raw name. Groups that resolve to the same identity are
    merged: totals are summed and the merged average is the plain mean of each group's
    own average, regardless of how many records each group holds.
    """
    if limit is None:
        limit = MAX_TOP_PERFORMERS
    limit = max(0, min(int(limit), MAX_TOP_PERFORMERS))

    # identity -> [(group total, group average)]
    merged: Dict[str, List] = {}
    for name, recs in _group_by_raw_name(records).items():
        total = sum(r.issue_count for r in recs)
        avg = sum(r.engagement_score for r in recs) / len(recs)
        key = merge_key(recs[0].canonical_name or name, duplicate_rules, aliases)
        merged.setdefault(key, []).append((total, avg))

    performers: List[TopPerformer] = []
    for key, parts in merged.items():
        total = sum(t for t, _ in parts)
        avg = sum(a for _, a in parts) / len(parts)
        performers.append(TopPerformer(name=key, total_issues=total, avg_engagement=round(avg, 2)))

    performers.sort(key=lambda p: (-p.total_issues, -p.avg_engagement))
    return performers[:limit]
