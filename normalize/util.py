"""
Normalization utility helpers.
Turn loosely typed survey rows into EngagementRecord entities. Every helper here is total:
malformed input produces a default value, never an exception.
"""
import math
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from normalize.aliases import CONTRIBUTOR_ALIASES, PARTNER_ALIASES, lookup, merged_aliases
from normalize.models import (
    EngagementRecord,
    FIELD_COHORT,
    FIELD_COLLABORATION,
    FIELD_EMAIL,
    FIELD_FEEDBACK,
    FIELD_GITHUB,
    FIELD_ISSUES,
    FIELD_NAME,
    FIELD_PARTICIPATION,
    FIELD_PARTNER,
    FIELD_RECOMMEND,
    FIELD_WEEK,
)
from scoring.utils import PipelineSettings

LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
LEADING_TIER = re.compile(r"^\s*([1-3])(?!\d)")

_TRUE_FLAGS = {'yes', 'y', 'true', '1'}
_FALSE_FLAGS = {'no', 'n', 'false', '0'}


def _text(value: Any) -> str:
    """Render a raw cell as trimmed text. Lists (multi-select cells) use their first element."""
    if value is None:
        return ''
    if isinstance(value, (list, tuple)):
        return _text(value[0]) if value else ''
    return str(value).strip()


def coerce_count(value: Any) -> int:
    """Leading integer of the cell ("4+" -> 4), clamped to >= 0. Anything unparseable is 0."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(0, value)
    if isinstance(value, float):
        return max(0, int(value)) if math.isfinite(value) else 0
    match = LEADING_INT.match(_text(value))
    return max(0, int(match.group(1))) if match else 0


def coerce_score(value: Any) -> int:
    """Recommend-likelihood on the 0-10 scale; out-of-range values are treated as absent (0)."""
    score = coerce_count(value)
    return score if score <= 10 else 0


def participation_tier(text: Any) -> int:
    """'3 - Highly engaged' -> 3, '2 - ...' -> 2, '1 - ...' -> 1, anything else -> 0."""
    match = LEADING_TIER.match(_text(text))
    return int(match.group(1)) if match else 0


def parse_flag(value: Any) -> Optional[bool]:
    text = _text(value).lower()
    if text in _TRUE_FLAGS:
        return True
    if text in _FALSE_FLAGS:
        return False
    return None


def split_partners(value: Any, aliases: Optional[Dict[str, str]] = None) -> Tuple[str, ...]:
    """Split a partner cell on commas (or flatten a multi-select list), resolve aliases, drop empties and repeats."""
    table = aliases if aliases is not None else PARTNER_ALIASES
    if value is None:
        return ()
    parts: List[str] = []
    items = value if isinstance(value, (list, tuple)) else [value]
    for item in items:
        if item is None:
            continue
        parts.extend(str(item).split(','))

    seen: List[str] = []
    for raw in parts:
        name = lookup(raw, table)
        if name and name != '[]' and name not in seen:
            seen.append(name)
    return tuple(seen)


def resolve_contributor(name: Any, aliases: Optional[Dict[str, str]] = None) -> str:
    table = aliases if aliases is not None else CONTRIBUTOR_ALIASES
    return lookup(_text(name), table)


def _trimmed_keys(raw: Mapping) -> Dict[str, Any]:
    return {str(k).strip(): v for k, v in raw.items()}


def normalize_record(raw: Any, settings: Optional[PipelineSettings] = None) -> EngagementRecord:
    """
    Create an EngagementRecord from one raw survey row.

    Non-mapping input yields an all-default record. When the collaboration answer is
    missing or unrecognised, naming a partner counts as collaborating.
    """
    if not isinstance(raw, Mapping):
        return EngagementRecord()
    settings = settings or PipelineSettings()
    fields = _trimmed_keys(raw)

    name = _text(fields.get(FIELD_NAME))
    partners = split_partners(fields.get(FIELD_PARTNER), merged_aliases(PARTNER_ALIASES, settings.partner_aliases))
    flag = parse_flag(fields.get(FIELD_COLLABORATION))
    participation = _text(fields.get(FIELD_PARTICIPATION))

    return EngagementRecord(
        name=name,
        canonical_name=resolve_contributor(name, merged_aliases(CONTRIBUTOR_ALIASES, settings.contributor_aliases)),
        github_username=_text(fields.get(FIELD_GITHUB)),
        email=_text(fields.get(FIELD_EMAIL)),
        week=_text(fields.get(FIELD_WEEK)),
        participation=participation,
        engagement_score=participation_tier(participation),
        partner_collaboration=flag if flag is not None else bool(partners),
        partners=partners,
        issue_count=coerce_count(fields.get(FIELD_ISSUES)),
        recommend_score=coerce_score(fields.get(FIELD_RECOMMEND)),
        feedback=_text(fields.get(FIELD_FEEDBACK)),
        cohort_id=_text(fields.get(FIELD_COHORT)),
    )


def normalize_records(raws: Optional[Iterable[Any]], settings: Optional[PipelineSettings] = None) -> List[EngagementRecord]:
    if not isinstance(raws, Iterable) or isinstance(raws, (str, bytes, Mapping)):
        return []
    settings = settings or PipelineSettings()
    # non-mapping rows are dropped, not defaulted
    return [normalize_record(r, settings) for r in raws if isinstance(r, Mapping)]
