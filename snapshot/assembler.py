"""
Snapshot assembly: normalize once, index weeks once, then run every calculator over the
same immutable record tuple and compose the results into a ProcessedSnapshot.
"""
import logging
from typing import Any, Optional, Sequence

from correlate.validator import issue_status_counts, validate_contributions
from normalize.aliases import CONTRIBUTOR_ALIASES, merged_aliases
from normalize.models import EngagementRecord
from normalize.util import normalize_records
from normalize.weeks import index_weeks
from scoring import metrics
from scoring.actions import synthesize_action_items
from scoring.partners import aggregate_partners
from scoring.ranking import rank_contributors
from scoring.utils import PipelineSettings
from snapshot.models import ProcessedSnapshot, ProgramHealth

log = logging.getLogger(__name__)


def assemble_from_records(records: Sequence[EngagementRecord], tracker: Any = None,
                          settings: Optional[PipelineSettings] = None) -> ProcessedSnapshot:
    settings = settings or PipelineSettings()
    records = tuple(records or ())
    if not records:
        return ProcessedSnapshot(issue_status=issue_status_counts(tracker))

    buckets = index_weeks(records)
    contributors, contributions = metrics.compute_totals(records)
    change = metrics.weekly_change(buckets)
    active_partners = metrics.active_tech_partners(records)
    sentiment = metrics.feedback_sentiment(records)

    snapshot = ProcessedSnapshot(
        weekly_change=change,
        active_contributors=contributors,
        total_contributions=contributions,
        program_health=ProgramHealth(
            nps_score=metrics.nps_score(records),
            engagement_rate=metrics.engagement_rate(records),
            active_tech_partners=active_partners,
        ),
        key_highlights=metrics.key_highlights(contributors, active_partners, contributions, sentiment.positive, change),
        engagement_trends=tuple(metrics.engagement_trends(buckets)),
        technical_progress=tuple(metrics.technical_progress(buckets)),
        tech_partners=tuple(aggregate_partners(buckets)),
        top_performers=tuple(rank_contributors(records, settings.top_performer_limit,
                                                  aliases=merged_aliases(CONTRIBUTOR_ALIASES, settings.contributor_aliases))),
        action_items=tuple(synthesize_action_items(buckets, records, settings)),
        feedback_sentiment=sentiment,
        issue_status=issue_status_counts(tracker),
        discrepancies=tuple(validate_contributions(records, tracker, settings.max_issue_difference)),
    )
    log.debug("Assembled snapshot: %d records, %d weeks, %d partners",
              len(records), len(buckets), len(snapshot.tech_partners))
    return snapshot


def assemble_snapshot(raw_records: Any, tracker: Any = None,
                      settings: Optional[PipelineSettings] = None) -> ProcessedSnapshot:
    """
    Build a snapshot from raw survey rows of any shape.

    Normalization is total, so malformed rows degrade to defaults instead of failing;
    an empty or unusable collection gives the all-default snapshot.
    """
    settings = settings or PipelineSettings()
    records = normalize_records(raw_records, settings)
    return assemble_from_records(records, tracker, settings)
