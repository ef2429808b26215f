"""
Enrich package: merge narrative insights into processed snapshots.
"""

from .adapter import EnrichmentError, build_enrichment_request, enrich_snapshot, parse_insights
from .client import HttpInsightProvider
from .heuristics import HeuristicInsightProvider

__all__ = [
    "EnrichmentError",
    "build_enrichment_request",
    "enrich_snapshot",
    "parse_insights",
    "HttpInsightProvider",
    "HeuristicInsightProvider",
]
