"""
Correlate package: cross-validate self-reported contributions against issue-tracker data.
"""

from .validator import issue_status_counts, tracker_counts, validate_contributions

__all__ = ["issue_status_counts", "tracker_counts", "validate_contributions"]
