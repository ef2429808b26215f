import unittest

from correlate import issue_status_counts, tracker_counts, validate_contributions
from correlate.models import parse_tracker_issues
from normalize.models import EngagementRecord


def _tracker():
    return {
        'issues': [
            {'title': 'a', 'state': 'closed', 'assignee': {'login': 'alice-gh'}},
            {'title': 'b', 'state': 'open', 'assignee': {'login': 'Alice-GH'}},
            {'title': 'c', 'status': 'Done', 'assignee': {'login': 'bob'}},
            {'title': 'd', 'status': 'In Progress', 'assignee': None},
            'not an issue',
        ]
    }


class TestTrackerParsing(unittest.TestCase):
    def test_counts_per_login(self):
        self.assertEqual(tracker_counts(_tracker()), {'alice-gh': 2, 'bob': 1})

    def test_status_counts(self):
        status = issue_status_counts(_tracker())
        self.assertEqual((status.open, status.closed, status.total), (2, 2, 4))

    def test_malformed_tracker(self):
        for bad in (None, 'x', {'issues': 'nope'}, 42):
            self.assertEqual(parse_tracker_issues(bad), [])
            self.assertEqual(issue_status_counts(bad).total, 0)


class TestValidateContributions(unittest.TestCase):
    def test_flags_large_differences_only(self):
        records = [
            EngagementRecord(name='Alice', canonical_name='Alice', github_username='alice-gh', issue_count=4),
            EngagementRecord(name='Alice', canonical_name='Alice', github_username='alice-gh', issue_count=3),
            EngagementRecord(name='bob', canonical_name='bob', issue_count=3),
            EngagementRecord(name='Carol', canonical_name='Carol', issue_count=9),
        ]
        found = validate_contributions(records, _tracker())
        self.assertEqual(len(found), 1)
        d = found[0]
        self.assertEqual((d.contributor, d.reported, d.tracked), ('Alice', 7, 2))
        self.assertEqual(d.message, 'Reported 7 issues but found 2 on project board')

    def test_username_missing_from_tracker_counts_as_zero(self):
        records = [EngagementRecord(name='Dee', github_username='dee', issue_count=3)]
        found = validate_contributions(records, _tracker())
        self.assertEqual([(d.reported, d.tracked) for d in found], [(3, 0)])
        self.assertEqual(validate_contributions(records, _tracker(), max_difference=3), [])

    def test_no_tracker_means_no_discrepancies(self):
        records = [EngagementRecord(name='Dee', github_username='dee', issue_count=30)]
        self.assertEqual(validate_contributions(records, None), [])
        self.assertEqual(validate_contributions(records, {'issues': 5}), [])


if __name__ == '__main__':
    unittest.main()
