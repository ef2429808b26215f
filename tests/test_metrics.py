import unittest

from normalize.models import EngagementRecord
from normalize.util import normalize_records
from normalize.weeks import index_weeks
from scoring import metrics


def _rec(**kw):
    return EngagementRecord(**kw)


class TestNps(unittest.TestCase):
    def test_nps_scenario(self):
        records = [_rec(recommend_score=s) for s in (9, 9, 5, 10)]
        self.assertEqual(metrics.nps_score(records), 50)

    def test_nps_negative_half_rounds_up(self):
        records = [_rec(recommend_score=s) for s in (1, 7, 7, 7, 7, 7, 7, 7)]
        self.assertEqual(metrics.nps_score(records), -12)

    def test_nps_ignores_missing_scores(self):
        records = [_rec(recommend_score=0), _rec(recommend_score=3)]
        self.assertEqual(metrics.nps_score(records), -100)
        self.assertEqual(metrics.nps_score([_rec()]), 0)
        self.assertEqual(metrics.nps_score([]), 0)

    def test_nps_bounds(self):
        for scores in ([10], [1], [7, 8], [9, 1, 1]):
            value = metrics.nps_score([_rec(recommend_score=s) for s in scores])
            self.assertGreaterEqual(value, -100)
            self.assertLessEqual(value, 100)


class TestEngagementRate(unittest.TestCase):
    def test_rate(self):
        records = [_rec(engagement_score=t) for t in (3, 2, 1, 0)]
        self.assertEqual(metrics.engagement_rate(records), 50)
        self.assertEqual(metrics.engagement_rate([_rec(engagement_score=3)] * 2 + [_rec()]), 67)
        self.assertEqual(metrics.engagement_rate([]), 0)


class TestWeeklyChange(unittest.TestCase):
    def _buckets(self, *totals):
        records = [_rec(week=f"Week {i + 1}", issue_count=t) for i, t in enumerate(totals)]
        return index_weeks(records)

    def test_drop(self):
        self.assertEqual(metrics.weekly_change(self._buckets(10, 5)), -50)

    def test_negative_half_rounds_up(self):
        self.assertEqual(metrics.weekly_change(self._buckets(8, 7)), -12)
        self.assertEqual(metrics.weekly_change(self._buckets(8, 9)), 13)

    def test_from_zero(self):
        self.assertEqual(metrics.weekly_change(self._buckets(0, 4)), 100)
        self.assertEqual(metrics.weekly_change(self._buckets(0, 0)), 0)

    def test_identical_weeks(self):
        self.assertEqual(metrics.weekly_change(self._buckets(6, 6)), 0)

    def test_uses_latest_two_and_can_exceed_100(self):
        self.assertEqual(metrics.weekly_change(self._buckets(50, 2, 7)), 250)

    def test_fewer_than_two_buckets(self):
        self.assertEqual(metrics.weekly_change(self._buckets(3)), 0)
        self.assertEqual(metrics.weekly_change([]), 0)


class TestTotalsAndSeries(unittest.TestCase):
    def test_alice_bob_scenario(self):
        raws = [
            {'Name': 'Alice', 'Program Week': 'Week 1 (2024-01-01)', 'Engagement Participation ': '3 - Highly engaged',
             'How many issues, PRs, or projects this week?': '2', 'Which Tech Partner': 'IPFS'},
            {'Name': 'Bob', 'Program Week': 'Week 1 (2024-01-01)', 'Engagement Participation ': '2 - Participated occasionally',
             'How many issues, PRs, or projects this week?': '1', 'Which Tech Partner': 'Libp2p'},
        ]
        records = normalize_records(raws)
        self.assertEqual(metrics.engagement_rate(records), 100)
        self.assertEqual(metrics.active_tech_partners(records), 2)
        self.assertEqual(metrics.compute_totals(records), (2, 3))

    def test_totals_use_raw_names(self):
        records = [_rec(name='Matt Wong', canonical_name='MattWong-ca', issue_count=1),
                   _rec(name='matthew wong', canonical_name='MattWong-ca', issue_count=2),
                   _rec(name='', issue_count=4)]
        self.assertEqual(metrics.compute_totals(records), (2, 7))

    def test_trends_and_progress_follow_week_order(self):
        records = [
            _rec(week='Week 2 (2024-01-08)', engagement_score=3, issue_count=2),
            _rec(week='Week 1 (2024-01-01)', engagement_score=2, issue_count=1),
            _rec(week='Week 1 (2024-01-01)', engagement_score=1, issue_count=1),
        ]
        buckets = index_weeks(records)
        trends = metrics.engagement_trends(buckets)
        self.assertEqual([t.week for t in trends], ['Week 1', 'Week 2'])
        self.assertEqual((trends[0].high, trends[0].medium, trends[0].low, trends[0].total), (0, 1, 1, 2))
        progress = metrics.technical_progress(buckets)
        self.assertEqual([p.total_issues for p in progress], [2, 2])

    def test_feedback_sentiment(self):
        records = [_rec(feedback='Great mentors'), _rec(feedback='good'), _rec(feedback='Bad timing'),
                   _rec(feedback='ok I guess'), _rec(feedback='')]
        sentiment = metrics.feedback_sentiment(records)
        self.assertEqual((sentiment.positive, sentiment.neutral, sentiment.negative), (2, 1, 1))

    def test_active_partners_require_collaboration(self):
        records = [_rec(partners=('IPFS',), partner_collaboration=True),
                   _rec(partners=('Drand',), partner_collaboration=False)]
        self.assertEqual(metrics.active_tech_partners(records), 1)

    def test_key_highlights_strings(self):
        h = metrics.key_highlights(5, 2, 12, 3, -25)
        self.assertEqual(h.active_contributors_across_partners, '5 across 2')
        self.assertEqual(h.total_contributions, '12 total')
        self.assertEqual(h.positive_feedback, '3 positive')
        self.assertEqual(h.weekly_contributions, '-25% change')


if __name__ == '__main__':
    unittest.main()
