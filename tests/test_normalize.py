import unittest

from normalize.aliases import apply_duplicate_rules, lookup, merged_aliases
from normalize.models import EngagementRecord
from normalize.util import (
    coerce_count,
    coerce_score,
    normalize_record,
    normalize_records,
    parse_flag,
    participation_tier,
    resolve_contributor,
    split_partners,
)
from scoring.metrics import engagement_rate
from scoring.utils import PipelineSettings


class TestCoercion(unittest.TestCase):
    def test_coerce_count_leading_integer(self):
        self.assertEqual(coerce_count('4+'), 4)
        self.assertEqual(coerce_count(' 3 issues'), 3)
        self.assertEqual(coerce_count(7), 7)
        self.assertEqual(coerce_count(2.9), 2)

    def test_coerce_count_defaults_to_zero(self):
        for value in (None, '', 'lots', '-5', -2, True, float('nan'), float('inf'), {}, []):
            self.assertEqual(coerce_count(value), 0, value)

    def test_coerce_score_range(self):
        self.assertEqual(coerce_score('9'), 9)
        self.assertEqual(coerce_score(10), 10)
        self.assertEqual(coerce_score('11'), 0)
        self.assertEqual(coerce_score(None), 0)

    def test_participation_tier(self):
        self.assertEqual(participation_tier('3 - Highly engaged'), 3)
        self.assertEqual(participation_tier('2 - Participated occasionally'), 2)
        self.assertEqual(participation_tier(' 1 - Did not participate'), 1)
        self.assertEqual(participation_tier('4 - Off the charts'), 0)
        self.assertEqual(participation_tier('Highly engaged'), 0)
        self.assertEqual(participation_tier('12'), 0)
        self.assertEqual(participation_tier(None), 0)

    def test_parse_flag(self):
        self.assertTrue(parse_flag('Yes'))
        self.assertFalse(parse_flag(' no '))
        self.assertIsNone(parse_flag('maybe'))
        self.assertIsNone(parse_flag(None))


class TestNames(unittest.TestCase):
    def test_split_partners_string(self):
        self.assertEqual(split_partners('ipfs, Libp2p ,, IPFS'), ('IPFS', 'Libp2p'))

    def test_split_partners_list_and_unknown(self):
        self.assertEqual(split_partners(['Drand', 'Acme Labs, fil-b']), ('Drand', 'Acme Labs', 'Fil-B'))
        self.assertEqual(split_partners(None), ())
        self.assertEqual(split_partners('[]'), ())

    def test_resolve_contributor(self):
        self.assertEqual(resolve_contributor('  Matt Wong '), 'MattWong-ca')
        self.assertEqual(resolve_contributor('Someone New '), 'Someone New')
        self.assertEqual(resolve_contributor('Custom', {'custom': 'custom-handle'}), 'custom-handle')

    def test_alias_helpers(self):
        table = merged_aliases({'a': 'A'}, {' B ': 'Bee'})
        self.assertEqual(lookup('b', table), 'Bee')
        self.assertEqual(lookup(' c ', table), 'c')
        self.assertEqual(apply_duplicate_rules('nick LIONIS'), 'Nick Lionis')
        self.assertEqual(apply_duplicate_rules('Manu Sheel'), 'Manu Sheel Gupta')
        self.assertEqual(apply_duplicate_rules('Nick Cave'), 'Nick Cave')


class TestNormalizeRecord(unittest.TestCase):
    def test_full_row(self):
        raw = {
            'Name': ' Viraj B ',
            'Github Username': 'virajbhartiya',
            'Program Week': 'Week 2 (2024-01-08)',
            'Engagement Participation ': '3 - Highly engaged',
            'Tech Partner Collaboration?': 'Yes',
            'Which Tech Partner': 'IPFS, Storacha',
            'How many issues, PRs, or projects this week?': '4+',
            'How likely are you to recommend the PLDG to others?': '9',
            'PLDG Feedback': 'Great sessions',
            'cohortId': '2',
        }
        rec = normalize_record(raw)
        self.assertEqual(rec.name, 'Viraj B')
        self.assertEqual(rec.canonical_name, 'virajbhartiya')
        self.assertEqual(rec.week, 'Week 2 (2024-01-08)')
        self.assertEqual(rec.engagement_score, 3)
        self.assertTrue(rec.partner_collaboration)
        self.assertEqual(rec.partners, ('IPFS', 'Storacha'))
        self.assertEqual(rec.partner_set, frozenset({'IPFS', 'Storacha'}))
        self.assertEqual(rec.issue_count, 4)
        self.assertEqual(rec.recommend_score, 9)
        self.assertEqual(rec.feedback, 'Great sessions')
        self.assertEqual(rec.cohort_id, '2')

    def test_collaboration_falls_back_to_partner_presence(self):
        self.assertTrue(normalize_record({'Which Tech Partner': 'Drand'}).partner_collaboration)
        self.assertFalse(normalize_record({'Which Tech Partner': ''}).partner_collaboration)
        explicit_no = normalize_record({'Which Tech Partner': 'Drand', 'Tech Partner Collaboration?': 'No'})
        self.assertFalse(explicit_no.partner_collaboration)

    def test_settings_aliases_are_applied(self):
        settings = PipelineSettings(partner_aliases={'acme': 'ACME'}, contributor_aliases={'al': 'Alice'})
        rec = normalize_record({'Name': 'al', 'Which Tech Partner': 'acme'}, settings)
        self.assertEqual(rec.canonical_name, 'Alice')
        self.assertEqual(rec.partners, ('ACME',))

    def test_malformed_input_never_raises(self):
        self.assertEqual(normalize_record(None), EngagementRecord())
        self.assertEqual(normalize_record(['not', 'a', 'mapping']), EngagementRecord())
        rec = normalize_record({'Name': 42, 'How many issues, PRs, or projects this week?': object()})
        self.assertEqual(rec.name, '42')
        self.assertEqual(rec.issue_count, 0)

    def test_normalize_records_shapes(self):
        self.assertEqual(normalize_records(None), [])
        self.assertEqual(normalize_records('Name'), [])
        self.assertEqual(normalize_records({'Name': 'x'}), [])
        self.assertEqual(normalize_records(42), [])
        self.assertEqual(len(normalize_records([{'Name': 'a'}, None])), 1)

    def test_non_mapping_rows_do_not_dilute_engagement_rate(self):
        records = normalize_records([{'Name': 'a', 'Engagement Participation ': '3 - Highly engaged'}, None, 'row', 7])
        self.assertEqual([r.name for r in records], ['a'])
        self.assertEqual(engagement_rate(records), 100)


if __name__ == '__main__':
    unittest.main()
