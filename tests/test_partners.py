from normalize.models import EngagementRecord
from normalize.weeks import index_weeks
from scoring.partners import aggregate_partners


def _rec(name, week, partners, issues, tier=2):
    return EngagementRecord(name=name, canonical_name=name, week=week, partners=tuple(partners),
                            issue_count=issues, engagement_score=tier, partner_collaboration=True)


def _records():
    return [
        _rec('Alice', 'Week 2', ['IPFS', 'Libp2p'], 3, tier=3),
        _rec('Bob', 'Week 1', ['IPFS'], 2, tier=1),
        _rec('Alice', 'Week 1', ['IPFS'], 1, tier=3),
        _rec('Carol', 'Week 2', ['Libp2p'], 4, tier=2),
        _rec('Dan', 'Week 2', [], 9),
    ]


def test_partner_totals_and_contributors():
    metrics = {m.partner: m for m in aggregate_partners(index_weeks(_records()))}
    assert set(metrics) == {'IPFS', 'Libp2p'}
    assert metrics['IPFS'].total_issues == 6
    assert metrics['IPFS'].active_contributors == 2
    assert metrics['IPFS'].avg_issues_per_contributor == 3.0
    assert metrics['Libp2p'].total_issues == 7
    assert metrics['Libp2p'].active_contributors == 2


def test_total_equals_sum_of_time_series():
    for m in aggregate_partners(index_weeks(_records())):
        assert m.total_issues == sum(p.issue_count for p in m.time_series)


def test_time_series_is_chronological_with_engagement_level():
    ipfs = aggregate_partners(index_weeks(_records()))[0]
    assert ipfs.partner == 'IPFS'
    assert [p.week for p in ipfs.time_series] == ['Week 1', 'Week 2']
    week1 = ipfs.time_series[0]
    assert week1.week_number == 1
    assert week1.contributors == ('Bob', 'Alice')
    assert week1.issue_count == 3
    assert week1.engagement_level == 2.0


def test_records_without_week_or_partner_are_ignored():
    records = [_rec('Eve', '', ['Drand'], 5), _rec('Finn', 'Week 1', [], 2)]
    assert aggregate_partners(index_weeks(records)) == []
    assert aggregate_partners([]) == []
