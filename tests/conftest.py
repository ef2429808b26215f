import sys
import os

import pytest

# Add project root to sys.path so tests can import top-level packages like 'normalize', 'scoring', 'snapshot', etc.
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)


@pytest.fixture
def make_row():
    """Build a raw survey row using the spreadsheet's column names."""
    def _row(name='Alice', week='Week 1 (2024-01-01)', participation='3 - Highly engaged', issues='1',
             partner='IPFS', collaboration=None, recommend=None, feedback=None, **extra):
        row = {
            'Name': name,
            'Program Week': week,
            'Engagement Participation ': participation,
            'How many issues, PRs, or projects this week?': issues,
            'Which Tech Partner': partner,
        }
        if collaboration is not None:
            row['Tech Partner Collaboration?'] = collaboration
        if recommend is not None:
            row['How likely are you to recommend the PLDG to others?'] = recommend
        if feedback is not None:
            row['PLDG Feedback'] = feedback
        row.update(extra)
        return row
    return _row
