import os
import tempfile
import unittest
from unittest.mock import patch

from scoring.utils import MAX_TOP_PERFORMERS, PipelineSettings, SettingsError, load_settings, settings_from_mapping


class TestSettings(unittest.TestCase):
    def _yaml(self, text):
        fd, path = tempfile.mkstemp(suffix='.yaml')
        with os.fdopen(fd, 'w', encoding='utf-8') as fh:
            fh.write(text)
        self.addCleanup(os.remove, path)
        return path

    def test_bundled_defaults_load(self):
        settings = load_settings()
        self.assertEqual(settings.top_performer_limit, MAX_TOP_PERFORMERS)
        self.assertEqual(settings.new_contributor_weeks, (1, 2))
        self.assertEqual(settings.max_issue_difference, 2)

    def test_explicit_file_overrides(self):
        path = self._yaml("top_performer_limit: 5\nnew_contributor_weeks: [3]\npartner_aliases:\n  ACME Corp: Acme\n")
        settings = load_settings(path)
        self.assertEqual(settings.top_performer_limit, 5)
        self.assertEqual(settings.new_contributor_weeks, (3,))
        self.assertEqual(settings.partner_aliases, {'acme corp': 'Acme'})

    def test_limit_is_clamped(self):
        self.assertEqual(settings_from_mapping({'top_performer_limit': 50}).top_performer_limit, MAX_TOP_PERFORMERS)
        self.assertEqual(settings_from_mapping({'top_performer_limit': 'x'}).top_performer_limit, MAX_TOP_PERFORMERS)

    def test_explicit_missing_or_invalid_file_raises(self):
        with self.assertRaises(SettingsError):
            load_settings('/no/such/pipeline.yaml')
        with self.assertRaises(SettingsError):
            load_settings(self._yaml("- just\n- a list\n"))

    def test_missing_default_file_falls_back(self):
        with patch.dict(os.environ, {'ENGAGE_CONFIG': '/no/such/default.yaml'}):
            self.assertEqual(load_settings(), PipelineSettings())


if __name__ == '__main__':
    unittest.main()
