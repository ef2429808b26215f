import unittest
from unittest.mock import Mock, patch

import requests

from storage import retry


def _response(status, body=None, headers=None):
    resp = Mock()
    resp.status_code = status
    resp.headers = headers or {}
    resp.json.return_value = body
    resp.text = str(body)
    return resp


class TestRetry(unittest.TestCase):
    def tearDown(self):
        retry.reset_retry()

    def test_success_first_try(self):
        with patch('storage.retry.requests.request', return_value=_response(200, {'ok': True})) as mocked:
            result = retry.perform_request_with_retries('http://x.local', max_retries=3, backoff_base=0, backoff_jitter=0)
        self.assertEqual(result['status'], 200)
        self.assertEqual(result['response'], {'ok': True})
        self.assertEqual(mocked.call_count, 1)

    @patch('storage.retry.time.sleep')
    def test_retries_rate_limited_then_succeeds(self, sleep):
        responses = [_response(429, headers={'Retry-After': '0'}), _response(200, {'ok': 1})]
        with patch('storage.retry.requests.request', side_effect=responses) as mocked:
            result = retry.perform_request_with_retries('http://x.local', max_retries=3, backoff_base=0, backoff_jitter=0)
        self.assertEqual(result['status'], 200)
        self.assertEqual(mocked.call_count, 2)
        self.assertTrue(sleep.called)

    @patch('storage.retry.time.sleep')
    def test_transport_errors_exhaust_attempts(self, sleep):
        with patch('storage.retry.requests.request', side_effect=requests.ConnectionError('down')) as mocked:
            result = retry.perform_request_with_retries('http://x.local', max_retries=2, backoff_base=0, backoff_jitter=0)
        self.assertEqual(result['status'], 0)
        self.assertIn('down', result['response'])
        self.assertEqual(mocked.call_count, 2)
        # no sleep after the final attempt
        self.assertEqual(sleep.call_count, 1)

    def test_client_error_is_not_retried(self):
        with patch('storage.retry.requests.request', return_value=_response(404, {'error': 'missing'})) as mocked:
            result = retry.perform_request_with_retries('http://x.local', max_retries=5)
        self.assertEqual(result['status'], 404)
        self.assertEqual(mocked.call_count, 1)

    @patch('storage.retry.time.sleep')
    def test_configure_retry_sets_attempts(self, sleep):
        retry.configure_retry(max_retries=4, backoff_base=0, backoff_jitter=0)
        with patch('storage.retry.requests.request', return_value=_response(503)) as mocked:
            result = retry.perform_request_with_retries('http://x.local')
        self.assertEqual(result['status'], 503)
        self.assertEqual(mocked.call_count, 4)

    @patch('storage.retry.time.sleep')
    def test_max_backoff_caps_retry_after(self, sleep):
        retry.configure_retry(max_backoff=2)
        responses = [_response(429, headers={'Retry-After': '90'}), _response(200, {'ok': 1})]
        with patch('storage.retry.requests.request', side_effect=responses):
            result = retry.perform_request_with_retries('http://x.local', max_retries=2, backoff_base=0, backoff_jitter=0)
        self.assertEqual(result['status'], 200)
        sleep.assert_called_once_with(2.0)

    def test_retry_after_parsing(self):
        self.assertEqual(retry._parse_retry_after('3'), 3.0)
        self.assertIsNone(retry._parse_retry_after('soon'))
        self.assertEqual(retry._parse_retry_after('Wed, 21 Oct 2015 07:28:00 GMT'), 0.0)


if __name__ == '__main__':
    unittest.main()
