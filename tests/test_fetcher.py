"""
Unit tests for the rate-limited fetcher
"""

import unittest
from unittest.mock import Mock, patch

import requests

from config import settings
from ecfr_wordcount.fetcher import FetchResult, FetchStatus, RateLimitedFetcher


def make_response(status_code=200, json_data=None, text=""):
    response = Mock()
    response.status_code = status_code
    response.text = text
    response.json.return_value = json_data
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status_code} Error")
    else:
        response.raise_for_status.return_value = None
    return response


class TestRateLimitedFetcher(unittest.TestCase):
    """Test cases for RateLimitedFetcher"""

    def setUp(self):
        self.session = Mock()
        self.sleeps = []
        self.fetcher = RateLimitedFetcher(
            base_url="https://example.test/api/",
            session=self.session,
            sleep=self.sleeps.append
        )

    def test_fetch_json_success(self):
        self.session.get.return_value = make_response(json_data={'agencies': []})

        result = self.fetcher.fetch_result("admin/v1/agencies.json")

        self.assertEqual(result, FetchResult(FetchStatus.OK, {'agencies': []}))
        self.assertTrue(result.ok)
        self.session.get.assert_called_once()
        url = self.session.get.call_args[0][0]
        self.assertEqual(url, "https://example.test/api/admin/v1/agencies.json")
        self.assertEqual(self.sleeps, [])

    def test_fetch_text_success(self):
        self.session.get.return_value = make_response(text="<P>words</P>")

        payload = self.fetcher.fetch("versioner/v1/full/2023-01-01/title-1.xml",
                                     expect_text=True, params={'part': '1'})

        self.assertEqual(payload, "<P>words</P>")
        self.assertEqual(self.session.get.call_args[1]['params'], {'part': '1'})

    def test_not_found_is_not_retried(self):
        self.session.get.return_value = make_response(status_code=404)

        result = self.fetcher.fetch_result("missing.json")

        self.assertEqual(result.status, FetchStatus.NOT_FOUND)
        self.assertIsNone(result.payload)
        self.assertEqual(self.session.get.call_count, 1)
        self.assertEqual(self.sleeps, [])

    def test_rate_limit_then_success(self):
        self.session.get.side_effect = [
            make_response(status_code=429),
            make_response(status_code=429),
            make_response(json_data={'ok': True}),
        ]

        result = self.fetcher.fetch_result("structure.json")

        self.assertEqual(result.payload, {'ok': True})
        self.assertEqual(len(self.sleeps), 2)
        self.assertTrue(1 <= self.sleeps[0] <= 1 + settings.MAX_JITTER)
        self.assertTrue(2 <= self.sleeps[1] <= 2 + settings.MAX_JITTER)

    def test_rate_limit_backoff_grows(self):
        """Consecutive 429 waits are non-decreasing and at least 2**attempt"""
        self.session.get.return_value = make_response(status_code=429)

        result = self.fetcher.fetch_result("structure.json")

        self.assertEqual(len(self.sleeps), settings.MAX_RETRIES - 1)
        for attempt, delay in enumerate(self.sleeps):
            self.assertGreaterEqual(delay, 2 ** attempt)
            self.assertLessEqual(delay, 2 ** attempt + settings.MAX_JITTER)
        self.assertEqual(self.sleeps, sorted(self.sleeps))
        self.assertEqual(result.status, FetchStatus.EXHAUSTED)

    def test_retry_budget_exhausted_returns_none(self):
        self.session.get.return_value = make_response(status_code=429)

        self.assertIsNone(self.fetcher.fetch("structure.json"))
        self.assertEqual(self.session.get.call_count, settings.MAX_RETRIES)

    def test_other_errors_wait_fixed_delay(self):
        self.session.get.side_effect = [
            requests.exceptions.ConnectionError("refused"),
            make_response(status_code=503),
            make_response(json_data=[1, 2]),
        ]

        result = self.fetcher.fetch_result("agencies.json")

        self.assertEqual(result.payload, [1, 2])
        self.assertEqual(self.sleeps, [settings.RETRY_DELAY, settings.RETRY_DELAY])

    def test_invalid_json_is_retried(self):
        bad = make_response()
        bad.json.side_effect = ValueError("Expecting value")
        self.session.get.side_effect = [bad, make_response(json_data={'a': 1})]

        result = self.fetcher.fetch_result("agencies.json")

        self.assertEqual(result.payload, {'a': 1})
        self.assertEqual(self.session.get.call_count, 2)

    def test_rate_limit_and_errors_share_budget(self):
        self.session.get.side_effect = [
            make_response(status_code=429),
            requests.exceptions.Timeout("slow"),
            make_response(status_code=429),
            make_response(status_code=500),
            make_response(status_code=429),
            make_response(json_data={'never': 'reached'}),
        ]

        result = self.fetcher.fetch_result("x.json")

        self.assertEqual(result.status, FetchStatus.EXHAUSTED)
        self.assertEqual(self.session.get.call_count, 5)

    def test_custom_max_retries(self):
        fetcher = RateLimitedFetcher(session=self.session, max_retries=2, sleep=self.sleeps.append)
        self.session.get.return_value = make_response(status_code=500)

        self.assertEqual(fetcher.fetch_result("x.json").status, FetchStatus.EXHAUSTED)
        self.assertEqual(self.session.get.call_count, 2)
        self.assertEqual(self.sleeps, [settings.RETRY_DELAY])

    def test_no_wait_after_final_attempt(self):
        """An exhausted fetch returns as soon as the last attempt fails"""
        self.session.get.side_effect = [
            make_response(status_code=500),
            make_response(status_code=500),
            make_response(status_code=500),
            make_response(status_code=500),
            make_response(status_code=429),
        ]

        result = self.fetcher.fetch_result("x.json")

        self.assertEqual(result.status, FetchStatus.EXHAUSTED)
        self.assertEqual(self.sleeps, [settings.RETRY_DELAY] * (settings.MAX_RETRIES - 1))

        self.sleeps.clear()
        self.session.get.side_effect = requests.exceptions.ConnectionError("refused")

        self.assertEqual(self.fetcher.fetch_result("x.json").status, FetchStatus.EXHAUSTED)
        self.assertEqual(len(self.sleeps), settings.MAX_RETRIES - 1)

    @patch('ecfr_wordcount.fetcher.random.uniform', return_value=0.5)
    def test_backoff_delay(self, mock_uniform):
        self.assertEqual(RateLimitedFetcher.backoff_delay(0), 1.5)
        self.assertEqual(RateLimitedFetcher.backoff_delay(3), 8.5)
        mock_uniform.assert_called_with(0, settings.MAX_JITTER)

    def test_default_session_headers(self):
        fetcher = RateLimitedFetcher()
        try:
            self.assertEqual(fetcher.session.headers['User-Agent'], settings.USER_AGENT)
            self.assertEqual(fetcher.base_url, settings.ECFR_API_BASE.rstrip('/'))
        finally:
            fetcher.close()


if __name__ == '__main__':
    unittest.main()
