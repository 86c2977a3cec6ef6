"""Tests for the RetryPolicy class."""

import unittest

from crawler.config import configure, reset_settings
from crawler.models import Request
from crawler.retry import RetryPolicy
from crawler.storage import MemoryRequestQueue


class TestRetryPolicy(unittest.TestCase):
    """Verify the inclusive retry bound."""

    def setUp(self):
        reset_settings()
        self.queue = MemoryRequestQueue()

    def tearDown(self):
        reset_settings()

    def test_first_failure_requeues(self):
        """retries 0 is stored again with retries 1."""
        with self.assertLogs("crawler.retry", level="INFO") as logs:
            retried = RetryPolicy().maybe_retry(self.queue, "s", Request(url="http://x/1"))
        self.assertTrue(retried)
        self.assertEqual(self.queue.pop("s"), Request(url="http://x/1", retries=1))
        self.assertIn("scheduled for retry", logs.output[0])

    def test_bound_is_inclusive(self):
        """retries equal to max_retries is retried once more."""
        policy = RetryPolicy(max_retries=3)
        self.assertTrue(policy.maybe_retry(self.queue, "s", Request(url="http://x/1", retries=3)))
        self.assertEqual(self.queue.pop("s").retries, 4)

    def test_above_bound_is_dropped(self):
        """Anything above max_retries is never re-enqueued."""
        policy = RetryPolicy(max_retries=3)
        for retries in (4, 5, 50):
            self.assertFalse(policy.maybe_retry(self.queue, "s", Request(url="http://x/1", retries=retries)))
        self.assertEqual(self.queue.size("s"), 0)

    def test_total_attempts(self):
        """A request that always fails is attempted max_retries + 2 times."""
        policy = RetryPolicy(max_retries=3)
        request = Request(url="http://x/1")
        attempts = 0
        while request is not None:
            attempts += 1
            policy.maybe_retry(self.queue, "s", request)
            request = self.queue.pop("s")
        self.assertEqual(attempts, 5)

    def test_reads_configured_max(self):
        """Without an explicit bound the process settings are used."""
        policy = RetryPolicy()
        configure(max_retries=0)
        self.assertTrue(policy.should_retry(Request(url="http://x/1", retries=0)))
        self.assertFalse(policy.should_retry(Request(url="http://x/1", retries=1)))


if __name__ == "__main__":
    unittest.main()
