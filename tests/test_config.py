"""Tests for process-wide settings."""

import unittest

from crawler.config import CrawlerSettings, configure, get_settings, reset_settings


class TestSettings(unittest.TestCase):
    """Verify defaults, overrides and derived fetch options."""

    def tearDown(self):
        reset_settings()

    def test_defaults(self):
        """Defaults match the documented values."""
        settings = reset_settings()
        self.assertEqual(settings.max_retries, 3)
        self.assertFalse(settings.follow_redirect)
        self.assertIsNone(settings.proxy)
        self.assertEqual(settings.base_backoff_ms, 300)
        self.assertIsNone(settings.max_backoff_ms)

    def test_configure_replaces_values(self):
        """configure() is visible through get_settings()."""
        configure(max_retries=5)
        self.assertEqual(get_settings().max_retries, 5)

    def test_unknown_key_rejected(self):
        """Typos in setting names fail loudly."""
        with self.assertRaises(ValueError):
            configure(max_retry=5)

    def test_invalid_values_rejected(self):
        """Out of range values are refused."""
        with self.assertRaises(ValueError):
            CrawlerSettings(max_retries=-1)
        with self.assertRaises(ValueError):
            CrawlerSettings(base_backoff_ms=500, max_backoff_ms=100)

    def test_fetch_options_without_proxy(self):
        """Only the redirect flag is attached when no proxy is set."""
        self.assertEqual(CrawlerSettings().fetch_options(), (("follow_redirect", False),))

    def test_fetch_options_with_proxy(self):
        """A configured proxy follows the redirect flag."""
        settings = CrawlerSettings(follow_redirect=True, proxy="http://p:1")
        self.assertEqual(settings.fetch_options(), (("follow_redirect", True), ("proxy", "http://p:1")))


if __name__ == "__main__":
    unittest.main()
