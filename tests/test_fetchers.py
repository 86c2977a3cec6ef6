"""Tests for the HTTP fetchers."""

import unittest
from types import SimpleNamespace
from unittest import mock

from crawler.fetchers import CurlCffiFetcher, RequestsFetcher, is_success
from crawler.models import Request


class TestIsSuccess(unittest.TestCase):
    """Only status 200 is a successful fetch."""

    def test_statuses(self):
        """200 passes; other codes and missing status fail."""
        self.assertTrue(is_success(SimpleNamespace(status_code=200)))
        for code in (201, 204, 301, 404, 500):
            self.assertFalse(is_success(SimpleNamespace(status_code=code)))
        self.assertFalse(is_success(object()))


class TestRequestsFetcher(unittest.TestCase):
    """Verify request fields map onto requests.Session.get."""

    def test_passes_headers_and_options(self):
        """Headers, redirect flag and proxy are forwarded."""
        session = mock.Mock()
        fetcher = RequestsFetcher(timeout=5, session=session)
        request = Request(
            url="http://x/1",
            headers=[("Accept", "text/html"), ("X-Tag", "1"), ("X-Tag", "2")],
            options=[("follow_redirect", True), ("proxy", "http://proxy:3128")],
        )
        fetcher.fetch(request)
        session.get.assert_called_once_with(
            "http://x/1",
            headers={"Accept": "text/html", "X-Tag": "2"},
            proxies={"http": "http://proxy:3128", "https": "http://proxy:3128"},
            allow_redirects=True,
            timeout=5,
        )

    def test_seed_request_defaults(self):
        """A bare request does not follow redirects and uses no proxy."""
        session = mock.Mock()
        RequestsFetcher(session=session).fetch(Request(url="http://x/1"))
        kwargs = session.get.call_args.kwargs
        self.assertIsNone(kwargs["headers"])
        self.assertIsNone(kwargs["proxies"])
        self.assertFalse(kwargs["allow_redirects"])

    def test_transport_error_propagates(self):
        """Transport errors are raised to the worker."""
        session = mock.Mock()
        session.get.side_effect = ConnectionError("refused")
        with self.assertRaises(ConnectionError):
            RequestsFetcher(session=session).fetch(Request(url="http://x/1"))


class TestCurlCffiFetcher(unittest.TestCase):
    """Verify the curl_cffi fetcher impersonates a browser and closes its session."""

    def test_uses_impersonation(self):
        """Each fetch opens and closes its own session."""
        with mock.patch("crawler.fetchers.curl_requests.Session") as session_cls:
            session = session_cls.return_value
            CurlCffiFetcher(timeout=3, impersonate="chrome120").fetch(Request(url="http://x/1"))
        kwargs = session.get.call_args.kwargs
        self.assertEqual(kwargs["impersonate"], "chrome120")
        self.assertEqual(kwargs["timeout"], 3)
        session.close.assert_called_once_with()


if __name__ == "__main__":
    unittest.main()
