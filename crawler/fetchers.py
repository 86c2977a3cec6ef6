from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import requests
from curl_cffi import requests as curl_requests

from .models import Request


def is_success(response: Any) -> bool:
    """Only a plain 200 counts as a successful fetch."""
    return getattr(response, "status_code", None) == 200


class Fetcher(ABC):
    """Performs the network fetch for a Request.

    Implementations return a response object exposing status_code and raise
    on transport errors; status interpretation is left to the worker."""

    def __init__(self, timeout: float = 20.0) -> None:
        self._timeout = timeout

    @abstractmethod
    def fetch(self, request: Request) -> Any:
        ...

    @staticmethod
    def _headers(request: Request) -> Dict[str, str]:
        # later duplicates win when collapsing to the client's mapping
        return {name: value for name, value in request.headers}

    @staticmethod
    def _proxies(request: Request) -> Optional[Dict[str, str]]:
        proxy = request.option("proxy")
        if not proxy:
            return None
        return {"http": proxy, "https": proxy}


class RequestsFetcher(Fetcher):
    def __init__(self, timeout: float = 20.0, session: Optional[requests.Session] = None) -> None:
        super().__init__(timeout)
        self._session = session or requests.Session()

    def fetch(self, request: Request) -> Any:
        return self._session.get(
            request.url,
            headers=self._headers(request) or None,
            proxies=self._proxies(request),
            allow_redirects=bool(request.option("follow_redirect", False)),
            timeout=self._timeout,
        )


class CurlCffiFetcher(Fetcher):
    """Fetcher impersonating a browser TLS fingerprint via curl_cffi.

    Uses a fresh session per fetch; curl sessions are not shared across
    worker threads."""

    def __init__(self, timeout: float = 20.0, impersonate: str = "chrome120") -> None:
        super().__init__(timeout)
        self._impersonate = impersonate

    def fetch(self, request: Request) -> Any:
        session = curl_requests.Session()
        try:
            return session.get(
                request.url,
                headers=self._headers(request) or None,
                proxies=self._proxies(request),
                allow_redirects=bool(request.option("follow_redirect", False)),
                impersonate=self._impersonate,
                timeout=self._timeout,
            )
        finally:
            session.close()
