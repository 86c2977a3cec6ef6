from __future__ import annotations

import logging
from typing import Optional

from .config import get_settings
from .models import Request
from .storage import RequestQueue

logger = logging.getLogger(__name__)


class RetryPolicy:
    """Bounded re-enqueue of requests whose fetch failed.

    A request is stored again while retries <= max_retries. The inclusive
    bound means a request gets one extra attempt beyond max_retries."""

    def __init__(self, max_retries: Optional[int] = None) -> None:
        self._max_retries = max_retries

    @property
    def max_retries(self) -> int:
        if self._max_retries is not None:
            return self._max_retries
        return get_settings().max_retries

    def should_retry(self, request: Request) -> bool:
        return request.retries <= self.max_retries

    def maybe_retry(self, queue: RequestQueue, spider_name: str, request: Request) -> bool:
        """Re-enqueue a copy of request with retries + 1, or drop it."""
        if not self.should_retry(request):
            logger.info("Dropping request to %s (max retries)", request.url)
            return False
        queue.store(spider_name, request.with_retry())
        logger.info("Request to %s is scheduled for retry (%d)", request.url, request.retries + 1)
        return True
