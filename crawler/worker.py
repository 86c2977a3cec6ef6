from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from typing import Any, Optional

from .backoff import IdleBackoff
from .config import get_settings
from .errors import DispatchFailure, FetchFailure, ParseFailure
from .fetchers import Fetcher, is_success
from .metrics import MetricsCollector
from .models import CycleOutcome, CycleResult, ParsedItem, Request
from .retry import RetryPolicy
from .spider import Spider
from .storage import ItemSink, RequestQueue

logger = logging.getLogger(__name__)


class WorkerState(str, Enum):
    IDLE = "idle"
    WORKING = "working"


class Worker:
    """Single-threaded actor driving the fetch -> parse -> dispatch cycle for one spider.

    The worker wakes on its own timer, pops one request and runs the
    pipeline to completion before re-arming. An empty queue doubles the
    wait; any cycle that popped a request resets it to the base delay.
    Fetch failures go through the retry policy, parse failures are logged
    and dropped, and queue/sink errors are logged as unexpected. Nothing
    escapes a cycle, so the loop keeps running until stop() is called.

    Several workers may share one spider name; they only coordinate
    through the request queue and item sink.
    """

    def __init__(
        self,
        spider: Spider,
        queue: RequestQueue,
        sink: ItemSink,
        fetcher: Fetcher,
        metrics: Optional[MetricsCollector] = None,
        backoff: Optional[IdleBackoff] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ) -> None:
        if backoff is None:
            settings = get_settings()
            backoff = IdleBackoff(settings.base_backoff_ms, settings.max_backoff_ms)
        self._spider = spider
        self._queue = queue
        self._sink = sink
        self._fetcher = fetcher
        self._metrics = metrics
        self._backoff = backoff
        self._retry = retry_policy or RetryPolicy()

        self._backoff_ms = backoff.initial()
        self._state = WorkerState.IDLE
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def spider_name(self) -> str:
        return self._spider.name

    @property
    def backoff_ms(self) -> int:
        return self._backoff_ms

    @property
    def state(self) -> WorkerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Arm the first wake-up after the base delay on a background thread."""
        if self.is_running:
            raise RuntimeError(f"worker for {self.spider_name} already started")
        self._stop_event.clear()
        self._backoff_ms = self._backoff.initial()
        self._thread = threading.Thread(
            target=self._loop,
            name=f"crawler-worker-{self.spider_name}",
            daemon=True,
        )
        self._thread.start()
        logger.info("Worker for %s started", self.spider_name)

    def stop(self, wait: bool = True, timeout: Optional[float] = None) -> None:
        """Stop re-arming; an in-flight cycle always runs to completion."""
        self._stop_event.set()
        if wait and self._thread is not None:
            self._thread.join(timeout=timeout)
        logger.info("Worker for %s stopped", self.spider_name)

    def _loop(self) -> None:
        while not self._stop_event.wait(self._wait_secs()):
            try:
                self.run_cycle()
            except Exception:  # noqa: BLE001
                logger.exception("Crawler worker for %s hit an unexpected error", self.spider_name)
                self._state = WorkerState.IDLE
                self._backoff_ms = self._backoff.on_activity()

    def _wait_secs(self) -> float:
        # Event.wait rejects timeouts above TIMEOUT_MAX
        return min(self._backoff_ms / 1000.0, threading.TIMEOUT_MAX)

    def run_cycle(self) -> CycleResult:
        """Execute exactly one work cycle and return what happened.

        Errors from RequestQueue.pop() are not classified and propagate to
        the caller. A failed retry re-enqueue is logged and the cycle still
        counts as a fetch failure."""
        self._state = WorkerState.WORKING
        try:
            request = self._queue.pop(self.spider_name)
            if request is None:
                self._backoff_ms = self._backoff.on_empty(self._backoff_ms)
                logger.debug("No requests for %s, sleeping %d ms", self.spider_name, self._backoff_ms)
                result = CycleResult(
                    spider_name=self.spider_name,
                    outcome=CycleOutcome.IDLE,
                    next_delay_ms=self._backoff_ms,
                )
            else:
                result = self._process(request)
        finally:
            self._state = WorkerState.IDLE

        if self._metrics:
            self._metrics.record_result(result)
        return result

    def _process(self, request: Request) -> CycleResult:
        start_ms = self._now_ms()
        status_code = None
        error_type = None
        outcome = CycleOutcome.SUCCESS

        try:
            response = self._fetch(request)
            status_code = response.status_code
            parsed = self._parse(request, response)
            self._dispatch(request, parsed, response)
        except FetchFailure as exc:
            outcome, status_code, error_type = CycleOutcome.FETCH_FAILURE, exc.status_code, exc.error_type
            self._log_failure(request, exc)
            self._requeue(request)
        except ParseFailure as exc:
            outcome, error_type = CycleOutcome.PARSE_FAILURE, exc.error_type
            self._log_failure(request, exc)
        except DispatchFailure as exc:
            outcome, error_type = CycleOutcome.DISPATCH_FAILURE, exc.error_type
            self._log_failure(request, exc)

        self._backoff_ms = self._backoff.on_activity()
        return CycleResult(
            spider_name=self.spider_name,
            outcome=outcome,
            next_delay_ms=self._backoff_ms,
            url=request.url,
            status_code=status_code,
            latency_ms=self._now_ms() - start_ms,
            error_type=error_type,
        )

    def _requeue(self, request: Request) -> None:
        try:
            self._retry.maybe_retry(self._queue, self.spider_name, request)
        except Exception:  # noqa: BLE001
            logger.exception("Could not re-enqueue %s for retry", request.url)

    def _fetch(self, request: Request) -> Any:
        try:
            response = self._fetcher.fetch(request)
        except Exception as exc:  # noqa: BLE001
            raise FetchFailure(request, cause=exc) from exc
        if not is_success(response):
            raise FetchFailure(request, status_code=getattr(response, "status_code", None))
        return response

    def _parse(self, request: Request, response: Any) -> ParsedItem:
        try:
            return ParsedItem.coerce(self._spider.parse_item(response))
        except Exception as exc:  # noqa: BLE001
            raise ParseFailure(request, exc) from exc

    def _dispatch(self, request: Request, parsed: ParsedItem, response: Any) -> None:
        # read per dispatch, never cached on the worker
        options = get_settings().fetch_options()
        try:
            for new_request in parsed.requests:
                self._queue.store(self.spider_name, new_request.derive(response, options))
            for item in parsed.items:
                self._sink.store(self.spider_name, item)
        except Exception as exc:  # noqa: BLE001
            raise DispatchFailure(request, exc) from exc

    def _log_failure(self, request: Request, exc: Exception) -> None:
        cause = getattr(exc, "cause", None)
        logger.error(
            "Crawler worker could not process the request to %s, reason: %s",
            request.url,
            exc,
            exc_info=cause if isinstance(exc, (ParseFailure, DispatchFailure)) else None,
        )

    @staticmethod
    def _now_ms() -> int:
        return int(time.time() * 1000)
