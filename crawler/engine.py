from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Dict, List, Optional

from .fetchers import Fetcher
from .metrics import MetricsCollector
from .spider import Spider
from .storage import ItemSink, RequestQueue
from .worker import Worker, WorkerState

logger = logging.getLogger(__name__)


class Engine:
    """Starts and stops pools of workers, one pool per spider name.

    Each worker gets its own fetcher from fetcher_factory so transport
    sessions are never shared across threads."""

    def __init__(
        self,
        queue: RequestQueue,
        sink: ItemSink,
        fetcher_factory: Callable[[], Fetcher],
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self._queue = queue
        self._sink = sink
        self._fetcher_factory = fetcher_factory
        self._metrics = metrics
        self._lock = threading.Lock()
        self._workers: Dict[str, List[Worker]] = {}

    def start_spider(self, spider: Spider, workers: int = 1) -> List[Worker]:
        """Seed the spider's start requests and start its workers."""
        if workers < 1:
            raise ValueError("workers must be at least 1")
        with self._lock:
            if spider.name in self._workers:
                raise ValueError(f"Spider {spider.name} is already running")
            seeded = 0
            for request in spider.start_requests():
                self._queue.store(spider.name, request)
                seeded += 1
            pool = [
                Worker(spider, self._queue, self._sink, self._fetcher_factory(), metrics=self._metrics)
                for _ in range(workers)
            ]
            self._workers[spider.name] = pool

        for worker in pool:
            worker.start()
        logger.info("Started spider %s with %d worker(s), %d seed request(s)", spider.name, workers, seeded)
        return pool

    def stop_spider(self, name: str, wait: bool = True) -> None:
        with self._lock:
            pool = self._workers.pop(name, None)
        if pool is None:
            raise KeyError(name)
        for worker in pool:
            worker.stop(wait=wait)
        logger.info("Stopped spider %s", name)

    def stop_all(self, wait: bool = True) -> None:
        for name in self.running_spiders():
            self.stop_spider(name, wait=wait)

    def running_spiders(self) -> List[str]:
        with self._lock:
            return list(self._workers)

    def is_idle(self, name: str) -> bool:
        """True when no request is pending and every worker is waiting on its timer."""
        with self._lock:
            pool = list(self._workers.get(name, ()))
        if self._queue.size(name) > 0:
            return False
        return all(w.state == WorkerState.IDLE for w in pool)

    def wait_until_idle(
        self,
        name: str,
        idle_secs: float,
        timeout: Optional[float] = None,
        poll_secs: float = 0.05,
    ) -> bool:
        """Block until the spider has been idle for idle_secs; False on timeout."""
        deadline = None if timeout is None else time.monotonic() + timeout
        idle_since: Optional[float] = None
        while True:
            now = time.monotonic()
            if self.is_idle(name):
                if idle_since is None:
                    idle_since = now
                if now - idle_since >= idle_secs:
                    return True
            else:
                idle_since = None
            if deadline is not None and now >= deadline:
                return False
            time.sleep(poll_secs)
