from __future__ import annotations

import json
import logging
import queue
import threading
import time
from abc import ABC, abstractmethod
from collections import defaultdict, deque
from typing import Any, Deque, Dict, List, Mapping, Optional, Tuple

from .models import Request

logger = logging.getLogger(__name__)


class RequestQueue(ABC):
    """Abstract store of pending requests, namespaced by spider name.

    pop() must hand each stored request to at most one caller, even when
    several workers share a spider name."""

    @abstractmethod
    def pop(self, spider_name: str) -> Optional[Request]:
        """Remove and return one pending request, or None when there is none."""

    @abstractmethod
    def store(self, spider_name: str, request: Request) -> None:
        """Enqueue a request for later popping."""

    @abstractmethod
    def size(self, spider_name: str) -> int:
        """Number of requests currently pending for the spider."""


class ItemSink(ABC):
    """Abstract store for extracted items, namespaced by spider name."""

    @abstractmethod
    def store(self, spider_name: str, item: Mapping[str, Any]) -> None:
        """Record a single extracted item."""

    def close(self) -> None:
        """Flush pending writes and release resources."""


class MemoryRequestQueue(RequestQueue):
    """Thread-safe FIFO queue per spider held in process memory."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._pending: Dict[str, Deque[Request]] = defaultdict(deque)

    def pop(self, spider_name: str) -> Optional[Request]:
        with self._lock:
            pending = self._pending.get(spider_name)
            if not pending:
                return None
            return pending.popleft()

    def store(self, spider_name: str, request: Request) -> None:
        with self._lock:
            self._pending[spider_name].append(request)

    def size(self, spider_name: str) -> int:
        with self._lock:
            return len(self._pending.get(spider_name, ()))


class MemoryItemSink(ItemSink):
    """Keeps items in memory; mostly useful for tests and short runs."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._items: Dict[str, List[Mapping[str, Any]]] = defaultdict(list)

    def store(self, spider_name: str, item: Mapping[str, Any]) -> None:
        with self._lock:
            self._items[spider_name].append(item)

    def items(self, spider_name: str) -> List[Mapping[str, Any]]:
        with self._lock:
            return list(self._items.get(spider_name, ()))


class JsonlItemSink(ItemSink):
    """Stores items as JSON Lines (.jsonl) using a background writer thread."""

    def __init__(self, path: str) -> None:
        self._path = path
        self._queue: queue.Queue[Optional[Tuple[str, Mapping[str, Any]]]] = queue.Queue()
        self._thread = threading.Thread(target=self._writer, daemon=True)
        self._thread.start()

    def store(self, spider_name: str, item: Mapping[str, Any]) -> None:
        """Enqueue an item for background writing."""
        self._queue.put((spider_name, item))

    def close(self) -> None:
        """Signal the writer thread to flush and stop."""
        self._queue.put(None)
        self._thread.join(timeout=5)

    def _writer(self) -> None:
        with open(self._path, "a", encoding="utf-8") as f:
            while True:
                entry = self._queue.get()
                if entry is None:
                    break
                spider_name, item = entry
                try:
                    record = {
                        "timestamp": time.time(),
                        "spider": spider_name,
                        "item": dict(item),
                    }
                    line = json.dumps(record, ensure_ascii=False, default=str)
                except Exception:  # noqa: BLE001
                    logger.exception("Could not serialise item for %s, skipping it", spider_name)
                    continue
                f.write(line + "\n")
                f.flush()
