from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Iterable, Mapping, Optional, Tuple

Pair = Tuple[str, Any]


def _as_pairs(value: Any) -> Tuple[Pair, ...]:
    if value is None:
        return ()
    if isinstance(value, Mapping):
        value = value.items()
    return tuple((k, v) for k, v in value)


@dataclass(frozen=True)
class Request:
    """One unit of fetch work.

    headers and options are ordered pairs; duplicates are kept as given.
    prev_response is only set on requests derived from parsing a response.
    """

    url: str
    headers: Tuple[Pair, ...] = ()
    options: Tuple[Pair, ...] = ()
    prev_response: Optional[Any] = field(default=None, compare=False, repr=False)
    retries: int = 0

    def __post_init__(self) -> None:
        if not self.url:
            raise ValueError("request.url is required")
        if self.retries < 0:
            raise ValueError("request.retries must be non-negative")
        object.__setattr__(self, "headers", _as_pairs(self.headers))
        object.__setattr__(self, "options", _as_pairs(self.options))

    def with_retry(self) -> "Request":
        return replace(self, retries=self.retries + 1)

    def derive(self, prev_response: Any, options: Iterable[Pair]) -> "Request":
        """Attach lineage and fetch options to a request found while parsing."""
        return replace(self, prev_response=prev_response, options=tuple(options))

    def option(self, key: str, default: Any = None) -> Any:
        for k, v in self.options:
            if k == key:
                return v
        return default


@dataclass(frozen=True)
class ParsedItem:
    requests: Tuple[Request, ...] = ()
    items: Tuple[Mapping[str, Any], ...] = ()

    @classmethod
    def coerce(cls, output: Any) -> "ParsedItem":
        """Build a ParsedItem from whatever a spider's parse routine returned.

        Mappings may carry "requests" and "items" keys; any other key is
        ignored. Bare URL strings in "requests" become seed-style requests.
        Anything that does not fit raises TypeError before dispatch starts.
        """
        if output is None:
            return cls()
        if isinstance(output, ParsedItem):
            requests, items = output.requests, output.items
        elif isinstance(output, Mapping):
            requests, items = output.get("requests") or (), output.get("items") or ()
        else:
            raise TypeError(f"cannot build ParsedItem from {type(output).__name__}")

        checked = []
        for entry in _as_sequence("requests", requests):
            if isinstance(entry, str):
                entry = Request(url=entry)
            if not isinstance(entry, Request):
                raise TypeError(f"unexpected request entry: {entry!r}")
            checked.append(entry)
        records = _as_sequence("items", items)
        for item in records:
            if not isinstance(item, Mapping):
                raise TypeError(f"items must be mappings, got {type(item).__name__}")
        return cls(requests=tuple(checked), items=records)


def _as_sequence(name: str, value: Any) -> Tuple[Any, ...]:
    if isinstance(value, (str, bytes, Mapping)):
        raise TypeError(f"{name} must be a sequence, got {type(value).__name__}")
    try:
        return tuple(value)
    except TypeError:
        raise TypeError(f"{name} must be a sequence, got {type(value).__name__}") from None


class CycleOutcome(str, Enum):
    IDLE = "idle"
    SUCCESS = "success"
    FETCH_FAILURE = "fetch_failure"
    PARSE_FAILURE = "parse_failure"
    DISPATCH_FAILURE = "dispatch_failure"


@dataclass(frozen=True)
class CycleResult:
    spider_name: str
    outcome: CycleOutcome
    next_delay_ms: int
    url: Optional[str] = None
    status_code: Optional[int] = None
    latency_ms: int = 0
    error_type: Optional[str] = None


@dataclass(frozen=True)
class MetricsSnapshot:
    window_secs: int
    total_cycles: int
    idle_count: int
    success_count: int
    fetch_failure_count: int
    parse_failure_count: int
    dispatch_failure_count: int
    http_error_count: int
    avg_latency_ms: float
    timestamp: float
