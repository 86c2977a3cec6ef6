from __future__ import annotations

import threading
from dataclasses import dataclass, fields, replace
from typing import Any, Optional, Tuple


@dataclass(frozen=True)
class CrawlerSettings:
    """Process-wide crawler settings.

    Workers read these at retry and dispatch time through get_settings(),
    so a configure() call takes effect on the next cycle."""

    max_retries: int = 3
    follow_redirect: bool = False
    proxy: Optional[str] = None
    base_backoff_ms: int = 300
    max_backoff_ms: Optional[int] = None
    fetch_timeout: float = 20.0

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        if self.base_backoff_ms <= 0:
            raise ValueError("base_backoff_ms must be positive")
        if self.max_backoff_ms is not None and self.max_backoff_ms < self.base_backoff_ms:
            raise ValueError("max_backoff_ms must not be below base_backoff_ms")

    def fetch_options(self) -> Tuple[Tuple[str, Any], ...]:
        """Options attached to every request discovered while parsing."""
        options: Tuple[Tuple[str, Any], ...] = (("follow_redirect", self.follow_redirect),)
        if self.proxy:
            options += (("proxy", self.proxy),)
        return options


_lock = threading.Lock()
_settings = CrawlerSettings()


def get_settings() -> CrawlerSettings:
    return _settings


def configure(**overrides: Any) -> CrawlerSettings:
    """Replace selected settings and return the new settings object."""
    global _settings
    known = {f.name for f in fields(CrawlerSettings)}
    unknown = set(overrides) - known
    if unknown:
        raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")
    with _lock:
        _settings = replace(_settings, **overrides)
        return _settings


def reset_settings() -> CrawlerSettings:
    global _settings
    with _lock:
        _settings = CrawlerSettings()
        return _settings
