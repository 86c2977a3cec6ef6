from __future__ import annotations

from typing import Optional


class IdleBackoff:
    """Exponential slow-down for workers polling an empty queue.

    The delay doubles on every empty poll and snaps back to the base value
    as soon as a request is popped, whether or not it was processed
    successfully. Growth is uncapped unless max_ms is given."""

    def __init__(self, base_ms: int = 300, max_ms: Optional[int] = None) -> None:
        if base_ms <= 0:
            raise ValueError("base_ms must be positive")
        self._base = base_ms
        self._max = max_ms

    @property
    def base_ms(self) -> int:
        return self._base

    def initial(self) -> int:
        return self._base

    def on_empty(self, current_ms: int) -> int:
        """Delay to use after a poll that found no work."""
        delay = max(current_ms, self._base) * 2
        if self._max is not None:
            delay = min(delay, max(self._max, self._base))
        return delay

    def on_activity(self) -> int:
        """Delay to use after a cycle that popped a request."""
        return self._base
