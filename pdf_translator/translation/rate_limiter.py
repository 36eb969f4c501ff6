"""Request pacing for the Google Translate client.

Worker threads share one `RateLimiter`. Each acquire reserves the next free
slot for its key, so concurrent segments on one language pair reach the API
at least `min_interval_seconds` apart.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import threading
from time import monotonic, sleep
from typing import Callable


@dataclass(slots=True)
class RateLimiter:
    """Thread-safe minimum-interval pacing keyed by language pair."""

    min_interval_seconds: float = 0.0
    clock: Callable[[], float] = monotonic
    sleeper: Callable[[float], None] = sleep
    _reserved_until: dict[str, float] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def acquire(self, key: str) -> None:
        """Wait for the slot reserved for `key`; a zero interval disables pacing."""

        if self.min_interval_seconds <= 0.0:
            return
        with self._lock:
            now = self.clock()
            start_at = max(now, self._reserved_until.get(key, 0.0))
            self._reserved_until[key] = start_at + self.min_interval_seconds
        # Sleep outside the lock so other keys are not held up.
        delay = start_at - now
        if delay > 0.0:
            self.sleeper(delay)
