import logging
import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass
class RateLimitEntry:
    timestamps: deque[float] = field(default_factory=deque)
    last_cleanup: float = 0.0


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    current_count: int
    retry_after: float = 0.0


class RateLimiter:
    """
    Fixed-window request counter kept in process memory.

    Each client key keeps the ordered timestamps of its admitted requests.
    Timestamps older than the window are pruned on every check, and a key whose
    entry has not been cleaned for two windows triggers a sweep over all keys,
    so idle clients are evicted without a background timer.

    State lives only in this process: a restart resets every counter and
    several instances do not share counts.
    """

    def __init__(
        self,
        max_attempts: int,
        time_window: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_attempts = max_attempts
        self.time_window = time_window
        self._clock = clock
        self._entries: dict[str, RateLimitEntry] = {}
        self._lock = threading.Lock()

    def check(self, identifier: str) -> RateLimitDecision:
        """
        Check the limit for ``identifier`` and record the request when admitted.
        """
        with self._lock:
            now = self._clock()
            entry = self._entries.get(identifier)
            if entry is None:
                entry = RateLimitEntry(last_cleanup=now)
                self._entries[identifier] = entry

            while entry.timestamps and now - entry.timestamps[0] >= self.time_window:
                entry.timestamps.popleft()

            if len(entry.timestamps) >= self.max_attempts:
                retry_after = entry.timestamps[0] + self.time_window - now
                decision = RateLimitDecision(False, len(entry.timestamps), retry_after)
            else:
                entry.timestamps.append(now)
                decision = RateLimitDecision(True, len(entry.timestamps))

            if now - entry.last_cleanup > self.time_window * 2:
                self._sweep(now)
                entry.last_cleanup = now

        return decision

    def _sweep(self, now: float) -> None:
        stale_before = now - self.time_window * 2
        stale = [
            key
            for key, entry in self._entries.items()
            if not entry.timestamps or entry.timestamps[-1] < stale_before
        ]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug(f"Rate limiter evicted {len(stale)} idle client(s)")

    def tracked_clients(self) -> int:
        with self._lock:
            return len(self._entries)

    def reset(self) -> None:
        with self._lock:
            self._entries.clear()
