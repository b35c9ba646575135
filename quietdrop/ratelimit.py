"""
Per-peer fixed-window connection gate.

Each peer address gets a (count, window_start) record. A window that is
older than time_frame is reset on the next contact. Admission is checked
before incrementing, so a window admits request_limit + 1 contacts and a
burst straddling a boundary can admit up to twice that.

The map holds at most max_entries records. When it is full, stale records
are swept; if none are stale, new peers are turned away until space frees.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


DEFAULT_MAX_ENTRIES = 10_000


@dataclass
class _Window:
    count: int
    window_start: float


class RateLimiter:
    """
    Fixed-window request counter keyed by peer address.

    Thread-safe: all state is guarded by one lock, so connection handlers
    on any thread or event loop may share a single instance.
    """

    def __init__(
        self,
        time_frame: float,
        request_limit: int,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            time_frame: Window length in seconds
            request_limit: Count above which contacts are rejected
            max_entries: Most peer records kept; when full and nothing is
                stale, contacts from new peers are rejected
            clock: Monotonic time source in seconds
        """
        if time_frame <= 0:
            raise ValueError(f"time_frame must be positive, got {time_frame}")
        if request_limit < 0:
            raise ValueError(f"request_limit must be >= 0, got {request_limit}")
        if max_entries < 1:
            raise ValueError(f"max_entries must be >= 1, got {max_entries}")

        self.time_frame = time_frame
        self.request_limit = request_limit
        self.max_entries = max_entries
        self._clock = clock
        self._requests: Dict[str, _Window] = {}
        self._lock = threading.Lock()

    def check(self, addr: str) -> bool:
        """
        Record a contact from addr and decide whether to admit it.

        Args:
            addr: Peer address (host)

        Returns:
            True if admitted, False if the peer is over its limit
        """
        with self._lock:
            now = self._clock()

            entry = self._requests.get(addr)
            if entry is None:
                if len(self._requests) >= self.max_entries:
                    self._sweep_locked(now)
                    if len(self._requests) >= self.max_entries:
                        logger.warning(
                            "Rate limiter full (%d peers), rejecting new peer %s",
                            self.max_entries, addr,
                        )
                        return False
                entry = _Window(count=0, window_start=now)
                self._requests[addr] = entry

            if now - entry.window_start > self.time_frame:
                entry.count = 0
                entry.window_start = now

            if entry.count > self.request_limit:
                return False

            entry.count += 1
            return True

    def sweep(self, now: Optional[float] = None) -> int:
        """
        Drop records whose window expired more than one time_frame ago.

        Returns:
            Number of records removed
        """
        with self._lock:
            return self._sweep_locked(self._clock() if now is None else now)

    def _sweep_locked(self, now: float) -> int:
        cutoff = 2 * self.time_frame
        stale = [
            addr for addr, entry in self._requests.items()
            if now - entry.window_start > cutoff
        ]
        for addr in stale:
            del self._requests[addr]

        if stale:
            logger.debug("Rate limiter evicted %d stale peer(s)", len(stale))
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._requests)
