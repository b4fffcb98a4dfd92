"""
Fixed-window rate limiting keyed by client identifier.

Each client gets a counter that resets when its window elapses. Records
live in process memory, ordered by window reset time, so expired records
and the oldest active ones are always at the front of the store.
"""

import logging
import math
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Optional

from .models import RateLimitDecision

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = 'unknown'


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class ClientRateRecord:
    """Request count for one client in its current window."""
    count: int
    window_reset_at: int


class RateLimiter:
    """
    Fixed-window request counter.

    All reads and writes to the record store happen under one lock, so two
    requests from the same client can never both take the last slot.
    """

    def __init__(self, window_ms: int = 15 * 60 * 1000, max_requests: int = 10, max_clients: int = 10000):
        if window_ms <= 0 or max_requests <= 0 or max_clients <= 0:
            raise ValueError("window_ms, max_requests and max_clients must be positive")

        self.window_ms = window_ms
        self.max_requests = max_requests
        self.max_clients = max_clients

        # Oldest window first; a record moves to the end whenever its window restarts
        self._records: "OrderedDict[str, ClientRateRecord]" = OrderedDict()
        self._lock = threading.Lock()
        self._next_sweep_at: Optional[int] = None

    @property
    def tracked_clients(self) -> int:
        with self._lock:
            return len(self._records)

    def admit(self, client_id: Optional[str], now_ms: Optional[int] = None) -> RateLimitDecision:
        """
        Count a request from client_id and decide whether to admit it.

        Args:
            client_id: Client identifier, usually the remote address.
                Empty values share the "unknown" bucket.
            now_ms: Current time in epoch milliseconds (defaults to wall clock)

        Returns:
            RateLimitDecision: admitted, or rejected with retry_after_seconds
        """
        key = client_id or UNKNOWN_CLIENT
        now = _now_ms() if now_ms is None else now_ms

        with self._lock:
            self._maybe_sweep(now)

            record = self._records.get(key)

            if record is None:
                self._make_room()
                self._records[key] = ClientRateRecord(count=1, window_reset_at=now + self.window_ms)
                return RateLimitDecision(admitted=True, remaining=self.max_requests - 1)

            if now > record.window_reset_at:
                record.count = 1
                record.window_reset_at = now + self.window_ms
                self._records.move_to_end(key)
                return RateLimitDecision(admitted=True, remaining=self.max_requests - 1)

            if record.count < self.max_requests:
                record.count += 1
                return RateLimitDecision(admitted=True, remaining=self.max_requests - record.count)

            retry_after = max(1, math.ceil((record.window_reset_at - now) / 1000))

        logger.warning(f"Rate limit exceeded for client {key}, retry after {retry_after}s")
        return RateLimitDecision(admitted=False, retry_after_seconds=retry_after, remaining=0)

    def reset(self) -> None:
        """Forget all client records."""
        with self._lock:
            self._records.clear()
            self._next_sweep_at = None

    def _maybe_sweep(self, now: int) -> None:
        # Caller holds the lock
        if self._next_sweep_at is None:
            self._next_sweep_at = now + self.window_ms
            return

        if now >= self._next_sweep_at or len(self._records) >= self.max_clients:
            self._sweep(now)
            self._next_sweep_at = now + self.window_ms

    def _sweep(self, now: int) -> None:
        # Stops at the first live record, so a store of active clients costs O(1)
        evicted = 0
        while self._records and now > next(iter(self._records.values())).window_reset_at:
            self._records.popitem(last=False)
            evicted += 1

        if evicted:
            logger.info(f"Evicted {evicted} expired rate limit record(s), {len(self._records)} remaining")

    def _make_room(self) -> None:
        # Caller holds the lock
        evicted = 0
        while len(self._records) >= self.max_clients:
            self._records.popitem(last=False)
            evicted += 1

        if evicted:
            logger.warning(f"Rate limit store full ({self.max_clients}), evicted {evicted} active record(s)")
