import threading
import time
from collections import defaultdict, deque
from functools import wraps
from typing import Deque, Dict, Mapping, Tuple

from flask import current_app, request

from noclick.errors import Throttled

_MESSAGES = {
    'session_start': 'Too many game starts, please wait a moment.',
    'session_end': 'Too many game submissions, please wait a moment.',
    'leaderboard': 'Too many leaderboard requests, please wait a moment.',
}


class SlidingWindowLimiter:
    """Admit at most max_count hits per window per (bucket, client key)."""

    def __init__(self, limits: Mapping[str, Tuple[int, float]], enabled: bool = True, clock=time.monotonic):
        self.limits = dict(limits)
        self.enabled = enabled
        self.clock = clock
        self._hits: Dict[Tuple[str, str], Deque[float]] = defaultdict(deque)
        self._lock = threading.Lock()
        self._sweep_every = min((window for _, window in self.limits.values()), default=60)
        self._next_sweep = 0.0

    def admit(self, bucket: str, key: str) -> bool:
        if not self.enabled or bucket not in self.limits:
            return True
        max_count, window = self.limits[bucket]
        now = self.clock()
        with self._lock:
            self._prune(now)
            hits = self._hits[(bucket, key)]
            while hits and now - hits[0] >= window:
                hits.popleft()
            if len(hits) >= max_count:
                return False
            hits.append(now)
            return True

    def _prune(self, now: float) -> None:
        # Drop callers whose whole window has expired; caller holds the lock
        if now < self._next_sweep:
            return
        self._next_sweep = now + self._sweep_every
        for hit_key in [k for k, hits in self._hits.items()
                        if not hits or now - hits[-1] >= self.limits.get(k[0], (0, 0))[1]]:
            del self._hits[hit_key]

    def retry_after(self, bucket: str, key: str) -> int:
        _, window = self.limits.get(bucket, (0, 0))
        with self._lock:
            hits = self._hits.get((bucket, key))
            if not hits:
                return 0
            oldest = hits[0]
        return max(1, int(window - (self.clock() - oldest) + 0.999))

    def __len__(self) -> int:
        with self._lock:
            return len(self._hits)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()


def client_address() -> str:
    forwarded = request.headers.get('X-Forwarded-For', '')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.remote_addr or '127.0.0.1'


def rate_limited(*buckets: str):
    """Route decorator: raise Throttled when any bucket rejects the caller."""
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            limiter = current_app.extensions.get('noclick.rate_limiter')
            if limiter is not None:
                key = client_address()
                for bucket in buckets:
                    if not limiter.admit(bucket, key):
                        current_app.logger.info(f"[throttled] bucket={bucket} client={key}")
                        raise Throttled(_MESSAGES.get(bucket), retry_after=limiter.retry_after(bucket, key))
            return view(*args, **kwargs)
        return wrapper
    return decorator
