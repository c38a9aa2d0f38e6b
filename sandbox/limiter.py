"""Process-wide bound on simultaneous sandboxed executions."""

import threading


class ConcurrencyLimiter:
    """Non-blocking counting limiter.

    Unlike a semaphore, callers never wait: :meth:`try_acquire` either takes
    a slot immediately or reports that none is free, so excess requests are
    rejected fast instead of piling up.
    """

    def __init__(self, limit: int):
        if limit < 1:
            raise ValueError("limit must be at least 1")
        self.limit = limit
        self._active = 0
        self._lock = threading.Lock()

    @property
    def active(self) -> int:
        return self._active

    def try_acquire(self) -> bool:
        with self._lock:
            if self._active >= self.limit:
                return False
            self._active += 1
            return True

    def release(self) -> None:
        with self._lock:
            if self._active == 0:
                raise RuntimeError("release() called more times than try_acquire()")
            self._active -= 1
