from collections import defaultdict, deque
from typing import Deque, Dict, Optional
import threading
import time

from tripboard.core.config import settings

WRITE_WINDOW_SECONDS = 60


class AdminRateLimiter:
    """Login lockout per client address and a write budget per admin session."""

    def __init__(
        self,
        max_login_failures: int = settings.max_login_attempts,
        lockout_seconds: int = settings.lockout_duration_minutes * 60,
        write_limit: int = settings.rate_limit_crud_per_minute,
    ):
        self.max_login_failures = max_login_failures
        self.lockout_seconds = lockout_seconds
        self.write_limit = write_limit

        self._lock = threading.Lock()
        self._login_failures: Dict[str, Deque[float]] = defaultdict(deque)
        self._locked_until: Dict[str, float] = {}
        self._writes: Dict[str, Deque[float]] = defaultdict(deque)

    @staticmethod
    def _expire(timestamps: Deque[float], window: float, now: float):
        while timestamps and timestamps[0] <= now - window:
            timestamps.popleft()

    def login_retry_after(self, client_id: str) -> Optional[int]:
        """Seconds until ``client_id`` may try the admin password again, ``None`` if it may now."""
        now = time.monotonic()
        with self._lock:
            locked_until = self._locked_until.get(client_id)
            if locked_until is not None:
                if now < locked_until:
                    return max(1, int(locked_until - now))
                del self._locked_until[client_id]
                self._login_failures.pop(client_id, None)
            return None

    def record_login(self, client_id: str, success: bool):
        """A success forgets earlier failures; too many failures lock the client out."""
        now = time.monotonic()
        with self._lock:
            if success:
                self._login_failures.pop(client_id, None)
                self._locked_until.pop(client_id, None)
                return

            failures = self._login_failures[client_id]
            self._expire(failures, self.lockout_seconds, now)
            failures.append(now)
            if len(failures) >= self.max_login_failures:
                self._locked_until[client_id] = now + self.lockout_seconds

    def allow_write(self, session_id: str) -> bool:
        """Count one admin write against the session's per-minute budget."""
        now = time.monotonic()
        with self._lock:
            writes = self._writes[session_id]
            self._expire(writes, WRITE_WINDOW_SECONDS, now)
            if len(writes) >= self.write_limit:
                return False
            writes.append(now)
            return True

    def reset(self):
        with self._lock:
            self._login_failures.clear()
            self._locked_until.clear()
            self._writes.clear()

    def get_stats(self) -> Dict[str, int]:
        now = time.monotonic()
        with self._lock:
            return {
                "locked_out_clients": sum(1 for until in self._locked_until.values() if until > now),
                "admin_sessions_tracked": sum(1 for writes in self._writes.values() if writes),
            }


rate_limiter = AdminRateLimiter()
