"""
Unit tests: admin login lockout and write budget.
"""

import pytest

from tripboard.auth import rate_limiter as rate_limiter_module
from tripboard.auth.rate_limiter import AdminRateLimiter


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock(monkeypatch):
    fake = FakeClock()
    monkeypatch.setattr(rate_limiter_module.time, "monotonic", fake)
    return fake


@pytest.fixture
def limiter(clock):
    return AdminRateLimiter(max_login_failures=3, lockout_seconds=300, write_limit=2)


class TestLoginLockout:

    def test_locks_after_max_failures(self, limiter, clock):
        for _ in range(2):
            limiter.record_login("10.0.0.1", False)
        assert limiter.login_retry_after("10.0.0.1") is None

        limiter.record_login("10.0.0.1", False)
        assert limiter.login_retry_after("10.0.0.1") == 300

        clock.now += 120
        assert limiter.login_retry_after("10.0.0.1") == 180

    def test_lockout_expires(self, limiter, clock):
        for _ in range(3):
            limiter.record_login("10.0.0.1", False)

        clock.now += 301
        assert limiter.login_retry_after("10.0.0.1") is None

        limiter.record_login("10.0.0.1", False)
        assert limiter.login_retry_after("10.0.0.1") is None

    def test_old_failures_do_not_count(self, limiter, clock):
        limiter.record_login("10.0.0.1", False)
        limiter.record_login("10.0.0.1", False)
        clock.now += 400
        limiter.record_login("10.0.0.1", False)

        assert limiter.login_retry_after("10.0.0.1") is None

    def test_success_forgets_failures(self, limiter):
        limiter.record_login("10.0.0.1", False)
        limiter.record_login("10.0.0.1", False)
        limiter.record_login("10.0.0.1", True)
        limiter.record_login("10.0.0.1", False)

        assert limiter.login_retry_after("10.0.0.1") is None

    def test_clients_are_independent(self, limiter):
        for _ in range(3):
            limiter.record_login("10.0.0.1", False)

        assert limiter.login_retry_after("10.0.0.2") is None
        assert limiter.get_stats()["locked_out_clients"] == 1


class TestWriteBudget:

    def test_budget_per_session_and_window(self, limiter, clock):
        assert limiter.allow_write("session-a")
        assert limiter.allow_write("session-a")
        assert not limiter.allow_write("session-a")
        assert limiter.allow_write("session-b")

        clock.now += 61
        assert limiter.allow_write("session-a")

    def test_reset(self, limiter):
        limiter.allow_write("session-a")
        limiter.allow_write("session-a")
        limiter.reset()

        assert limiter.allow_write("session-a")
        assert limiter.get_stats() == {"locked_out_clients": 0, "admin_sessions_tracked": 1}
