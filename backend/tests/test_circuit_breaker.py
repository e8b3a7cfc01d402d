"""
GrocerHub Backend — Circuit Breaker Unit Tests
================================================

What:  State machine of the per-provider feed circuit breaker, driven by a
       fake clock so recovery timing is deterministic.
"""

import pytest

from grocerhub.exceptions import CircuitBreakerOpenError
from grocerhub.services.circuit_breaker import CircuitBreaker


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestCircuitBreaker:
    """Tests for the CircuitBreaker resilience pattern."""

    def setup_method(self):
        self.clock = FakeClock()

    def _breaker(self, threshold=3, recovery=60) -> CircuitBreaker:
        return CircuitBreaker(
            name="shoprite",
            failure_threshold=threshold,
            recovery_timeout=recovery,
            clock=self.clock,
        )

    def test_initial_state_is_closed(self):
        """New circuit breaker should start in CLOSED (allowing calls)."""
        cb = self._breaker()
        assert cb.state == CircuitBreaker.CLOSED
        assert cb.failure_count == 0
        assert cb.can_execute() is True

    def test_stays_closed_under_threshold(self):
        cb = self._breaker(threshold=5)
        for _ in range(4):
            cb.record_failure()
        assert cb.state == CircuitBreaker.CLOSED
        cb.can_execute()

    def test_opens_at_threshold_and_rejects_calls(self):
        cb = self._breaker(threshold=3, recovery=60)
        for _ in range(3):
            cb.record_failure()
        assert cb.state == CircuitBreaker.OPEN

        self.clock.advance(20)
        with pytest.raises(CircuitBreakerOpenError) as exc_info:
            cb.can_execute()
        assert exc_info.value.recovery_time == 40
        assert exc_info.value.context["provider"] == "shoprite"

    def test_success_resets_failure_count(self):
        cb = self._breaker(threshold=5)
        cb.record_failure()
        cb.record_failure()
        assert cb.failure_count == 2

        cb.record_success()
        assert cb.failure_count == 0
        assert cb.state == CircuitBreaker.CLOSED

    def test_half_open_after_recovery_timeout(self):
        cb = self._breaker(threshold=1, recovery=60)
        cb.record_failure()

        self.clock.advance(60)
        assert cb.can_execute() is True
        assert cb.state == CircuitBreaker.HALF_OPEN

    def test_success_after_half_open_closes(self):
        cb = self._breaker(threshold=1, recovery=60)
        cb.record_failure()
        self.clock.advance(61)
        cb.can_execute()

        cb.record_success()
        assert cb.state == CircuitBreaker.CLOSED
        assert cb.failure_count == 0

    def test_failure_in_half_open_reopens(self):
        cb = self._breaker(threshold=3, recovery=60)
        for _ in range(3):
            cb.record_failure()
        self.clock.advance(60)
        cb.can_execute()

        cb.record_failure()
        assert cb.state == CircuitBreaker.OPEN
        with pytest.raises(CircuitBreakerOpenError):
            cb.can_execute()

    def test_half_open_admits_a_single_caller(self):
        cb = self._breaker(threshold=1, recovery=60)
        cb.record_failure()
        self.clock.advance(60)

        assert cb.can_execute() is True
        with pytest.raises(CircuitBreakerOpenError):
            cb.can_execute()
        assert cb.state == CircuitBreaker.HALF_OPEN

    def test_abandoned_half_open_call_is_replaced_after_timeout(self):
        cb = self._breaker(threshold=1, recovery=60)
        cb.record_failure()
        self.clock.advance(60)
        cb.can_execute()

        # The first caller never reports back
        self.clock.advance(60)
        assert cb.can_execute() is True
        cb.record_success()
        assert cb.state == CircuitBreaker.CLOSED
        assert cb.can_execute() is True
