"""
GrocerHub Backend — Feed Circuit Breaker
==========================================

What:  Stops an HTTP feed adapter from calling a partner API that keeps
       failing, then lets a single trial call through once the cool-down ends.
Who:   One instance per store inside each HTTP feed adapter; /health reports
       the worst state per provider.

    state       calls          moves to
    ─────────   ────────────   ──────────────────────────────────────────
    closed      pass through   open, after `failure_threshold` failures
                               in a row
    open        rejected       half_open, once `recovery_timeout` seconds
                               have passed since the last failure
    half_open   one trial      closed on success, open again on failure

While the trial call is in flight every other caller is rejected. One that
never reports back (its task was cancelled) stops blocking after another
`recovery_timeout` seconds.

All callers share one event loop and nothing here awaits, so plain
attributes are enough.
"""

import logging
import time
from typing import Callable, Optional

from grocerhub.exceptions import CircuitBreakerOpenError

logger = logging.getLogger(__name__)


class CircuitBreaker:
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        recovery_timeout: int = 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            name:              What the breaker protects (for logs and errors)
            failure_threshold: Failures in a row that open the circuit
            recovery_timeout:  Cool-down in seconds before a trial call is allowed
            clock:             Monotonic time source; tests pass a fake one
        """
        self.name = name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self._clock = clock
        self.state = self.CLOSED
        self.failure_count = 0
        self._opened_at: Optional[float] = None
        self._trial_started_at: Optional[float] = None

    def seconds_until_trial(self) -> float:
        """Time left before another call may go through; 0 when closed."""
        if self.state == self.OPEN and self._opened_at is not None:
            started = self._opened_at
        elif self.state == self.HALF_OPEN and self._trial_started_at is not None:
            started = self._trial_started_at
        else:
            return 0.0
        return max(0.0, self.recovery_timeout - (self._clock() - started))

    def can_execute(self) -> bool:
        """
        Returns True when a call may go ahead.

        Raises:
            CircuitBreakerOpenError: The circuit is open and still cooling
            down, or a trial call is already in flight. `recovery_time` carries
            the whole seconds left.
        """
        if self.state == self.CLOSED:
            return True

        remaining = self.seconds_until_trial()
        if remaining > 0:
            raise CircuitBreakerOpenError(
                recovery_time=max(1, int(remaining)), context={"provider": self.name}
            )

        logger.info("Feed circuit '%s' half-open, letting a trial call through", self.name)
        self.state = self.HALF_OPEN
        self._trial_started_at = self._clock()
        return True

    def record_success(self) -> None:
        if self.state != self.CLOSED:
            logger.info("Feed circuit '%s' closed again", self.name)
        self.state = self.CLOSED
        self.failure_count = 0
        self._opened_at = None
        self._trial_started_at = None

    def record_failure(self) -> None:
        self.failure_count += 1
        trial_failed = self.state == self.HALF_OPEN
        if trial_failed or self.failure_count >= self.failure_threshold:
            self._trip("trial call failed" if trial_failed else f"{self.failure_count} failures in a row")

    def _trip(self, reason: str) -> None:
        if self.state != self.OPEN:
            logger.warning("Feed circuit '%s' opened: %s", self.name, reason)
        self.state = self.OPEN
        self._opened_at = self._clock()
        self._trial_started_at = None
