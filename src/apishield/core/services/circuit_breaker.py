"""Circuit breaker registry.

Implements the circuit breaker pattern per service name to stop calling
a failing upstream for a cooldown period after repeated failures.

The circuit breaker has three states:
- CLOSED: Normal operation, failures are counted
- OPEN: Circuit tripped, calls immediately fail with CircuitOpenError
- HALF_OPEN: Recovery timeout elapsed, a single trial call is allowed

The OPEN -> HALF_OPEN transition is computed when a call arrives, not by
a background timer.
"""

import logging
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

from apishield.core.entities.cache_config import CircuitBreakerConfig
from apishield.core.entities.circuit_state import (
    CircuitBreakerState,
    CircuitSnapshot,
    CircuitState,
)
from apishield.core.exceptions import CircuitOpenError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitBreakerRegistry:
    """Per-service circuit breakers sharing one configuration.

    Breakers are created on first use of a service name and start CLOSED.
    Thresholds may be overridden per call.

    Usage:
        breakers = CircuitBreakerRegistry()
        contact = await breakers.execute("supabase", lambda: fetch_contact(42))

    While a breaker is HALF_OPEN only one trial call is admitted; other
    callers arriving before the trial settles are rejected as if the
    circuit were still open.

    The outcome of a call admitted before the breaker last changed state is
    ignored, so only the trial can close a HALF_OPEN circuit.
    """

    def __init__(
        self,
        config: CircuitBreakerConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the registry.

        Args:
            config: Default thresholds. Uses CircuitBreakerConfig() if None.
            clock: Monotonic time source in seconds.
        """
        self._config = config if config is not None else CircuitBreakerConfig()
        self._clock = clock
        self._breakers: dict[str, CircuitBreakerState] = {}

    @property
    def config(self) -> CircuitBreakerConfig:
        return self._config

    def __len__(self) -> int:
        return len(self._breakers)

    def __contains__(self, service_name: object) -> bool:
        return service_name in self._breakers

    async def execute(
        self,
        service_name: str,
        operation: Callable[[], Awaitable[T]],
        failure_threshold: int | None = None,
        recovery_timeout: float | None = None,
    ) -> T:
        """Run ``operation`` under the breaker for ``service_name``.

        Args:
            service_name: Upstream the operation talks to.
            operation: Zero-argument coroutine factory.
            failure_threshold: Failures that open the circuit.
            recovery_timeout: Seconds the circuit stays open before a trial.

        Returns:
            Whatever the operation returns.

        Raises:
            CircuitOpenError: If the circuit is open; the operation is not run.
            Exception: Any error raised by the operation, unchanged.
        """
        threshold = (
            failure_threshold
            if failure_threshold is not None
            else self._config.failure_threshold
        )
        timeout = (
            recovery_timeout
            if recovery_timeout is not None
            else self._config.recovery_timeout
        )

        breaker = self._admit(service_name, timeout)
        is_trial = breaker.state is CircuitState.HALF_OPEN
        generation = breaker.generation

        try:
            result = await operation()
        except Exception:
            if self._is_current(breaker, generation):
                self._record_failure(breaker, threshold)
            raise
        else:
            if self._is_current(breaker, generation):
                self._record_success(breaker)
            return result
        finally:
            if is_trial and breaker.generation == generation:
                breaker.trial_in_flight = False

    def get_state(self, service_name: str) -> CircuitSnapshot | None:
        """Return a snapshot of one breaker, or None if it was never used."""
        breaker = self._breakers.get(service_name)
        return breaker.snapshot() if breaker is not None else None

    def states(self) -> dict[str, CircuitSnapshot]:
        """Return snapshots of every known breaker."""
        return {name: breaker.snapshot() for name, breaker in self._breakers.items()}

    def reset(self, service_name: str | None = None) -> None:
        """Forget one breaker, or all of them when no name is given."""
        if service_name is None:
            self._breakers.clear()
        else:
            self._breakers.pop(service_name, None)

    def cleanup(self) -> int:
        """Forget closed breakers that have been idle past ``idle_timeout``.

        Returns:
            Number of breakers removed.
        """
        now = self._clock()
        stale = [
            name
            for name, breaker in self._breakers.items()
            if breaker.state is CircuitState.CLOSED
            and not breaker.trial_in_flight
            and now - breaker.last_activity > self._config.idle_timeout
        ]
        for name in stale:
            del self._breakers[name]

        if stale:
            logger.debug("Removed %d idle circuit breakers", len(stale))
        return len(stale)

    def _breaker_for(self, service_name: str) -> CircuitBreakerState:
        breaker = self._breakers.get(service_name)
        if breaker is None:
            breaker = CircuitBreakerState(
                service_name=service_name, last_activity=self._clock()
            )
            self._breakers[service_name] = breaker
            logger.debug("Created circuit breaker: %s", service_name)
        return breaker

    def _admit(self, service_name: str, recovery_timeout: float) -> CircuitBreakerState:
        now = self._clock()
        breaker = self._breaker_for(service_name)
        breaker.last_activity = now

        if breaker.state is CircuitState.OPEN:
            elapsed = now - (breaker.last_failure_time or now)
            if elapsed <= recovery_timeout:
                raise CircuitOpenError(service_name, recovery_timeout - elapsed)
            self._transition(breaker, CircuitState.HALF_OPEN)
            logger.info("Circuit breaker %s entering HALF_OPEN state", service_name)

        if breaker.state is CircuitState.HALF_OPEN:
            if breaker.trial_in_flight:
                raise CircuitOpenError(service_name, 0.0)
            breaker.trial_in_flight = True

        return breaker

    def _record_success(self, breaker: CircuitBreakerState) -> None:
        if breaker.state is CircuitState.HALF_OPEN:
            logger.info(
                "Circuit breaker %s recovered, entering CLOSED state",
                breaker.service_name,
            )
        breaker.failures = 0
        if breaker.state is not CircuitState.CLOSED:
            self._transition(breaker, CircuitState.CLOSED)

    def _record_failure(self, breaker: CircuitBreakerState, threshold: int) -> None:
        breaker.failures += 1
        breaker.last_failure_time = self._clock()

        if breaker.state is CircuitState.HALF_OPEN or breaker.failures >= threshold:
            logger.warning(
                "Opened circuit for %s after %d failures",
                breaker.service_name,
                breaker.failures,
            )
            self._transition(breaker, CircuitState.OPEN)

    @staticmethod
    def _transition(breaker: CircuitBreakerState, state: CircuitState) -> None:
        breaker.state = state
        breaker.generation += 1
        breaker.trial_in_flight = False

    @staticmethod
    def _is_current(breaker: CircuitBreakerState, generation: int) -> bool:
        if breaker.generation == generation:
            return True
        # Admitted before the last state change; its outcome is stale
        logger.debug(
            "Ignoring outcome of stale call for %s (generation %d, now %d)",
            breaker.service_name,
            generation,
            breaker.generation,
        )
        return False
