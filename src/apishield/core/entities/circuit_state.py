"""Circuit breaker state entities."""

from dataclasses import dataclass
from enum import Enum


class CircuitState(Enum):
    """Circuit breaker states.

    - CLOSED: Normal operation, failures are counted
    - OPEN: Circuit tripped, calls fail immediately
    - HALF_OPEN: Recovery window elapsed, one trial call is allowed
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


@dataclass(frozen=True)
class CircuitSnapshot:
    """Point-in-time copy of one service's breaker."""

    service_name: str
    state: CircuitState
    failures: int
    last_failure_time: float | None
    last_activity: float


@dataclass
class CircuitBreakerState:
    """Mutable breaker bookkeeping for one service name.

    Only the registry mutates these fields, and only from the synchronous
    parts of its methods. ``generation`` increases on every state change;
    a call remembers the generation it was admitted under.
    """

    service_name: str
    failures: int = 0
    last_failure_time: float | None = None
    state: CircuitState = CircuitState.CLOSED
    last_activity: float = 0.0
    trial_in_flight: bool = False
    generation: int = 0

    def snapshot(self) -> CircuitSnapshot:
        return CircuitSnapshot(
            service_name=self.service_name,
            state=self.state,
            failures=self.failures,
            last_failure_time=self.last_failure_time,
            last_activity=self.last_activity,
        )
