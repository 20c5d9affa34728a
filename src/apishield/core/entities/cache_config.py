"""Configuration entities."""

from dataclasses import dataclass
from datetime import timedelta


@dataclass
class CacheConfig:
    """Cache configuration.

    Provides configuration options for the TTL cache, including the
    default TTL, the size limit and the period of the background sweep
    that removes expired entries.
    """

    enabled: bool = True
    default_ttl: timedelta = timedelta(minutes=5)
    max_size: int = 1000
    cleanup_interval: timedelta = timedelta(minutes=5)
    key_separator: str = ":"

    def __post_init__(self) -> None:
        """Validate the size limit."""
        if self.max_size < 1:
            raise ValueError(f"max_size must be at least 1, got {self.max_size}")


@dataclass
class CircuitBreakerConfig:
    """Default thresholds for the circuit breaker registry.

    Times are in seconds. ``idle_timeout`` bounds how long a closed breaker
    may sit unused before ``cleanup()`` forgets it.
    """

    failure_threshold: int = 5
    recovery_timeout: float = 60.0
    idle_timeout: float = 24 * 60 * 60.0


@dataclass
class QueueConfig:
    """Request queue limits. Times are in seconds."""

    batch_size: int = 10
    max_concurrent: int = 6
    default_timeout: float = 30.0
    poll_interval: float = 0.1
    requeue_delay: float = 0.01

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be at least 1, got {self.batch_size}")
        if self.max_concurrent < 1:
            raise ValueError(
                f"max_concurrent must be at least 1, got {self.max_concurrent}"
            )
