"""Pytest configuration for apishield tests."""

import pytest


class FakeClock:
    """Manually advanced time source for TTL and recovery tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    """Provide a fake clock starting at t=1000s."""
    return FakeClock()


@pytest.fixture(autouse=True)
def reset_decorator_config():
    """Reset decorator configuration before each test."""
    import apishield.decorators

    # Store original value
    original_optimizer = apishield.decorators._optimizer

    yield

    # Restore original value after test
    apishield.decorators._optimizer = original_optimizer
