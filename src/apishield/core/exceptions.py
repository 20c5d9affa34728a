"""Exception hierarchy for apishield."""


class ApiShieldError(Exception):
    """Base class for every error raised by apishield itself."""

    pass


class SerializationError(ApiShieldError):
    """Raised when serialization or deserialization fails."""

    pass


class KeySerializationError(SerializationError):
    """Raised when a cache identifier cannot be canonicalized."""

    def __init__(self, namespace: str, reason: str) -> None:
        self.namespace = namespace
        super().__init__(f"Cannot build cache key in namespace {namespace!r}: {reason}")


class CircuitOpenError(ApiShieldError):
    """Raised when a circuit is open and the call was not attempted."""

    def __init__(self, service_name: str, retry_in: float) -> None:
        self.service_name = service_name
        self.retry_in = retry_in
        super().__init__(
            f"Circuit breaker open for {service_name}. Retry in {retry_in:.1f}s"
        )


class RequestQueueError(ApiShieldError):
    """Base class for request queue failures."""

    def __init__(self, key: str, message: str) -> None:
        self.key = key
        super().__init__(message)


class RequestTimeoutError(RequestQueueError, TimeoutError):
    """Raised when a queued request is not dispatched before its deadline."""

    def __init__(self, key: str, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(key, f"Request timeout: {key} (waited {timeout:.3f}s)")


class RequestCancelledError(RequestQueueError):
    """Raised when pending requests for a key are cancelled."""

    def __init__(self, key: str) -> None:
        super().__init__(key, f"Request cancelled: {key}")
