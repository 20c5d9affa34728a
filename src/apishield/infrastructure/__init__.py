"""Infrastructure layer implementations for apishield."""

from apishield.infrastructure.backends import InMemoryCacheBackend
from apishield.infrastructure.key_builders import DefaultKeyBuilder, canonical_key
from apishield.infrastructure.serializers import JsonSerializer

__all__ = [
    "InMemoryCacheBackend",
    "DefaultKeyBuilder",
    "JsonSerializer",
    "canonical_key",
]
