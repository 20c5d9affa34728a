"""Core interfaces (Protocol classes) for apishield."""

from apishield.core.interfaces.cache_backend import ICacheBackend
from apishield.core.interfaces.key_builder import IKeyBuilder
from apishield.core.interfaces.serializer import ISerializer

__all__ = [
    "ICacheBackend",
    "IKeyBuilder",
    "ISerializer",
]
