"""Serializer interface."""

from typing import Any, Protocol


class ISerializer(Protocol):
    """Codec used by ApiOptimizer to turn payloads into bytes and back."""

    def serialize(self, value: Any) -> bytes:
        """Encode ``value``, raising SerializationError if it cannot be."""
        ...

    def deserialize(self, data: bytes) -> Any:
        """Decode ``data``, raising SerializationError if it is malformed."""
        ...
