"""Key builder interface."""

from typing import Any, Protocol


class IKeyBuilder(Protocol):
    """Contract for building cache keys from a namespace and an identifier.

    Key builders must be deterministic: structurally equal identifiers in
    the same namespace always produce the same key.
    """

    def build(self, namespace: str, identifier: Any) -> str:
        """Build the cache key for an identifier.

        Args:
            namespace: Logical partition of the key space (e.g. "contact").
            identifier: A string, or a JSON-compatible structure such as a
                filter mapping.

        Returns:
            A unique string key.

        Raises:
            KeySerializationError: If the identifier cannot be canonicalized.
        """
        ...
