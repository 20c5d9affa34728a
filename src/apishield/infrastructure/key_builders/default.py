"""Default key builder implementation."""

from typing import Any

from apishield.core.exceptions import KeySerializationError
from apishield.utils.hashing import canonical_json, hash_value


def canonical_key(namespace: str, identifier: Any, separator: str = ":") -> str:
    """Build the cache key for ``identifier`` within ``namespace``.

    String identifiers are used verbatim. Anything else is serialized as
    canonical JSON, so ``{"a": 1, "b": 2}`` and ``{"b": 2, "a": 1}`` map to
    the same key.

    Args:
        namespace: Logical partition of the key space.
        identifier: A string or a JSON-compatible structure.
        separator: Text placed between namespace and identifier.

    Returns:
        The cache key.

    Raises:
        KeySerializationError: If the identifier contains a reference cycle.
            Mixed mapping key types are not an error; non-string keys are
            converted to strings before sorting.
    """
    if isinstance(identifier, str):
        return f"{namespace}{separator}{identifier}"

    try:
        encoded = canonical_json(identifier)
    except (TypeError, ValueError) as e:
        raise KeySerializationError(namespace, str(e)) from e
    return f"{namespace}{separator}{encoded}"


class DefaultKeyBuilder:
    """Default key builder using canonical JSON for structured identifiers.

    Creates deterministic cache keys of the form ``namespace:identifier``.
    Large filter objects can be shortened to a SHA-256 prefix with
    ``hash_identifiers=True``.
    """

    def __init__(
        self,
        separator: str = ":",
        hash_identifiers: bool = False,
    ) -> None:
        """Initialize the key builder.

        Args:
            separator: Text placed between namespace and identifier.
            hash_identifiers: Hash non-string identifiers instead of
                embedding their JSON form.
        """
        self._separator = separator
        self._hash_identifiers = hash_identifiers

    @property
    def separator(self) -> str:
        return self._separator

    def build(self, namespace: str, identifier: Any) -> str:
        """Build unique cache key for an identifier.

        Args:
            namespace: Logical partition of the key space.
            identifier: A string or a JSON-compatible structure.

        Returns:
            A unique string key.

        Raises:
            KeySerializationError: If the identifier cannot be canonicalized.
        """
        if self._hash_identifiers and not isinstance(identifier, str):
            # Validate first so cycles surface as key errors, not hash errors
            canonical_key(namespace, identifier, self._separator)
            return f"{namespace}{self._separator}h:{hash_value(identifier)}"

        return canonical_key(namespace, identifier, self._separator)

    def namespace_prefix(self, namespace: str) -> str:
        """Return the prefix shared by every key in ``namespace``."""
        return f"{namespace}{self._separator}"
