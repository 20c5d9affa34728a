"""Tests for DefaultKeyBuilder and canonical_key."""

import pytest

from apishield.core.exceptions import KeySerializationError, SerializationError
from apishield.infrastructure.key_builders.default import (
    DefaultKeyBuilder,
    canonical_key,
)


class TestCanonicalKey:
    """Tests for canonical_key."""

    def test_string_identifier_used_verbatim(self) -> None:
        """Test that string identifiers are not JSON-quoted."""
        assert canonical_key("contact", "42") == "contact:42"

    def test_object_key_order_does_not_matter(self) -> None:
        """Test that structurally equal mappings produce the same key."""
        first = canonical_key("contact_list", {"a": 1, "b": 2})
        second = canonical_key("contact_list", {"b": 2, "a": 1})

        assert first == second

    def test_nested_structures_are_canonical(self) -> None:
        """Test canonicalization of nested mappings."""
        first = canonical_key("ns", {"filters": {"status": "hot", "owner": "me"}})
        second = canonical_key("ns", {"filters": {"owner": "me", "status": "hot"}})

        assert first == second

    def test_different_identifiers_differ(self) -> None:
        """Test that different values produce different keys."""
        assert canonical_key("ns", {"id": 1}) != canonical_key("ns", {"id": 2})

    def test_cyclic_identifier_raises(self) -> None:
        """Test that a reference cycle propagates as a serialization error."""
        cyclic: dict = {}
        cyclic["self"] = cyclic

        with pytest.raises(KeySerializationError) as exc_info:
            canonical_key("contact", cyclic)

        assert isinstance(exc_info.value, SerializationError)
        assert exc_info.value.namespace == "contact"

    def test_mixed_key_types_are_canonical(self) -> None:
        """Test that a mapping with int and str keys still produces a key."""
        key = canonical_key("contact_list", {1: "a", "b": 2, None: True})

        assert key == 'contact_list:{"1":"a","b":2,"null":true}'

    def test_shared_non_cyclic_reference(self) -> None:
        """Test that the same object appearing twice is not a cycle."""
        shared = {"status": "hot"}

        key = canonical_key("contact_list", [shared, shared])

        assert key == 'contact_list:[{"status":"hot"},{"status":"hot"}]'


class TestDefaultKeyBuilder:
    """Tests for DefaultKeyBuilder."""

    @pytest.fixture
    def key_builder(self) -> DefaultKeyBuilder:
        """Create a key builder for testing."""
        return DefaultKeyBuilder()

    def test_build_basic_key(self, key_builder: DefaultKeyBuilder) -> None:
        """Test building a basic cache key."""
        assert key_builder.build("contact", "42") == "contact:42"

    def test_build_object_key(self, key_builder: DefaultKeyBuilder) -> None:
        """Test building a key from a filter mapping."""
        key = key_builder.build("contact_list", {"status": "hot", "limit": 10})

        assert key == 'contact_list:{"limit":10,"status":"hot"}'

    def test_custom_separator(self) -> None:
        """Test a custom separator."""
        builder = DefaultKeyBuilder(separator="|")

        assert builder.build("contact", "42") == "contact|42"
        assert builder.namespace_prefix("contact") == "contact|"

    def test_hashed_identifiers(self) -> None:
        """Test shortening object identifiers to a hash."""
        builder = DefaultKeyBuilder(hash_identifiers=True)

        first = builder.build("contact_list", {"a": 1, "b": 2})
        second = builder.build("contact_list", {"b": 2, "a": 1})

        assert first == second
        assert first.startswith("contact_list:h:")
        assert len(first) == len("contact_list:h:") + 16
        # Strings stay readable
        assert builder.build("contact", "42") == "contact:42"

    def test_hashed_identifiers_still_reject_cycles(self) -> None:
        """Test that hashing does not hide serialization failures."""
        builder = DefaultKeyBuilder(hash_identifiers=True)
        cyclic: list = []
        cyclic.append(cyclic)

        with pytest.raises(KeySerializationError):
            builder.build("ns", cyclic)
