"""Tests for JsonSerializer."""

from dataclasses import dataclass
from datetime import date, datetime

import pytest

from apishield.core.exceptions import SerializationError
from apishield.infrastructure.serializers.json import JsonSerializer


@dataclass
class Contact:
    id: int
    name: str


class TestJsonSerializer:
    """Tests for JsonSerializer."""

    @pytest.fixture
    def serializer(self) -> JsonSerializer:
        """Create a serializer for testing."""
        return JsonSerializer()

    def test_serialize_dict(self, serializer: JsonSerializer) -> None:
        """Test serializing a dictionary."""
        result = serializer.serialize({"name": "Ann", "score": 87})

        assert isinstance(result, bytes)
        assert b"Ann" in result
        assert b"87" in result

    def test_serialize_is_compact(self, serializer: JsonSerializer) -> None:
        """Test that no whitespace is emitted between tokens."""
        assert serializer.serialize({"id": 42, "tags": [1, 2]}) == (
            b'{"id":42,"tags":[1,2]}'
        )

    def test_serialize_unsupported_type(self, serializer: JsonSerializer) -> None:
        """Test that a value with no JSON form raises SerializationError."""
        with pytest.raises(SerializationError):
            serializer.serialize({"handle": object()})

    def test_deserialize_dict(self, serializer: JsonSerializer) -> None:
        """Test deserializing to a dictionary."""
        result = serializer.deserialize(b'{"name": "Ann", "score": 87}')

        assert result == {"name": "Ann", "score": 87}

    def test_datetime_round_trip(self, serializer: JsonSerializer) -> None:
        """Test that datetimes and dates come back as the same types."""
        data = {
            "last_contacted": datetime(2024, 1, 15, 10, 30, 0),
            "birthday": date(1990, 5, 1),
        }

        deserialized = serializer.deserialize(serializer.serialize(data))

        assert deserialized == data

    def test_serialize_object_with_dict(self, serializer: JsonSerializer) -> None:
        """Test that plain objects are encoded through __dict__."""
        result = serializer.deserialize(serializer.serialize(Contact(42, "Ann")))

        assert result == {"id": 42, "name": "Ann"}

    def test_serialize_set_sorted(self, serializer: JsonSerializer) -> None:
        """Test that sets become sorted lists."""
        result = serializer.deserialize(serializer.serialize({"tags": {"b", "a"}}))

        assert result == {"tags": ["a", "b"]}

    def test_deserialize_invalid_json(self, serializer: JsonSerializer) -> None:
        """Test deserializing invalid JSON raises error."""
        with pytest.raises(SerializationError):
            serializer.deserialize(b"not valid json")

    def test_deserialize_invalid_encoding(self, serializer: JsonSerializer) -> None:
        """Test deserializing invalid encoding raises error."""
        with pytest.raises(SerializationError):
            serializer.deserialize(b"\xff\xfe")

    def test_serialize_circular_reference(self, serializer: JsonSerializer) -> None:
        """Test serializing objects with circular references raises error."""
        circular: dict = {}
        circular["self"] = circular
        with pytest.raises(SerializationError):
            serializer.serialize(circular)
