"""Serializer implementations."""

from apishield.infrastructure.serializers.json import JsonSerializer

__all__ = ["JsonSerializer"]
