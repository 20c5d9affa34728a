"""Key builder implementations."""

from apishield.infrastructure.key_builders.default import (
    DefaultKeyBuilder,
    canonical_key,
)

__all__ = ["DefaultKeyBuilder", "canonical_key"]
