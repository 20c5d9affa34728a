"""JSON payload codec behind ApiOptimizer.compress_data."""

import json
from datetime import date, datetime
from typing import Any

from apishield.core.exceptions import SerializationError

_DATETIME_TAG = "__datetime__"
_DATE_TAG = "__date__"


def _encode_extra(obj: Any) -> Any:
    # datetime is a date subclass, so it must be checked first
    if isinstance(obj, datetime):
        return {_DATETIME_TAG: obj.isoformat()}
    if isinstance(obj, date):
        return {_DATE_TAG: obj.isoformat()}
    if isinstance(obj, (set, frozenset)):
        return sorted(obj, key=str)
    if hasattr(obj, "__dict__"):
        return vars(obj)
    raise TypeError(f"Cannot encode {type(obj).__name__} payload field")


def _decode_tagged(obj: dict[str, Any]) -> Any:
    if len(obj) == 1:
        if _DATETIME_TAG in obj:
            return datetime.fromisoformat(obj[_DATETIME_TAG])
        if _DATE_TAG in obj:
            return date.fromisoformat(obj[_DATE_TAG])
    return obj


class JsonSerializer:
    """Compact JSON codec for API payloads.

    Contact timestamps survive a round trip as ``datetime``/``date``;
    sets become sorted lists and plain objects their attribute mapping.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._encoding = encoding

    def serialize(self, value: Any) -> bytes:
        """Encode a payload.

        Raises:
            SerializationError: If the payload holds an unsupported type
                or a reference cycle.
        """
        try:
            text = json.dumps(value, separators=(",", ":"), default=_encode_extra)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"Failed to serialize payload: {e}") from e
        return text.encode(self._encoding)

    def deserialize(self, data: bytes) -> Any:
        """Decode bytes produced by :meth:`serialize`.

        Raises:
            SerializationError: If the bytes are not valid encoded JSON.
        """
        try:
            return json.loads(data.decode(self._encoding), object_hook=_decode_tagged)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise SerializationError(f"Failed to deserialize payload: {e}") from e
