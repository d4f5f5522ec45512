"""
Structured codecs - arrays and key/value maps

Arrays bind natively where the driver adapts lists (psycopg2) and as a JSON
array elsewhere. Key/value maps always travel as a JSON object.
"""

import json
from typing import Any, Dict, List

from .base import ValueCodec
from .native import ValueKind


class ArrayCodec(ValueCodec):
    """One-dimensional or nested arrays."""

    kind = ValueKind.ARRAY

    def encode_native(self, value: Any) -> List:
        return self.decode(value)

    def encode_text(self, value: Any) -> str:
        return json.dumps(self.decode(value), default=str)

    def decode_value(self, value: Any) -> List:
        if isinstance(value, (list, tuple)):
            return list(value)
        if isinstance(value, (bytes, bytearray)):
            value = bytes(value).decode("utf-8")
        if isinstance(value, str):
            parsed = json.loads(value)
            if isinstance(parsed, list):
                return parsed
        raise self._fail(value, "a list or a JSON array")


class KeyValueCodec(ValueCodec):
    """String-keyed maps (hstore-like)."""

    kind = ValueKind.KEY_VALUE

    def encode_text(self, value: Any) -> str:
        return json.dumps(self.decode(value), default=str, sort_keys=True)

    def decode_value(self, value: Any) -> Dict[str, Any]:
        if isinstance(value, dict):
            return {str(k): v for k, v in value.items()}
        if isinstance(value, (bytes, bytearray)):
            value = bytes(value).decode("utf-8")
        if isinstance(value, str):
            parsed = json.loads(value)
            if isinstance(parsed, dict):
                return parsed
        raise self._fail(value, "a dict or a JSON object")
