"""
Document codecs - JSON and XML values

JSON decodes to Python structures (text, bytes or already-parsed values are
accepted) and encodes to compact JSON text, or to the driver's JSON adapter
when it has one. XML decodes to an ElementTree Element and encodes to text.
"""

import json
import xml.etree.ElementTree as ET
from typing import Any

from .base import ValueCodec
from .native import ValueKind


class JsonCodec(ValueCodec):
    """JSON documents."""

    kind = ValueKind.JSON

    def encode_native(self, value: Any) -> Any:
        if isinstance(value, (str, bytes)):
            return self.decode(value)
        return value

    def encode_text(self, value: Any) -> str:
        if isinstance(value, (str, bytes)):
            value = self.decode(value)
        return json.dumps(value, separators=(",", ":"), default=str)

    def decode_value(self, value: Any) -> Any:
        if isinstance(value, (bytes, bytearray)):
            value = bytes(value).decode("utf-8")
        if isinstance(value, str):
            return json.loads(value)
        return value


class XmlCodec(ValueCodec):
    """XML documents."""

    kind = ValueKind.XML

    def encode_text(self, value: Any) -> str:
        if isinstance(value, ET.ElementTree):
            value = value.getroot()
        if isinstance(value, ET.Element):
            return ET.tostring(value, encoding="unicode")
        # Validate text before it reaches the database
        return ET.tostring(self.decode(value), encoding="unicode")

    def decode_value(self, value: Any) -> ET.Element:
        if isinstance(value, ET.Element):
            return value
        if isinstance(value, ET.ElementTree):
            return value.getroot()
        if isinstance(value, (bytes, bytearray)):
            value = bytes(value).decode("utf-8")
        try:
            return ET.fromstring(str(value))
        except ET.ParseError as e:
            raise self._fail(value, f"well-formed XML ({e})") from e
