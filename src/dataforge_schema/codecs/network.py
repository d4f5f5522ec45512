"""
Network codecs - IP addresses, networks and MAC addresses

INET values decode to ipaddress interfaces (address plus prefix, e.g.
192.168.0.1/24; a bare address gets the full-length prefix) and CIDR values
to networks. MAC addresses decode to canonical lower-case colon notation
(aa:bb:cc:dd:ee:ff) from any of the usual spellings.
"""

import ipaddress
import re
from typing import Any

from ..type_mapping import LogicalType
from .base import ValueCodec
from .native import ValueKind

_HEX = re.compile(r"[0-9a-fA-F]")
_SEPARATORS = re.compile(r"[:\-.\s]")


class IpAddressCodec(ValueCodec):
    """INET (interface) and CIDR (network) values."""

    kind = ValueKind.NETWORK

    def encode_native(self, value: Any) -> str:
        return str(self.decode(value))

    def encode_text(self, value: Any) -> str:
        return str(self.decode(value))

    def decode_value(self, value: Any) -> Any:
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        if self.logical_type == LogicalType.CIDR:
            if isinstance(value, (ipaddress.IPv4Network, ipaddress.IPv6Network)):
                return value
            if isinstance(value, (ipaddress.IPv4Interface, ipaddress.IPv6Interface)):
                return value.network
            return ipaddress.ip_network(str(value).strip(), strict=False)
        if isinstance(value, (ipaddress.IPv4Interface, ipaddress.IPv6Interface)):
            return value
        return ipaddress.ip_interface(str(value).strip())


class MacAddressCodec(ValueCodec):
    """MACADDR (6 bytes) and MACADDR8 (8 bytes) values as canonical text."""

    kind = ValueKind.NETWORK

    @property
    def uses_native(self) -> bool:
        # Bound as canonical text on every driver
        return False

    @property
    def size(self) -> int:
        return 8 if self.logical_type == LogicalType.MACADDR8 else 6

    def encode_text(self, value: Any) -> str:
        return self.decode(value)

    def decode_value(self, value: Any) -> str:
        if isinstance(value, (bytes, bytearray)) and len(value) in (6, 8):
            digits = bytes(value).hex()
        else:
            if isinstance(value, (bytes, bytearray)):
                try:
                    value = bytes(value).decode("ascii")
                except UnicodeDecodeError:
                    raise self._fail(value, "hexadecimal MAC address") from None
            text = str(value).strip()
            digits = _SEPARATORS.sub("", text)
            if not digits or len(_HEX.findall(digits)) != len(digits):
                raise self._fail(value, "hexadecimal MAC address")
        if len(digits) == 12 and self.size == 8:
            # EUI-48 widened to EUI-64 the way PostgreSQL does
            digits = digits[:6] + "fffe" + digits[6:]
        if len(digits) != self.size * 2:
            raise self._fail(value, f"{self.size} bytes")
        digits = digits.lower()
        return ":".join(digits[i:i + 2] for i in range(0, len(digits), 2))
