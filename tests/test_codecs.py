"""
Unit tests for value codecs.
Tests interchange encoding, tolerant decoding and per-family native support.
"""
import ipaddress
import json
import xml.etree.ElementTree as ET
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal

import pytest

from dataforge_schema.codecs import (
    Box,
    Circle,
    CodecRegistry,
    DriverNativeSupport,
    LineSegment,
    NoNativeSupport,
    Path,
    Point,
    Polygon,
    Psycopg2NativeSupport,
    Range,
    ValueKind,
    native_support_for,
)
from dataforge_schema.connection import DriverFamily
from dataforge_schema.errors import FormatError
from dataforge_schema.type_mapping import LogicalType

L = LogicalType


@pytest.fixture
def codecs():
    """Codecs for a driver without native structured types."""
    return CodecRegistry.for_family("sqlite")


class TestNativeSupport:
    """Test the native support declared per family."""

    def test_families(self):
        """Test each family's driver declaration."""
        assert isinstance(native_support_for(DriverFamily.POSTGRESQL), Psycopg2NativeSupport)
        assert isinstance(native_support_for(DriverFamily.SQLITE), NoNativeSupport)
        mysql = native_support_for(DriverFamily.MYSQL)
        assert isinstance(mysql, DriverNativeSupport)
        assert mysql.supports(ValueKind.TEMPORAL)
        assert not mysql.supports(ValueKind.JSON)

    def test_temporal_native_for_mysql(self):
        """Test drivers with temporal support get datetime objects."""
        codecs = CodecRegistry.for_family("mariadb")
        value = codecs.encode(L.DATETIME, "2024-03-01T10:00:00Z")
        assert value == datetime(2024, 3, 1, 10, 0)

    def test_unregistered_types_pass_through(self, codecs):
        """Test types without a codec are left alone."""
        assert codecs.get(L.INT32) is None
        assert codecs.encode(L.INT32, 5) == 5
        assert L.POINT in codecs.logical_types()

    def test_none_passes_through(self, codecs):
        """Test None is never converted."""
        assert codecs.encode(L.JSON, None) is None
        assert codecs.decode(L.POINT, None) is None


class TestGeometricCodec:
    """Test geometric values."""

    def test_encode_wkt(self, codecs):
        """Test WKT is used without native geometric types."""
        assert codecs.encode(L.POINT, Point(1, 2.5)) == "POINT(1 2.5)"
        assert codecs.encode(L.CIRCLE, Circle(Point(0, 0), 5)) == "CIRCLE(0 0, 5)"
        assert codecs.encode(L.LINE_SEGMENT, LineSegment(Point(0, 0), Point(1, 1))) == "LINESTRING(0 0, 1 1)"

    def test_encode_postgres(self):
        """Test PostgreSQL literals are used with psycopg2."""
        codecs = CodecRegistry.for_family("postgresql")
        assert codecs.encode(L.POINT, Point(1, 2)) == "(1,2)"
        assert codecs.encode(L.CIRCLE, Circle(Point(0, 0), 5)) == "<(0,0),5>"
        assert codecs.encode(L.PATH, Path([Point(0, 0), Point(1, 1)])) == "[(0,0),(1,1)]"

    def test_decode_either_notation(self, codecs):
        """Test both notations decode to the same value."""
        assert codecs.decode(L.POINT, "(1,2)") == Point(1, 2)
        assert codecs.decode(L.POINT, "POINT(1 2)") == Point(1, 2)
        assert codecs.decode(L.POINT, (1, 2)) == Point(1, 2)
        assert codecs.decode(L.CIRCLE, "<(1,2),3>") == Circle(Point(1, 2), 3)

    def test_box_normalized(self, codecs):
        """Test box corners are normalized to high/low."""
        box = codecs.decode(L.BOX, "(0,0),(2,3)")
        assert box == Box(Point(2, 3), Point(0, 0))
        assert codecs.decode(L.BOX, box.to_wkt()) == box

    def test_closed_paths_and_polygons(self, codecs):
        """Test closing points are dropped when reading WKT rings."""
        square = [Point(0, 0), Point(1, 0), Point(1, 1)]
        assert codecs.decode(L.POLYGON, "POLYGON((0 0, 1 0, 1 1, 0 0))") == Polygon(square)
        path = codecs.decode(L.PATH, "((0,0),(1,0),(1,1))")
        assert path.closed

    def test_invalid(self, codecs):
        """Test malformed geometric text raises FormatError."""
        with pytest.raises(FormatError):
            codecs.decode(L.POINT, "(1,2),(3,4)")
        with pytest.raises(FormatError):
            codecs.decode(L.CIRCLE, "POINT(1 2)")
        with pytest.raises(FormatError):
            codecs.decode(L.POINT, 12)


class TestRangeCodec:
    """Test range values."""

    def test_literals(self, codecs):
        """Test PostgreSQL range literals."""
        value = codecs.decode(L.INT32_RANGE, "[1,10)")
        assert value == Range(1, 10)
        assert 1 in value and 10 not in value
        unbounded = codecs.decode(L.INT32_RANGE, "(,5]")
        assert unbounded.lower_inf
        assert not unbounded.lower_inc
        assert codecs.decode(L.INT32_RANGE, "empty").empty

    def test_json_round_trip(self, codecs):
        """Test ranges travel as JSON objects without native support."""
        text = codecs.encode(L.DECIMAL_RANGE, Range(Decimal("1.5"), None))
        assert json.loads(text) == {"lower": "1.5", "upper": None, "lower_inc": True,
                                    "upper_inc": False, "empty": False}
        assert codecs.decode(L.DECIMAL_RANGE, text) == Range(Decimal("1.5"), None)

    def test_temporal_bounds(self, codecs):
        """Test timestamp bounds are parsed and treated as UTC."""
        value = codecs.decode(L.DATETIME_TZ_RANGE, '["2024-01-01 00:00:00+00","2024-02-01 00:00:00+00")')
        assert value.lower == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert value.upper == datetime(2024, 2, 1, tzinfo=timezone.utc)

    def test_postgres_literal(self, codecs):
        """Test literal rendering quotes bounds."""
        codec = codecs.get(L.DATE_RANGE)
        assert codec.to_postgres(Range(date(2024, 1, 1), date(2024, 1, 31), upper_inc=True)) == \
            '["2024-01-01","2024-01-31"]'
        assert codec.to_postgres(Range.empty_range()) == "empty"

    def test_invalid(self, codecs):
        """Test malformed ranges raise FormatError."""
        with pytest.raises(FormatError):
            codecs.decode(L.INT32_RANGE, "[1,2,3)")
        with pytest.raises(FormatError):
            codecs.decode(L.INT32_RANGE, "[a,b)")


class TestNetworkCodecs:
    """Test IP and MAC address values."""

    def test_inet(self, codecs):
        """Test INET values keep their prefix."""
        assert codecs.decode(L.INET, "192.168.0.1/24") == ipaddress.ip_interface("192.168.0.1/24")
        assert codecs.encode(L.INET, "10.0.0.1") == "10.0.0.1/32"

    def test_cidr(self, codecs):
        """Test CIDR values are networks."""
        assert codecs.decode(L.CIDR, "192.168.0.7/24") == ipaddress.ip_network("192.168.0.0/24")

    def test_invalid_ip(self, codecs):
        """Test malformed addresses raise FormatError."""
        with pytest.raises(FormatError):
            codecs.decode(L.INET, "300.1.1.1")

    @pytest.mark.parametrize("text", ["AA-BB-CC-DD-EE-FF", "aabb.ccdd.eeff", "aa:bb:cc:dd:ee:ff"])
    def test_mac(self, codecs, text):
        """Test MAC spellings decode to canonical text."""
        assert codecs.decode(L.MACADDR, text) == "aa:bb:cc:dd:ee:ff"

    def test_mac_bytes_text(self, codecs):
        """Test MAC text delivered as bytes is decoded before parsing."""
        assert codecs.decode(L.MACADDR, b"AA:BB:CC:DD:EE:FF") == "aa:bb:cc:dd:ee:ff"
        assert codecs.decode(L.MACADDR, bytearray(b"aabbccddeeff")) == "aa:bb:cc:dd:ee:ff"
        with pytest.raises(FormatError):
            codecs.decode(L.MACADDR, b"\xff\xfe\x00")

    def test_mac8_widening(self, codecs):
        """Test 6-byte addresses widen to EUI-64."""
        assert codecs.decode(L.MACADDR8, "08:00:2b:01:02:03") == "08:00:2b:ff:fe:01:02:03"

    def test_mac_text_on_postgres(self):
        """Test MAC addresses are bound as text even with psycopg2."""
        codecs = CodecRegistry.for_family("postgresql")
        assert codecs.encode(L.MACADDR, b"\xaa\xbb\xcc\xdd\xee\xff") == "aa:bb:cc:dd:ee:ff"

    def test_invalid_mac(self, codecs):
        """Test malformed MAC addresses raise FormatError."""
        with pytest.raises(FormatError):
            codecs.decode(L.MACADDR, "zz:bb:cc:dd:ee:ff")
        with pytest.raises(FormatError):
            codecs.decode(L.MACADDR, "aa:bb:cc")


class TestDocumentCodecs:
    """Test JSON, XML, arrays and key/value maps."""

    def test_json(self, codecs):
        """Test compact JSON text."""
        assert codecs.encode(L.JSON, {"a": [1, 2]}) == '{"a":[1,2]}'
        assert codecs.encode(L.JSON, '{"a": 1}') == '{"a":1}'
        assert codecs.decode(L.JSON, b'{"a": 1}') == {"a": 1}

    def test_invalid_json(self, codecs):
        """Test malformed JSON raises FormatError."""
        with pytest.raises(FormatError):
            codecs.decode(L.JSON, "{nope")

    def test_xml(self, codecs):
        """Test XML decodes to an element."""
        element = codecs.decode(L.XML, "<order id='1'><line/></order>")
        assert element.tag == "order"
        assert element.get("id") == "1"
        assert codecs.encode(L.XML, ET.Element("empty")) == "<empty />"

    def test_invalid_xml(self, codecs):
        """Test malformed XML raises FormatError."""
        with pytest.raises(FormatError):
            codecs.decode(L.XML, "<open>")

    def test_array(self, codecs):
        """Test arrays travel as JSON text without native support."""
        assert codecs.encode(L.ARRAY, (1, 2, 3)) == "[1, 2, 3]"
        assert codecs.decode(L.ARRAY, "[1, 2]") == [1, 2]
        with pytest.raises(FormatError):
            codecs.decode(L.ARRAY, '{"a": 1}')

    def test_array_native(self):
        """Test psycopg2 receives lists."""
        codecs = CodecRegistry.for_family("postgresql")
        assert codecs.encode(L.ARRAY, (1, 2)) == [1, 2]

    def test_key_value(self, codecs):
        """Test key/value maps have sorted keys."""
        assert codecs.encode(L.KEY_VALUE, {"b": "2", "a": "1"}) == '{"a": "1", "b": "2"}'
        with pytest.raises(FormatError):
            codecs.decode(L.KEY_VALUE, "[1]")


class TestTemporalCodec:
    """Test date and time values."""

    def test_iso_text(self, codecs):
        """Test ISO text without native temporal support."""
        assert codecs.encode(L.DATE, date(2024, 3, 1)) == "2024-03-01"
        assert codecs.encode(L.DATETIME, datetime(2024, 3, 1, 10, 30)) == "2024-03-01T10:30:00"

    def test_naive_is_utc(self, codecs):
        """Test naive values are treated as UTC."""
        assert codecs.decode(L.DATETIME_TZ, "2024-03-01 10:30:00") == \
            datetime(2024, 3, 1, 10, 30, tzinfo=timezone.utc)
        aware = datetime(2024, 3, 1, 12, 30, tzinfo=timezone(timedelta(hours=2)))
        assert codecs.decode(L.DATETIME, aware) == datetime(2024, 3, 1, 10, 30)

    def test_offsets(self, codecs):
        """Test Z and short offsets are accepted."""
        assert codecs.decode(L.DATETIME, "2024-03-01T10:30:00Z") == datetime(2024, 3, 1, 10, 30)
        assert codecs.decode(L.DATETIME, "2024-03-01 12:30:00+02") == datetime(2024, 3, 1, 10, 30)

    def test_other_representations(self, codecs):
        """Test epoch seconds and timedelta times."""
        assert codecs.decode(L.DATETIME, 0) == datetime(1970, 1, 1)
        assert codecs.decode(L.TIME, timedelta(hours=9, minutes=15)) == time(9, 15)
        assert codecs.decode(L.DATE, "2024-03-01 23:00:00") == date(2024, 3, 1)

    def test_invalid(self, codecs):
        """Test malformed temporal values raise FormatError."""
        with pytest.raises(FormatError):
            codecs.decode(L.DATE, "yesterday")
        with pytest.raises(FormatError):
            codecs.decode(L.TIME, timedelta(days=2))
