"""
Geometric codec - point, line, segment, box, path, polygon, circle

Drivers with native geometric types (PostgreSQL) are bound the PostgreSQL
literal text; everything else gets Well-Known-Text. Decode reads either
notation, plus tuples for points:

    point    (x,y)              POINT(x y)
    line     {a,b,c}            LINE(a b c)
    lseg     [(x1,y1),(x2,y2)]  LINESTRING(x1 y1, x2 y2)
    box      (x1,y1),(x2,y2)    POLYGON((...))  (bounding box of the ring)
    path     [(..),..] open     LINESTRING(...)
             ((..),..) closed   POLYGON((...))
    polygon  ((..),..)          POLYGON((...))
    circle   <(x,y),r>          CIRCLE(x y, r)
"""

import re
from typing import Any, List

from ..type_mapping import LogicalType
from .base import ValueCodec
from .native import ValueKind
from .values import Box, Circle, Line, LineSegment, Path, Point, Polygon

GEOMETRIC_TYPES = (
    LogicalType.POINT,
    LogicalType.LINE,
    LogicalType.LINE_SEGMENT,
    LogicalType.BOX,
    LogicalType.PATH,
    LogicalType.POLYGON,
    LogicalType.CIRCLE,
)

_VALUE_CLASSES = {
    LogicalType.POINT: Point,
    LogicalType.LINE: Line,
    LogicalType.LINE_SEGMENT: LineSegment,
    LogicalType.BOX: Box,
    LogicalType.PATH: Path,
    LogicalType.POLYGON: Polygon,
    LogicalType.CIRCLE: Circle,
}

_NUMBER = r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?"
_PG_POINT = re.compile(rf"\(\s*({_NUMBER})\s*,\s*({_NUMBER})\s*\)")
_WKT = re.compile(r"^\s*([A-Za-z]+)\s*\((.*)\)\s*$", re.DOTALL)


def _numbers(text: str) -> List[float]:
    return [float(n) for n in re.findall(_NUMBER, text)]


def _pg_points(text: str) -> List[Point]:
    return [Point(float(x), float(y)) for x, y in _PG_POINT.findall(text)]


def _wkt_points(text: str) -> List[Point]:
    points = []
    for pair in text.replace("(", "").replace(")", "").split(","):
        coords = pair.split()
        if len(coords) != 2:
            raise ValueError(f"bad WKT coordinate pair {pair.strip()!r}")
        points.append(Point(float(coords[0]), float(coords[1])))
    return points


def _bounding_box(points: List[Point]) -> Box:
    xs = [p.x for p in points]
    ys = [p.y for p in points]
    return Box(Point(max(xs), max(ys)), Point(min(xs), min(ys)))


class GeometricCodec(ValueCodec):
    """One PostgreSQL-style geometric primitive."""

    kind = ValueKind.GEOMETRIC

    @property
    def value_class(self):
        return _VALUE_CLASSES[self.logical_type]

    def encode_native(self, value: Any) -> str:
        return self.decode(value).to_postgres()

    def encode_text(self, value: Any) -> str:
        return self.decode(value).to_wkt()

    def decode_value(self, value: Any) -> Any:
        if isinstance(value, self.value_class):
            return value
        if self.logical_type == LogicalType.POINT and isinstance(value, (tuple, list)) and len(value) == 2:
            return Point(value[0], value[1])
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        if not isinstance(value, str):
            raise self._fail(value, "PostgreSQL or WKT text")
        text = value.strip()
        match = _WKT.match(text)
        if match and match.group(1).isalpha():
            return self._from_wkt(text, match.group(1).upper(), match.group(2))
        return self._from_postgres(text)

    # ==================== PostgreSQL literals ====================

    def _from_postgres(self, text: str) -> Any:
        lt = self.logical_type
        if lt == LogicalType.LINE:
            numbers = _numbers(text)
            if not (text.startswith("{") and len(numbers) == 3):
                raise self._fail(text, "{a,b,c}")
            return Line(*numbers)
        if lt == LogicalType.CIRCLE:
            numbers = _numbers(text)
            if len(numbers) != 3:
                raise self._fail(text, "<(x,y),r>")
            return Circle(Point(numbers[0], numbers[1]), numbers[2])

        points = _pg_points(text)
        if lt == LogicalType.POINT:
            if len(points) != 1:
                raise self._fail(text, "(x,y)")
            return points[0]
        if lt == LogicalType.LINE_SEGMENT:
            if len(points) != 2:
                raise self._fail(text, "[(x1,y1),(x2,y2)]")
            return LineSegment(points[0], points[1])
        if lt == LogicalType.BOX:
            if len(points) != 2:
                raise self._fail(text, "(x1,y1),(x2,y2)")
            return Box(points[0], points[1])
        if not points:
            raise self._fail(text, "a list of points")
        if lt == LogicalType.PATH:
            return Path(points, closed=not text.startswith("["))
        return Polygon(points)

    # ==================== Well-Known-Text ====================

    def _from_wkt(self, text: str, tag: str, body: str) -> Any:
        lt = self.logical_type
        if lt == LogicalType.POINT and tag == "POINT":
            points = _wkt_points(body)
            if len(points) == 1:
                return points[0]
        elif lt == LogicalType.LINE and tag == "LINE":
            numbers = body.split()
            if len(numbers) == 3:
                return Line(*(float(n) for n in numbers))
        elif lt == LogicalType.CIRCLE and tag == "CIRCLE":
            center, _, radius = body.partition(",")
            points = _wkt_points(center)
            if len(points) == 1 and radius.strip():
                return Circle(points[0], float(radius))
        elif lt == LogicalType.LINE_SEGMENT and tag == "LINESTRING":
            points = _wkt_points(body)
            if len(points) == 2:
                return LineSegment(points[0], points[1])
        elif lt == LogicalType.BOX and tag == "POLYGON":
            return _bounding_box(_wkt_points(body))
        elif lt == LogicalType.PATH and tag in ("LINESTRING", "POLYGON"):
            points = _wkt_points(body)
            closed = tag == "POLYGON"
            if closed and len(points) > 1 and points[0] == points[-1]:
                points = points[:-1]
            return Path(points, closed=closed)
        elif lt == LogicalType.POLYGON and tag == "POLYGON":
            points = _wkt_points(body)
            if len(points) > 1 and points[0] == points[-1]:
                points = points[:-1]
            return Polygon(points)
        raise self._fail(text, f"WKT for {lt.value}")
