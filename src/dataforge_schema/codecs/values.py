"""
Interchange value types - driver-independent values for structured columns

Geometric primitives render both as Well-Known-Text (portable fallback) and
as PostgreSQL literals (what the native geometric types accept):

    Point(1, 2).to_wkt()        -> "POINT(1 2)"
    Point(1, 2).to_postgres()   -> "(1,2)"
    Circle(Point(0, 0), 5)      -> "CIRCLE(0 0, 5)" / "<(0,0),5>"

Range bounds of None are infinite.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional


def _num(value: float) -> str:
    """Shortest text for a coordinate: 1.0 -> "1", 1.5 -> "1.5"."""
    value = float(value)
    return str(int(value)) if value.is_integer() else repr(value)


@dataclass(frozen=True)
class Point:
    x: float
    y: float

    def __post_init__(self):
        object.__setattr__(self, "x", float(self.x))
        object.__setattr__(self, "y", float(self.y))

    def wkt_coords(self) -> str:
        return f"{_num(self.x)} {_num(self.y)}"

    def to_wkt(self) -> str:
        return f"POINT({self.wkt_coords()})"

    def to_postgres(self) -> str:
        return f"({_num(self.x)},{_num(self.y)})"


@dataclass(frozen=True)
class LineSegment:
    start: Point
    end: Point

    def to_wkt(self) -> str:
        return f"LINESTRING({self.start.wkt_coords()}, {self.end.wkt_coords()})"

    def to_postgres(self) -> str:
        return f"[{self.start.to_postgres()},{self.end.to_postgres()}]"


@dataclass(frozen=True)
class Box:
    """Axis-aligned box given by two opposite corners (normalized to high/low)."""
    high: Point
    low: Point

    def __post_init__(self):
        high = Point(max(self.high.x, self.low.x), max(self.high.y, self.low.y))
        low = Point(min(self.high.x, self.low.x), min(self.high.y, self.low.y))
        object.__setattr__(self, "high", high)
        object.__setattr__(self, "low", low)

    def to_wkt(self) -> str:
        lo, hi = self.low, self.high
        ring = [lo, Point(hi.x, lo.y), hi, Point(lo.x, hi.y), lo]
        return f"POLYGON(({', '.join(p.wkt_coords() for p in ring)}))"

    def to_postgres(self) -> str:
        return f"{self.high.to_postgres()},{self.low.to_postgres()}"


@dataclass(frozen=True)
class Path:
    points: List[Point] = field(default_factory=list)
    closed: bool = False

    def __post_init__(self):
        object.__setattr__(self, "points", list(self.points))

    def to_wkt(self) -> str:
        points = list(self.points)
        if self.closed:
            if points and points[0] != points[-1]:
                points.append(points[0])
            return f"POLYGON(({', '.join(p.wkt_coords() for p in points)}))"
        return f"LINESTRING({', '.join(p.wkt_coords() for p in points)})"

    def to_postgres(self) -> str:
        inner = ",".join(p.to_postgres() for p in self.points)
        return f"({inner})" if self.closed else f"[{inner}]"


@dataclass(frozen=True)
class Polygon:
    points: List[Point] = field(default_factory=list)

    def __post_init__(self):
        object.__setattr__(self, "points", list(self.points))

    def to_wkt(self) -> str:
        points = list(self.points)
        if points and points[0] != points[-1]:
            points.append(points[0])
        return f"POLYGON(({', '.join(p.wkt_coords() for p in points)}))"

    def to_postgres(self) -> str:
        return "(" + ",".join(p.to_postgres() for p in self.points) + ")"


@dataclass(frozen=True)
class Circle:
    center: Point
    radius: float

    def __post_init__(self):
        object.__setattr__(self, "radius", float(self.radius))

    def to_wkt(self) -> str:
        return f"CIRCLE({self.center.wkt_coords()}, {_num(self.radius)})"

    def to_postgres(self) -> str:
        return f"<{self.center.to_postgres()},{_num(self.radius)}>"


@dataclass(frozen=True)
class Line:
    """Infinite line a*x + b*y + c = 0."""
    a: float
    b: float
    c: float

    def __post_init__(self):
        for name in ("a", "b", "c"):
            object.__setattr__(self, name, float(getattr(self, name)))

    def to_wkt(self) -> str:
        return f"LINE({_num(self.a)} {_num(self.b)} {_num(self.c)})"

    def to_postgres(self) -> str:
        return f"{{{_num(self.a)},{_num(self.b)},{_num(self.c)}}}"


@dataclass(frozen=True)
class Range:
    """
    Range of comparable values.

    Defaults follow PostgreSQL's canonical form: inclusive lower bound,
    exclusive upper bound.
    """
    lower: Optional[Any] = None
    upper: Optional[Any] = None
    lower_inc: bool = True
    upper_inc: bool = False
    empty: bool = False

    @classmethod
    def empty_range(cls) -> "Range":
        return cls(empty=True, lower_inc=False)

    @property
    def lower_inf(self) -> bool:
        return not self.empty and self.lower is None

    @property
    def upper_inf(self) -> bool:
        return not self.empty and self.upper is None

    def __contains__(self, value: Any) -> bool:
        if self.empty:
            return False
        if self.lower is not None:
            if value < self.lower or (value == self.lower and not self.lower_inc):
                return False
        if self.upper is not None:
            if value > self.upper or (value == self.upper and not self.upper_inc):
                return False
        return True
