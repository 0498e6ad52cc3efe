"""
Canonical line protocol output.

Tags are written sorted by the bytes of their key (then value), fields in the order
given, and every token is escaped for its context.
"""

from typing import Iterable, List, Union

from . import escape
from .point import Point


def _tag_sort_key(tag):
    key, value = tag
    return escape.to_bytes(key), escape.to_bytes(value)


def format_point(point: Point) -> str:
    """Render one Point as a single canonical line without a newline."""
    if not point.fields:
        raise ValueError("Point %r has no fields; at least one is required" % point.measurement)

    parts = [escape.measurement(point.measurement)]
    for key, value in sorted(point.tags, key=_tag_sort_key):
        parts.append(",%s=%s" % (escape.tag_key(key), escape.tag_value(value)))

    fields = ",".join(
        "%s=%s" % (escape.field_key(key), value.to_text()) for key, value in point.fields
    )
    parts.append(" ")
    parts.append(fields)

    if point.timestamp is not None:
        parts.append(" %d" % point.timestamp)
    return "".join(parts)


def serialize_point(point: Point) -> bytes:
    """Render one Point as newline-terminated bytes."""
    return escape.to_bytes(format_point(point)) + b"\n"


def serialize(points: Union[Point, Iterable[Point]]) -> bytes:
    """Render one or more Points, one newline-terminated line each."""
    if isinstance(points, Point):
        points = [points]
    return b"".join(serialize_point(point) for point in points)


class Batch:
    """An ordered collection of Points written together."""

    def __init__(self, points: Union[Point, Iterable[Point], None] = None):
        if points is None:
            points = []
        elif isinstance(points, Point):
            points = [points]
        self.points: List[Point] = list(points)

    def __len__(self):
        return len(self.points)

    def __iter__(self):
        return iter(self.points)

    def __bool__(self):
        return bool(self.points)

    def append(self, point: Point) -> None:
        self.points.append(point)

    def extend(self, points: Iterable[Point]) -> None:
        self.points.extend(points)

    def to_line_protocol(self) -> str:
        """Return the lines joined by newlines, without a trailing newline."""
        return "\n".join(format_point(point) for point in self.points)

    def to_bytes(self) -> bytes:
        """Return newline-terminated lines, ready for a write request body."""
        return serialize(self.points)
