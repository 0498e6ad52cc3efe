"""
Dict based helpers for callers that work with plain Python values.

    line = build_line_protocol("weather", tags={"site": "a"}, fields={"temp": 21.5}, timestamp=1)
    measurement, tags, fields, timestamp = parse_line_protocol(line)
"""

from typing import Any, Dict, Optional, Tuple

from .parser import parse_line
from .point import PointBuilder
from .serializer import format_point


def build_line_protocol(
    measurement: str,
    tags: Optional[Dict[str, str]] = None,
    fields: Optional[Dict[str, Any]] = None,
    timestamp: Optional[int] = None,
) -> str:
    """
    Build one canonical line from plain values.

    Tags with empty or None values are left out. Field values map by Python
    type: bool, int (Integer, "i" suffix), float, str; FieldValue instances
    are used as is.
    """
    builder = PointBuilder(measurement)
    for key, value in (tags or {}).items():
        if value is None or value == "":
            continue
        builder.tag(key, str(value))
    builder.fields(fields or {})
    if timestamp is not None:
        builder.timestamp(int(timestamp))
    return format_point(builder.build())


def parse_line_protocol(line) -> Tuple[str, Dict[str, str], Dict[str, Any], Optional[int]]:
    """
    Parse one line into (measurement, tags, fields, timestamp).

    Values come back as plain Python objects. Raises ParseError for malformed
    input and ValueError for a comment or blank line.
    """
    point = parse_line(line)
    if point is None:
        raise ValueError("Line contains no point: %r" % (line,))
    return point.measurement, point.tag_dict(), point.field_dict(), point.timestamp
