from .errors import ErrorKind, LineProtocolError, ParseError
from .escape import Context
from .field import FieldType, FieldValue, parse_field_value
from .influx import build_line_protocol, parse_line_protocol
from .parser import aiter_stream, iter_points, iter_stream, parse, parse_line
from .point import Point, PointBuilder
from .precision import Precision
from .serializer import Batch, format_point, serialize, serialize_point
from .settings import Settings
from .tokenizer import split_lines, tokenize_line

__all__ = [
    "Batch",
    "Context",
    "ErrorKind",
    "FieldType",
    "FieldValue",
    "LineProtocolError",
    "ParseError",
    "Point",
    "PointBuilder",
    "Precision",
    "Settings",
    "aiter_stream",
    "build_line_protocol",
    "format_point",
    "iter_points",
    "iter_stream",
    "parse",
    "parse_field_value",
    "parse_line",
    "parse_line_protocol",
    "serialize",
    "serialize_point",
    "split_lines",
    "tokenize_line",
]
