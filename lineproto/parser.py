"""
Line protocol parser.

Turns a buffer (or a stream) of line protocol into Points:

    from lineproto import iter_points, ParseError

    for result in iter_points(b"weather,location=us-midwest temperature=82 1465839830100400200\\n"):
        if isinstance(result, ParseError):
            print(result)
        else:
            print(result.measurement, result.fields)

Comment lines (starting with '#') and blank lines produce nothing. Every other
line produces either a Point or a ParseError, in input order; an error never
stops the lines after it from being parsed. Nothing is carried over from one
line to the next.
"""

import logging
import re
from typing import BinaryIO, Iterable, Iterator, List, Optional, Tuple, Union

from . import escape
from .errors import ErrorKind, ParseError
from .escape import Context
from .field import INT64_MAX, INT64_MIN, parse_field_value, to_bounded_int
from .point import Point
from .settings import Settings
from .tokenizer import (
    LineBuffer,
    RawLine,
    is_skipped,
    split_lines,
    strip_line_end,
    tokenize_line,
)

logger = logging.getLogger(__name__)

ParseResult = Union[Point, ParseError]
Data = Union[bytes, bytearray, memoryview, str]

_TIMESTAMP = re.compile(rb"-?[0-9]+")


def parse_timestamp(token: bytes, offset: int = 0) -> int:
    """Parse a raw timestamp as a signed 64-bit integer."""
    if not _TIMESTAMP.fullmatch(token):
        raise ParseError(
            ErrorKind.INVALID_TIMESTAMP, "timestamp is not an integer", offset=offset, token=token
        )
    value = to_bounded_int(token)
    if value is None or not INT64_MIN <= value <= INT64_MAX:
        raise ParseError(
            ErrorKind.INVALID_TIMESTAMP,
            "timestamp overflows signed 64 bits",
            offset=offset,
            token=token,
        )
    return value


def build_point(raw: RawLine) -> Point:
    """Unescape and type the spans of a tokenized line."""
    measurement = escape.unescape(raw.raw(raw.measurement), Context.MEASUREMENT)
    tags = tuple(
        (
            escape.unescape(raw.raw(key), Context.TAG_KEY),
            escape.unescape(raw.raw(value), Context.TAG_VALUE),
        )
        for key, value in raw.tags
    )
    fields = tuple(
        (
            escape.unescape(raw.raw(key), Context.FIELD_KEY),
            parse_field_value(raw.raw(value), offset=value.start),
        )
        for key, value in raw.fields
    )
    timestamp = None
    if raw.timestamp is not None:
        timestamp = parse_timestamp(raw.raw(raw.timestamp), offset=raw.timestamp.start)
    return Point(measurement=measurement, tags=tags, fields=fields, timestamp=timestamp)


def parse_line(line: Data, lineno: int = 1) -> Optional[Point]:
    """
    Parse a single line.

    Returns None for comment and blank lines; raises ParseError otherwise
    when the line is malformed. One trailing newline (and carriage return)
    is dropped, so readline() output can be passed as is.
    """
    line = strip_line_end(escape.to_bytes(line))
    if is_skipped(line):
        return None
    try:
        return build_point(tokenize_line(line))
    except ParseError as exc:
        raise exc.at_line(lineno) from None


def _results(lines: Iterable[Tuple[int, bytes]]) -> Iterator[ParseResult]:
    for lineno, line in lines:
        try:
            point = parse_line(line, lineno)
        except ParseError as exc:
            logger.debug("Rejected line %d: %s", lineno, exc)
            yield exc
            continue
        if point is not None:
            yield point


def iter_points(data: Data) -> Iterator[ParseResult]:
    """Lazily yield a Point or a ParseError for every non-skipped line."""
    return _results(split_lines(escape.to_bytes(data)))


def parse(data: Data) -> List[Point]:
    """Parse a whole buffer, raising the first ParseError."""
    points = []
    for result in iter_points(data):
        if isinstance(result, ParseError):
            raise result
        points.append(result)
    return points


def iter_stream(
    fp: BinaryIO,
    *,
    chunk_size: Optional[int] = None,
    max_buffer: Optional[int] = None,
    settings: Optional[Settings] = None,
) -> Iterator[ParseResult]:
    """
    Lazily parse a binary file-like object read in chunks.

    Args:
        fp: Object with a read(size) method returning bytes.
        chunk_size: Read size per iteration.
        max_buffer: Max bytes of one unfinished line before raising ValueError
            (lines completed by the same chunk are yielded first);
            0 removes the limit.
        settings: Defaults for the above (Settings.from_env() when omitted).
    """
    settings = (settings or Settings.from_env()).override(chunk_size, max_buffer)
    lines = LineBuffer(settings.max_buffer)
    while True:
        chunk = fp.read(settings.chunk_size)
        if not chunk:
            break
        yield from _results(lines.feed(chunk))
        try:
            lines.check()
        except ValueError:
            logger.warning("Line protocol stream exceeded max_buffer=%d", settings.max_buffer)
            raise
    yield from _results(lines.close())


async def aiter_stream(
    reader,
    *,
    chunk_size: Optional[int] = None,
    max_buffer: Optional[int] = None,
    settings: Optional[Settings] = None,
):
    """
    Lazily parse line protocol from an asyncio.StreamReader.

    Same arguments and results as iter_stream().
    """
    settings = (settings or Settings.from_env()).override(chunk_size, max_buffer)
    lines = LineBuffer(settings.max_buffer)
    while not reader.at_eof():
        chunk = await reader.read(settings.chunk_size)
        if not chunk:
            break
        for result in _results(lines.feed(chunk)):
            yield result
        try:
            lines.check()
        except ValueError:
            logger.warning("Line protocol stream exceeded max_buffer=%d", settings.max_buffer)
            raise
    for result in _results(lines.close()):
        yield result
