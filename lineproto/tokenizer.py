"""
Line splitting and the per-line tokenizer.

The tokenizer is a single left-to-right scan driven by an explicit state
machine. It only finds token boundaries; the spans it returns are still
escaped and are decoded later by the parser.

    measurement[,tag_key=tag_value...] field_key=field_value[,...] [timestamp]

A backslash in any state makes the scanner step over the next byte, so
escaped delimiters never end a token.
"""

import enum
from dataclasses import dataclass, field
from typing import Iterator, List, NamedTuple, Optional, Tuple, Union

from .errors import ErrorKind, ParseError

BACKSLASH = ord("\\")
COMMA = ord(",")
EQUALS = ord("=")
SPACE = ord(" ")
QUOTE = ord('"')
NEWLINE = ord("\n")
HASH = ord("#")
HORIZONTAL_WHITESPACE = b" \t"


class State(enum.Enum):
    MEASUREMENT = "measurement"
    TAG_KEY = "tag key"
    TAG_VALUE = "tag value"
    FIELD_KEY = "field key"
    FIELD_VALUE_UNQUOTED = "field value"
    FIELD_VALUE_QUOTED = "quoted field value"
    TIMESTAMP = "timestamp"


class Span(NamedTuple):
    """Half-open byte range [start, end) within a line."""

    start: int
    end: int

    def __len__(self):
        return self.end - self.start

    def slice(self, data: bytes) -> bytes:
        return data[self.start:self.end]


@dataclass
class RawLine:
    """Token spans of one line, still escaped."""

    data: bytes
    measurement: Span
    tags: List[Tuple[Span, Span]] = field(default_factory=list)
    fields: List[Tuple[Span, Span]] = field(default_factory=list)
    timestamp: Optional[Span] = None

    def raw(self, span: Span) -> bytes:
        """Return the escaped bytes of a span."""
        return span.slice(self.data)


def _escaped_newline(data: bytes, index: int) -> bool:
    run = 0
    while index - run - 1 >= 0 and data[index - run - 1] == BACKSLASH:
        run += 1
    return run % 2 == 1


def _is_comment(line: bytes) -> bool:
    return line.lstrip(HORIZONTAL_WHITESPACE)[:1] == b"#"


def _line_bounds(data: bytes) -> Iterator[Tuple[int, int]]:
    """
    Yield (start, end) for every line; end is the index of the terminating
    newline, or len(data) for a last line without one.

    Comment lines end at the first newline, escaped or not.
    """
    n = len(data)
    start = search = 0
    while start < n:
        index = data.find(b"\n", search)
        if index == -1:
            yield start, n
            return
        if _escaped_newline(data, index) and not _is_comment(data[start:index]):
            search = index + 1
            continue
        yield start, index
        start = search = index + 1


def strip_line_end(line: bytes) -> bytes:
    """Remove one unescaped trailing newline, then one carriage return."""
    if line.endswith(b"\n") and (_is_comment(line) or not _escaped_newline(line, len(line) - 1)):
        line = line[:-1]
    if line.endswith(b"\r"):
        line = line[:-1]
    return line


def split_lines(data: Union[bytes, bytearray, memoryview]) -> Iterator[Tuple[int, bytes]]:
    """
    Yield (line number, line bytes) for every line in a buffer.

    Lines end at an unescaped newline; a comment line always ends at its first
    newline. One trailing carriage return is removed. Line numbers start at 1
    and count skipped lines too. Each yielded line can be tokenized on its own,
    so the output is safe to shard across workers.
    """
    data = bytes(data)
    for lineno, (start, end) in enumerate(_line_bounds(data), 1):
        line = data[start:end]
        if line.endswith(b"\r"):
            line = line[:-1]
        yield lineno, line


def _last_line_end(data: bytes) -> int:
    last = -1
    for _, end in _line_bounds(data):
        if end < len(data):
            last = end
    return last


class LineBuffer:
    """
    Incremental line splitter for chunked input.

    feed() returns the lines completed by a chunk, close() the remainder.
    Line numbers match split_lines() over the whole input. The max_buffer
    limit is enforced by check(), so lines completed by the chunk that
    overflows are still handed out first.
    """

    def __init__(self, max_buffer: Optional[int] = None):
        self.max_buffer = max_buffer
        self.buffer = b""
        self.lineno = 0

    def _number(self, data):
        lines = []
        for offset, line in split_lines(data):
            lines.append((self.lineno + offset, line))
        if lines:
            self.lineno = lines[-1][0]
        return lines

    def feed(self, chunk: bytes) -> List[Tuple[int, bytes]]:
        self.buffer += chunk
        end = _last_line_end(self.buffer)
        if end == -1:
            return []
        complete = self.buffer[:end + 1]
        self.buffer = self.buffer[end + 1:]
        return self._number(complete)

    def check(self):
        """Raise ValueError if the unfinished line is longer than max_buffer."""
        if self.max_buffer is not None and len(self.buffer) > self.max_buffer:
            raise ValueError(
                "line %d exceeds max_buffer (%d bytes)" % (self.lineno + 1, self.max_buffer)
            )

    def close(self) -> List[Tuple[int, bytes]]:
        data, self.buffer = self.buffer, b""
        return self._number(data)


def is_skipped(line: bytes) -> bool:
    """Return True for blank, whitespace-only and comment lines."""
    stripped = line.lstrip(HORIZONTAL_WHITESPACE)
    if not stripped.strip():
        return True
    return stripped[0] == HASH


class _Scanner:
    """One-shot scanner for a single line."""

    def __init__(self, data: bytes):
        self.data = data
        self.start = 0
        self.measurement: Optional[Span] = None
        self.key: Optional[Span] = None
        self.quote_at = 0
        self.tags: List[Tuple[Span, Span]] = []
        self.fields: List[Tuple[Span, Span]] = []
        self.timestamp: Optional[Span] = None
        self.handlers = {
            State.MEASUREMENT: self.on_measurement,
            State.TAG_KEY: self.on_tag_key,
            State.TAG_VALUE: self.on_tag_value,
            State.FIELD_KEY: self.on_field_key,
            State.FIELD_VALUE_UNQUOTED: self.on_field_value,
            State.FIELD_VALUE_QUOTED: self.on_quoted_value,
            State.TIMESTAMP: self.on_timestamp,
        }

    def error(self, kind, reason, offset, token=None):
        return ParseError(kind, reason, offset=offset, token=token)

    def span(self, pos):
        return Span(self.start, pos)

    def end_measurement(self, pos):
        if pos == self.start:
            raise self.error(ErrorKind.EMPTY_MEASUREMENT, "missing measurement", pos)
        self.measurement = self.span(pos)

    def end_key(self, pos, what):
        if pos == self.start:
            raise self.error(ErrorKind.MALFORMED_TAG_OR_FIELD, "missing %s" % what, pos)
        self.key = self.span(pos)

    def end_tag(self, pos):
        value = self.span(pos)
        if not value:
            raise self.error(
                ErrorKind.MALFORMED_TAG_OR_FIELD,
                "missing tag value",
                pos,
                self.key.slice(self.data),
            )
        self.tags.append((self.key, value))

    def end_field(self, pos):
        self.fields.append((self.key, self.span(pos)))

    def no_separator(self, pos, what):
        if pos == self.start:
            return self.error(ErrorKind.MALFORMED_TAG_OR_FIELD, "missing %s" % what, pos)
        return self.error(
            ErrorKind.MALFORMED_TAG_OR_FIELD,
            "%s without '='" % what,
            self.start,
            self.data[self.start:pos],
        )

    def on_measurement(self, ch, pos):
        if ch == COMMA:
            self.end_measurement(pos)
            self.start = pos + 1
            return State.TAG_KEY
        if ch == SPACE:
            self.end_measurement(pos)
            self.start = pos + 1
            return State.FIELD_KEY
        return State.MEASUREMENT

    def on_tag_key(self, ch, pos):
        if ch == EQUALS:
            self.end_key(pos, "tag key")
            self.start = pos + 1
            return State.TAG_VALUE
        if ch in (COMMA, SPACE):
            raise self.no_separator(pos, "tag key")
        return State.TAG_KEY

    def on_tag_value(self, ch, pos):
        if ch == COMMA:
            self.end_tag(pos)
            self.start = pos + 1
            return State.TAG_KEY
        if ch == SPACE:
            self.end_tag(pos)
            self.start = pos + 1
            return State.FIELD_KEY
        if ch == EQUALS:
            raise self.error(
                ErrorKind.MALFORMED_TAG_OR_FIELD,
                "unescaped '=' in tag value",
                pos,
                self.data[self.start:pos + 1],
            )
        return State.TAG_VALUE

    def on_field_key(self, ch, pos):
        if ch == EQUALS:
            self.end_key(pos, "field key")
            self.start = pos + 1
            return State.FIELD_VALUE_UNQUOTED
        if ch in (COMMA, SPACE):
            if pos == self.start and not self.fields:
                raise self.error(ErrorKind.MISSING_FIELD_SET, "missing field set", pos)
            raise self.no_separator(pos, "field key")
        return State.FIELD_KEY

    def on_field_value(self, ch, pos):
        if ch == QUOTE and pos == self.start:
            self.quote_at = pos
            return State.FIELD_VALUE_QUOTED
        if ch == COMMA:
            self.end_field(pos)
            self.start = pos + 1
            return State.FIELD_KEY
        if ch == SPACE:
            self.end_field(pos)
            self.start = pos + 1
            return State.TIMESTAMP
        return State.FIELD_VALUE_UNQUOTED

    def on_quoted_value(self, ch, pos):
        if ch == QUOTE:
            return State.FIELD_VALUE_UNQUOTED
        return State.FIELD_VALUE_QUOTED

    def on_timestamp(self, ch, pos):
        return State.TIMESTAMP

    def finish(self, state, pos):
        """Close the open token at end of line."""
        if state is State.MEASUREMENT:
            self.end_measurement(pos)
            raise self.error(ErrorKind.MISSING_FIELD_SET, "missing field set", pos)
        if state is State.TAG_KEY:
            raise self.no_separator(pos, "tag key")
        if state is State.TAG_VALUE:
            self.end_tag(pos)
            raise self.error(ErrorKind.MISSING_FIELD_SET, "missing field set", pos)
        if state is State.FIELD_KEY:
            if pos == self.start and not self.fields:
                raise self.error(ErrorKind.MISSING_FIELD_SET, "missing field set", pos)
            raise self.no_separator(pos, "field key")
        if state is State.FIELD_VALUE_UNQUOTED:
            self.end_field(pos)
        elif state is State.FIELD_VALUE_QUOTED:
            raise self.error(
                ErrorKind.UNTERMINATED_QUOTED_STRING,
                "quoted field value is not closed",
                self.quote_at,
                self.data[self.quote_at:pos],
            )
        elif state is State.TIMESTAMP:
            if pos == self.start:
                raise self.error(
                    ErrorKind.INVALID_TIMESTAMP, "missing timestamp after trailing space", pos
                )
            self.timestamp = self.span(pos)

    def run(self) -> RawLine:
        data = self.data
        n = len(data)
        pos = len(data) - len(data.lstrip(HORIZONTAL_WHITESPACE))
        self.start = pos
        state = State.MEASUREMENT
        handlers = self.handlers
        while pos < n:
            ch = data[pos]
            if ch == BACKSLASH:
                pos += 2
                continue
            state = handlers[state](ch, pos)
            pos += 1
        self.finish(state, min(pos, n))
        return RawLine(
            data=data,
            measurement=self.measurement,
            tags=self.tags,
            fields=self.fields,
            timestamp=self.timestamp,
        )


def tokenize_line(line: Union[bytes, bytearray, memoryview]) -> RawLine:
    """
    Split one line into escaped token spans.

    Raises ParseError (with line number 1) for structural errors; the caller
    relocates it to the real line.
    """
    return _Scanner(bytes(line)).run()
