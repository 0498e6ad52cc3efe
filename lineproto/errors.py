"""
Error types raised and reported by the line protocol parser.
"""

import enum
from typing import Optional


class ErrorKind(enum.Enum):
    """Kinds of line-scoped parse failures."""

    EMPTY_MEASUREMENT = "EmptyMeasurement"
    MISSING_FIELD_SET = "MissingFieldSet"
    MALFORMED_TAG_OR_FIELD = "MalformedTagOrField"
    UNTERMINATED_QUOTED_STRING = "UnterminatedQuotedString"
    INVALID_FIELD_VALUE = "InvalidFieldValue"
    INVALID_TIMESTAMP = "InvalidTimestamp"

    def __str__(self):
        return self.value


class LineProtocolError(Exception):
    """Base class for errors raised by lineproto."""


class ParseError(LineProtocolError, ValueError):
    """
    A single line failed to parse.

    Attributes:
        kind: ErrorKind of the failure.
        line: 1-based line number in the input buffer.
        offset: 0-based byte offset within the line.
        token: Offending raw token, if there is one.
        reason: Human readable detail.
    """

    def __init__(
        self,
        kind: ErrorKind,
        reason: str,
        *,
        line: int = 1,
        offset: int = 0,
        token: Optional[bytes] = None,
    ):
        self.kind = kind
        self.reason = reason
        self.line = line
        self.offset = offset
        self.token = token
        super().__init__(str(self))

    def __str__(self):
        text = "line %d, offset %d: %s: %s" % (self.line, self.offset, self.kind, self.reason)
        if self.token is not None:
            text += " (%r)" % (self.token,)
        return text

    def __repr__(self):
        return "ParseError(%s, line=%d, offset=%d)" % (self.kind, self.line, self.offset)

    def __eq__(self, other):
        if not isinstance(other, ParseError):
            return NotImplemented
        return (self.kind, self.line, self.offset, self.token) == (
            other.kind,
            other.line,
            other.offset,
            other.token,
        )

    def __hash__(self):
        return hash((self.kind, self.line, self.offset, self.token))

    def at_line(self, line: int) -> "ParseError":
        """Return a copy of the error relocated to another line number."""
        return ParseError(self.kind, self.reason, line=line, offset=self.offset, token=self.token)
