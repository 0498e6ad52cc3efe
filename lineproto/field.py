"""
Field values and the field value literal parser.
"""

import enum
import math
import re
from dataclasses import dataclass
from typing import Optional, Union

from . import escape
from .errors import ErrorKind, ParseError

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
UINT64_MAX = 2**64 - 1

TRUE_LITERALS = frozenset([b"t", b"T", b"true", b"True", b"TRUE"])
FALSE_LITERALS = frozenset([b"f", b"F", b"false", b"False", b"FALSE"])

_INTEGER = re.compile(rb"-?[0-9]+")
_UNSIGNED = re.compile(rb"[0-9]+")
_FLOAT = re.compile(rb"-?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][-+]?[0-9]+)?")

QUOTE = ord('"')

# 2**64 has 20 digits; anything longer overflows every integer type here.
MAX_DIGITS = 20


def to_bounded_int(digits: bytes) -> Optional[int]:
    """
    Convert an optionally signed decimal literal to int.

    Returns None when the literal has more significant digits than any 64-bit
    integer, without handing the whole run to int().
    """
    negative = digits[:1] == b"-"
    significant = digits[1 if negative else 0:].lstrip(b"0")
    if len(significant) > MAX_DIGITS:
        return None
    value = int(significant or b"0")
    return -value if negative else value


class FieldType(enum.Enum):
    FLOAT = "float"
    INTEGER = "integer"
    UINTEGER = "uinteger"
    BOOLEAN = "boolean"
    STRING = "string"


@dataclass(frozen=True)
class FieldValue:
    """
    A typed field value. Exactly one variant is active, given by `type`.

    Use the constructors `FieldValue.float()`, `.integer()`, `.uinteger()`,
    `.boolean()` and `.string()`, or `FieldValue.of()` to map a plain
    Python value (int maps to Integer).
    """

    type: FieldType
    value: Union[float, int, bool, str]

    def __post_init__(self):
        kind = self.type
        value = self.value
        if kind is FieldType.FLOAT:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise TypeError("Float field value must be a number, got %r" % (value,))
            if not math.isfinite(value):
                raise ValueError("Float field value must be finite, got %r" % (value,))
            object.__setattr__(self, "value", float(value))
        elif kind is FieldType.INTEGER:
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError("Integer field value must be an int, got %r" % (value,))
            if not INT64_MIN <= value <= INT64_MAX:
                raise ValueError("Integer field value out of signed 64-bit range: %d" % value)
        elif kind is FieldType.UINTEGER:
            if isinstance(value, bool) or not isinstance(value, int):
                raise TypeError("UInteger field value must be an int, got %r" % (value,))
            if not 0 <= value <= UINT64_MAX:
                raise ValueError("UInteger field value out of unsigned 64-bit range: %d" % value)
        elif kind is FieldType.BOOLEAN:
            if not isinstance(value, bool):
                raise TypeError("Boolean field value must be a bool, got %r" % (value,))
        elif kind is FieldType.STRING:
            if not isinstance(value, str):
                raise TypeError("String field value must be a str, got %r" % (value,))
        else:
            raise TypeError("Unknown field type: %r" % (kind,))

    @classmethod
    def float(cls, value):
        """Build a Float value."""
        return cls(FieldType.FLOAT, value)

    @classmethod
    def integer(cls, value):
        """Build a signed 64-bit Integer value."""
        return cls(FieldType.INTEGER, value)

    @classmethod
    def uinteger(cls, value):
        """Build an unsigned 64-bit UInteger value."""
        return cls(FieldType.UINTEGER, value)

    @classmethod
    def boolean(cls, value):
        """Build a Boolean value."""
        return cls(FieldType.BOOLEAN, value)

    @classmethod
    def string(cls, value):
        """Build a String value."""
        return cls(FieldType.STRING, value)

    @classmethod
    def of(cls, value) -> "FieldValue":
        """Wrap a plain Python value; FieldValue instances pass through."""
        if isinstance(value, FieldValue):
            return value
        # bool first: bool is a subclass of int
        if isinstance(value, bool):
            return cls.boolean(value)
        if isinstance(value, int):
            return cls.integer(value)
        if isinstance(value, float):
            return cls.float(value)
        if isinstance(value, str):
            return cls.string(value)
        raise TypeError("Unsupported field value type: %s" % type(value).__name__)

    def to_text(self) -> str:
        """Render the value as a line protocol literal."""
        kind = self.type
        if kind is FieldType.STRING:
            return '"' + escape.field_value(self.value) + '"'
        if kind is FieldType.INTEGER:
            return "%di" % self.value
        if kind is FieldType.UINTEGER:
            return "%du" % self.value
        if kind is FieldType.BOOLEAN:
            return "true" if self.value else "false"
        # repr() is the shortest text that reads back to the same double
        return repr(self.value)


def _invalid(token, offset, reason):
    return ParseError(ErrorKind.INVALID_FIELD_VALUE, reason, offset=offset, token=bytes(token))


def _parse_string(token: bytes, offset: int) -> FieldValue:
    body = token[1:-1]
    i = 0
    n = len(body)
    while i < n:
        ch = body[i]
        if ch == escape.BACKSLASH:
            i += 2
            continue
        if ch == QUOTE:
            raise _invalid(token, offset, "unescaped quote inside string value")
        i += 1
    return FieldValue.string(escape.unescape(body, escape.Context.FIELD_VALUE))


def _closed_by_quote(token: bytes) -> bool:
    """Return True if the last byte is a quote not escaped by a backslash."""
    if len(token) < 2 or token[-1] != QUOTE:
        return False
    run = 0
    for ch in reversed(token[1:-1]):
        if ch != escape.BACKSLASH:
            break
        run += 1
    return run % 2 == 0


def parse_field_value(token: bytes, offset: int = 0) -> FieldValue:
    """
    Classify and parse a raw field value token.

    Raises ParseError(InvalidFieldValue) when the token is not one of the
    recognized literal forms or a number does not fit its type.
    """
    token = bytes(token)
    if not token:
        raise _invalid(token, offset, "missing field value")

    if token[0] == QUOTE:
        if not _closed_by_quote(token):
            raise _invalid(token, offset, "string value must end with a closing quote")
        return _parse_string(token, offset)

    if token in TRUE_LITERALS:
        return FieldValue.boolean(True)
    if token in FALSE_LITERALS:
        return FieldValue.boolean(False)

    suffix = token[-1:]
    if suffix == b"i":
        digits = token[:-1]
        if not _INTEGER.fullmatch(digits):
            raise _invalid(token, offset, "invalid integer literal")
        value = to_bounded_int(digits)
        if value is None or not INT64_MIN <= value <= INT64_MAX:
            raise _invalid(token, offset, "integer overflows signed 64 bits")
        return FieldValue.integer(value)

    if suffix == b"u":
        digits = token[:-1]
        if not _UNSIGNED.fullmatch(digits):
            raise _invalid(token, offset, "invalid unsigned integer literal")
        value = to_bounded_int(digits)
        if value is None or value > UINT64_MAX:
            raise _invalid(token, offset, "unsigned integer overflows 64 bits")
        return FieldValue.uinteger(value)

    if _FLOAT.fullmatch(token):
        value = float(token)
        if not math.isfinite(value):
            raise _invalid(token, offset, "float literal out of range")
        return FieldValue.float(value)

    raise _invalid(token, offset, "unrecognized field value")
