"""
Escape rules for the InfluxDB line protocol.

Each token kind has its own set of special characters:

    measurement                  comma, space
    tag key, tag value, field key  comma, equals sign, space
    string field value           double quote, backslash

Escaping prefixes every special character with a backslash. Unescaping is
conservative: a backslash is only consumed when it precedes a special
character of the context; any other backslash is kept together with the byte
after it. Inside string values a backslash that precedes a newline is
written as is, so the newline stays escaped for the line splitter.
"""

import enum
from typing import Union

ENCODING = "utf-8"
ERRORS = "surrogateescape"

BACKSLASH = ord("\\")


class Context(enum.Enum):
    """Token kinds with distinct escaping rules."""

    MEASUREMENT = "measurement"
    TAG_KEY = "tag key"
    TAG_VALUE = "tag value"
    FIELD_KEY = "field key"
    FIELD_VALUE = "field value"


_SPECIAL = {
    Context.MEASUREMENT: b", ",
    Context.TAG_KEY: b",= ",
    Context.TAG_VALUE: b",= ",
    Context.FIELD_KEY: b",= ",
    Context.FIELD_VALUE: b'"\\',
}


def special_chars(context: Context) -> bytes:
    """Return the bytes that need a preceding backslash in a context."""
    return _SPECIAL[context]


def to_bytes(text: Union[str, bytes, bytearray, memoryview]) -> bytes:
    """Encode text the way the codec does; bytes pass through."""
    if isinstance(text, str):
        return text.encode(ENCODING, ERRORS)
    return bytes(text)


def to_text(raw: bytes) -> str:
    """Decode bytes, keeping invalid UTF-8 as surrogate escapes."""
    return raw.decode(ENCODING, ERRORS)


def escape_bytes(raw: bytes, context: Context) -> bytes:
    """Escape a byte string for the given context."""
    special = _SPECIAL[context]
    if not any(ch in special for ch in raw):
        return raw
    out = bytearray()
    for i, ch in enumerate(raw):
        # a backslash before a newline stays single so the newline is still
        # escaped when the text is split into lines again
        if ch in special and not (ch == BACKSLASH and raw[i + 1:i + 2] == b"\n"):
            out.append(BACKSLASH)
        out.append(ch)
    return bytes(out)


def unescape_bytes(raw: bytes, context: Context) -> bytes:
    """Unescape a byte string for the given context."""
    if BACKSLASH not in raw:
        return raw
    special = _SPECIAL[context]
    out = bytearray()
    i = 0
    n = len(raw)
    while i < n:
        ch = raw[i]
        if ch == BACKSLASH and i + 1 < n:
            nxt = raw[i + 1]
            if nxt not in special:
                out.append(ch)
            out.append(nxt)
            i += 2
            continue
        out.append(ch)
        i += 1
    return bytes(out)


def escape(text: str, context: Context) -> str:
    """Escape text for the given context."""
    return to_text(escape_bytes(to_bytes(text), context))


def unescape(raw: Union[str, bytes], context: Context) -> str:
    """Return the logical text of a raw token."""
    return to_text(unescape_bytes(to_bytes(raw), context))


def measurement(text: str) -> str:
    """Escape text as a measurement."""
    return escape(text, Context.MEASUREMENT)


def tag_key(text: str) -> str:
    """Escape text as a tag key."""
    return escape(text, Context.TAG_KEY)


def tag_value(text: str) -> str:
    """Escape text as a tag value."""
    return escape(text, Context.TAG_VALUE)


def field_key(text: str) -> str:
    """Escape text as a field key."""
    return escape(text, Context.FIELD_KEY)


def field_value(text: str) -> str:
    """Escape text as the inside of a string field value."""
    return escape(text, Context.FIELD_VALUE)


def survives_reparse(text: str, context: Context) -> bool:
    """
    Return True if escape(text) unescapes back to text after tokenizing.

    Outside string values the backslash itself is never escaped, so an odd
    run of backslashes before a special character or at the end of the text
    would swallow the delimiter that follows it.
    """
    if context is Context.FIELD_VALUE:
        return True
    raw = to_bytes(text)
    special = _SPECIAL[context]
    run = 0
    for ch in raw:
        if ch == BACKSLASH:
            run += 1
            continue
        if run % 2 and ch in special:
            return False
        run = 0
    return run % 2 == 0
