"""
Timestamp precision for building points from datetimes.

The parser never converts units; a parsed timestamp is the integer written
on the line.
"""

import enum
from datetime import datetime, timezone

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_NANOS = {"s": 10**9, "ms": 10**6, "us": 10**3, "ns": 1}
_ORDER = ["s", "ms", "us", "ns"]


class Precision(enum.Enum):
    SECONDS = "s"
    MILLISECONDS = "ms"
    MICROSECONDS = "us"
    NANOSECONDS = "ns"

    def __str__(self):
        return self.value

    def __lt__(self, other):
        if not isinstance(other, Precision):
            return NotImplemented
        return _ORDER.index(self.value) < _ORDER.index(other.value)

    def __le__(self, other):
        if not isinstance(other, Precision):
            return NotImplemented
        return self == other or self < other

    def __gt__(self, other):
        if not isinstance(other, Precision):
            return NotImplemented
        return other < self

    def __ge__(self, other):
        if not isinstance(other, Precision):
            return NotImplemented
        return self == other or other < self

    @classmethod
    def parse(cls, text) -> "Precision":
        """Return the precision for "s", "ms", "us" or "ns"."""
        if isinstance(text, Precision):
            return text
        try:
            return cls(text)
        except ValueError:
            raise ValueError("Unknown precision: %r (expected s, ms, us or ns)" % (text,)) from None

    @property
    def nanos(self) -> int:
        """Nanoseconds per unit."""
        return _NANOS[self.value]

    def from_datetime(self, dt: datetime) -> int:
        """Convert a datetime to an integer timestamp; naive values are UTC."""
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        delta = dt - EPOCH
        nanos = (delta.days * 86400 + delta.seconds) * 10**9 + delta.microseconds * 10**3
        return nanos // self.nanos


DEFAULT_PRECISION = Precision.NANOSECONDS
