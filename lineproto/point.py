"""
The Point data model and its builder.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, List, Optional, Tuple, Union

from . import escape
from .escape import Context
from .field import INT64_MAX, INT64_MIN, FieldType, FieldValue
from .precision import DEFAULT_PRECISION, Precision

Tag = Tuple[str, str]
Field = Tuple[str, FieldValue]


@dataclass(frozen=True)
class Point:
    """
    One line of line protocol.

    Tags keep the order they were given in (duplicates included); the
    serializer sorts them. Fields keep their order. A missing timestamp
    means the receiver assigns one at ingestion time.

    All text is owned: a Point does not reference the buffer it was parsed
    from.
    """

    measurement: str
    tags: Tuple[Tag, ...] = ()
    fields: Tuple[Field, ...] = ()
    timestamp: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, "tags", tuple((str(k), str(v)) for k, v in self.tags))
        object.__setattr__(
            self, "fields", tuple((str(k), FieldValue.of(v)) for k, v in self.fields)
        )
        ts = self.timestamp
        if ts is not None:
            if isinstance(ts, bool) or not isinstance(ts, int):
                raise TypeError("timestamp must be an int, got %r" % (ts,))
            if not INT64_MIN <= ts <= INT64_MAX:
                raise ValueError("timestamp out of signed 64-bit range: %d" % ts)

    @classmethod
    def builder(cls, measurement: str) -> "PointBuilder":
        return PointBuilder(measurement)

    def get_tag(self, key: str, default=None):
        """Return the value of the first tag with this key."""
        for k, v in self.tags:
            if k == key:
                return v
        return default

    def get_field(self, key: str, default=None):
        """Return the FieldValue of the first field with this key."""
        for k, v in self.fields:
            if k == key:
                return v
        return default

    def tag_dict(self):
        return dict(self.tags)

    def field_dict(self):
        """Return fields as plain Python values keyed by name."""
        return {k: v.value for k, v in self.fields}

    def to_line_protocol(self) -> str:
        from .serializer import format_point

        return format_point(self)


def _check_name(text: str, context: Context, what: str) -> None:
    if not isinstance(text, str):
        raise TypeError("%s must be a str, got %r" % (what, text))
    if not text:
        raise ValueError("%s must not be empty" % what)
    if text.startswith("_"):
        raise ValueError("%s must not start with '_' (reserved): %r" % (what, text))
    _check_text(text, context, what)


def _check_text(text: str, context: Context, what: str) -> None:
    if "\n" in text:
        raise ValueError("newline is not allowed in %s: %r" % (what, text))
    if not escape.survives_reparse(text, context):
        raise ValueError("%s has a dangling backslash before a delimiter: %r" % (what, text))


class PointBuilder:
    """
    Build a Point with the naming restrictions of InfluxDB applied.

        point = (
            Point.builder("weather")
            .tag("location", "us-midwest")
            .field("temperature", 82.0)
            .timestamp(1465839830100400200)
            .build()
        )
    """

    def __init__(self, measurement: str):
        self._measurement = measurement
        self._tags: List[Tag] = []
        self._fields: List[Tuple[str, FieldValue]] = []
        self._timestamp: Optional[int] = None

    def tag(self, key: str, value: str) -> "PointBuilder":
        self._tags.append((key, value))
        return self

    def tags(self, items: Union[dict, Iterable[Tag]]) -> "PointBuilder":
        if isinstance(items, dict):
            items = items.items()
        for key, value in items:
            self.tag(key, value)
        return self

    def field(self, key: str, value: Any) -> "PointBuilder":
        """Add a field; plain bool/int/float/str values are wrapped."""
        self._fields.append((key, FieldValue.of(value)))
        return self

    def fields(self, items: Union[dict, Iterable[Tuple[str, Any]]]) -> "PointBuilder":
        if isinstance(items, dict):
            items = items.items()
        for key, value in items:
            self.field(key, value)
        return self

    def timestamp(
        self,
        value: Union[int, datetime, None],
        precision: Union[Precision, str] = DEFAULT_PRECISION,
    ) -> "PointBuilder":
        """Set the timestamp from an int or a datetime at the given precision."""
        if isinstance(value, datetime):
            value = Precision.parse(precision).from_datetime(value)
        self._timestamp = value
        return self

    def build(self) -> Point:
        _check_name(self._measurement, Context.MEASUREMENT, "measurement")
        for key, value in self._tags:
            _check_name(key, Context.TAG_KEY, "tag key")
            if not isinstance(value, str):
                raise TypeError("tag value must be a str, got %r" % (value,))
            if not value:
                raise ValueError("tag value for %r must not be empty" % key)
            _check_text(value, Context.TAG_VALUE, "tag value")
        if not self._fields:
            raise ValueError("At least one field is required")
        for key, value in self._fields:
            _check_name(key, Context.FIELD_KEY, "field key")
            if value.type is FieldType.STRING:
                _check_text(value.value, Context.FIELD_VALUE, "string field value")
        return Point(
            measurement=self._measurement,
            tags=tuple(self._tags),
            fields=tuple(self._fields),
            timestamp=self._timestamp,
        )
