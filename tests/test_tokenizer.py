import pytest

from lineproto.errors import ErrorKind, ParseError
from lineproto.tokenizer import (
    LineBuffer,
    Span,
    is_skipped,
    split_lines,
    strip_line_end,
    tokenize_line,
)


def raw_pairs(raw, pairs):
    return [(raw.raw(key), raw.raw(value)) for key, value in pairs]


def test_tokenize_basic_line():
    raw = tokenize_line(b"weather,location=us-midwest temperature=82 1465839830100400200")

    assert raw.raw(raw.measurement) == b"weather"
    assert raw_pairs(raw, raw.tags) == [(b"location", b"us-midwest")]
    assert raw_pairs(raw, raw.fields) == [(b"temperature", b"82")]
    assert raw.raw(raw.timestamp) == b"1465839830100400200"


def test_tokenize_keeps_spans_escaped():
    line = rb'my\ meas,tag\,k=v\=1 f\ k="a, b=\"c\"" 5'
    raw = tokenize_line(line)

    assert raw.raw(raw.measurement) == rb"my\ meas"
    assert raw_pairs(raw, raw.tags) == [(rb"tag\,k", rb"v\=1")]
    assert raw_pairs(raw, raw.fields) == [(rb"f\ k", rb'"a, b=\"c\""')]
    assert raw.raw(raw.timestamp) == b"5"


def test_tokenize_without_tags_or_timestamp():
    raw = tokenize_line(b"m f=1,g=2i")

    assert raw.tags == []
    assert raw_pairs(raw, raw.fields) == [(b"f", b"1"), (b"g", b"2i")]
    assert raw.timestamp is None


def test_tokenize_multiple_tags_keep_order():
    raw = tokenize_line(b"m,b=1,a=2,b=3 f=1")

    assert raw_pairs(raw, raw.tags) == [(b"b", b"1"), (b"a", b"2"), (b"b", b"3")]


def test_quoted_value_hides_delimiters():
    raw = tokenize_line(b'm s="x y,z=1",t="" 9')

    assert raw_pairs(raw, raw.fields) == [(b"s", b'"x y,z=1"'), (b"t", b'""')]
    assert raw.raw(raw.timestamp) == b"9"


def test_tokenize_skips_leading_whitespace():
    raw = tokenize_line(b"  \tm f=1")

    assert raw.measurement == Span(3, 4)
    assert raw.raw(raw.measurement) == b"m"


def test_tokenize_non_utf8_bytes():
    raw = tokenize_line(b"m\xff,t=\xfe f=\"\xfd\"")

    assert raw.raw(raw.measurement) == b"m\xff"
    assert raw_pairs(raw, raw.tags) == [(b"t", b"\xfe")]


def test_empty_field_value_is_left_to_the_value_parser():
    raw = tokenize_line(b"m f= 1")

    assert raw_pairs(raw, raw.fields) == [(b"f", b"")]


@pytest.mark.parametrize(
    "line, kind, offset",
    [
        (b",t=v f=1", ErrorKind.EMPTY_MEASUREMENT, 0),
        (b"m", ErrorKind.MISSING_FIELD_SET, 1),
        (b"m,t=v", ErrorKind.MISSING_FIELD_SET, 5),
        (b"m ", ErrorKind.MISSING_FIELD_SET, 2),
        (b"m  f=1", ErrorKind.MISSING_FIELD_SET, 2),
        (b"m,t f=1", ErrorKind.MALFORMED_TAG_OR_FIELD, 2),
        (b"m,t", ErrorKind.MALFORMED_TAG_OR_FIELD, 2),
        (b"m,=v f=1", ErrorKind.MALFORMED_TAG_OR_FIELD, 2),
        (b"m,t= f=1", ErrorKind.MALFORMED_TAG_OR_FIELD, 4),
        (b"m,t=a=b f=1", ErrorKind.MALFORMED_TAG_OR_FIELD, 5),
        (b"m, f=1", ErrorKind.MALFORMED_TAG_OR_FIELD, 2),
        (b"m f", ErrorKind.MALFORMED_TAG_OR_FIELD, 2),
        (b"m f=1,g", ErrorKind.MALFORMED_TAG_OR_FIELD, 6),
        (b"m f=1,", ErrorKind.MALFORMED_TAG_OR_FIELD, 6),
        (b"m f=1,,g=2", ErrorKind.MALFORMED_TAG_OR_FIELD, 6),
        (b"m =1", ErrorKind.MALFORMED_TAG_OR_FIELD, 2),
        (b'm f="abc', ErrorKind.UNTERMINATED_QUOTED_STRING, 4),
        (b'm f="a\\"', ErrorKind.UNTERMINATED_QUOTED_STRING, 4),
        (b'm f=1,g="x y 5', ErrorKind.UNTERMINATED_QUOTED_STRING, 8),
        (b"m f=1 ", ErrorKind.INVALID_TIMESTAMP, 6),
    ],
)
def test_tokenize_errors(line, kind, offset):
    with pytest.raises(ParseError) as excinfo:
        tokenize_line(line)

    assert excinfo.value.kind is kind
    assert excinfo.value.offset == offset


def test_malformed_tag_reports_token():
    with pytest.raises(ParseError) as excinfo:
        tokenize_line(b"m,host f=1")

    assert excinfo.value.token == b"host"


def test_escaped_delimiter_at_line_end_is_not_a_separator():
    with pytest.raises(ParseError) as excinfo:
        tokenize_line(b"m\\ ")

    assert excinfo.value.kind is ErrorKind.MISSING_FIELD_SET


def test_split_lines():
    assert list(split_lines(b"a\nb\r\n\nc")) == [
        (1, b"a"),
        (2, b"b"),
        (3, b""),
        (4, b"c"),
    ]


def test_split_lines_trailing_newline_adds_no_line():
    assert list(split_lines(b"a\n")) == [(1, b"a")]
    assert list(split_lines(b"")) == []


def test_split_lines_honours_escaped_newline():
    data = b'm f="a\\\nb"\nn f=1\n'
    assert list(split_lines(data)) == [(1, b'm f="a\\\nb"'), (2, b"n f=1")]


def test_split_lines_even_backslash_run_does_not_escape_newline():
    assert list(split_lines(b"a\\\\\nb")) == [(1, b"a\\\\"), (2, b"b")]


@pytest.mark.parametrize("line", [b"", b"   ", b"\t", b"# c", b"  # c", b"\t#x", b"#"])
def test_skipped_lines(line):
    assert is_skipped(line)


@pytest.mark.parametrize("line", [b"m f=1", b"  m f=1", b"m#x f=1"])
def test_not_skipped_lines(line):
    assert not is_skipped(line)


def test_line_buffer_matches_split_lines():
    data = b'# c\nm f=1\r\n\nn f="a\\\nb"\nlast f=2'
    expected = list(split_lines(data))

    for size in range(1, len(data) + 1):
        lines = LineBuffer()
        got = []
        for i in range(0, len(data), size):
            got.extend(lines.feed(data[i:i + size]))
        got.extend(lines.close())
        assert got == expected


def test_line_buffer_limit():
    lines = LineBuffer(max_buffer=8)
    assert lines.feed(b"m f=1\n") == [(1, b"m f=1")]
    lines.check()

    assert lines.feed(b"n f=2\nm f=123456789") == [(2, b"n f=2")]
    with pytest.raises(ValueError):
        lines.check()


def test_comment_line_ends_at_first_newline():
    data = b"# C:\\data\\\nm f=1\n\t#\\\nn f=2"

    assert list(split_lines(data)) == [
        (1, b"# C:\\data\\"),
        (2, b"m f=1"),
        (3, b"\t#\\"),
        (4, b"n f=2"),
    ]
    for size in range(1, len(data) + 1):
        lines = LineBuffer()
        got = []
        for i in range(0, len(data), size):
            got.extend(lines.feed(data[i:i + size]))
        got.extend(lines.close())
        assert got == list(split_lines(data))


def test_strip_line_end():
    assert strip_line_end(b"m f=1\r\n") == b"m f=1"
    assert strip_line_end(b"m f=1") == b"m f=1"
    assert strip_line_end(b'm f="a\\\n') == b'm f="a\\\n'
    assert strip_line_end(b"# a\\\n") == b"# a\\"
