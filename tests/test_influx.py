import pytest

from lineproto import ParseError
from lineproto.influx import build_line_protocol, parse_line_protocol


def test_build_line_protocol_basic():
    line = build_line_protocol(
        "weather",
        tags={"b": "2", "a": "1"},
        fields={"temp": 82.5, "count": 3, "ok": True},
        timestamp=123,
    )

    assert line == "weather,a=1,b=2 temp=82.5,count=3i,ok=true 123"


def test_build_line_protocol_escapes():
    line = build_line_protocol(
        "weather station,1",
        tags={"device id": "rack=1,slot 2"},
        fields={"path": r"C:\Temp", "status": 'ok "quoted"'},
        timestamp=42,
    )

    assert (
        line
        == 'weather\\ station\\,1,device\\ id=rack\\=1\\,slot\\ 2 '
        'path="C:\\\\Temp",status="ok \\"quoted\\"" 42'
    )


def test_build_line_protocol_skips_empty_tags():
    line = build_line_protocol("m", tags={"a": "", "b": None, "c": "x"}, fields={"f": 1})

    assert line == "m,c=x f=1i"


def test_line_protocol_roundtrip():
    line = build_line_protocol(
        "weather station",
        tags={"site": "us-west,1", "device id": "rack=1"},
        fields={"temp": 21.5, "count": 2, "status": 'ok "quoted"', "ok": True},
        timestamp=1690000000,
    )
    measurement, tags, fields, timestamp = parse_line_protocol(line)

    assert measurement == "weather station"
    assert tags == {"device id": "rack=1", "site": "us-west,1"}
    assert fields["temp"] == 21.5
    assert fields["count"] == 2
    assert fields["status"] == 'ok "quoted"'
    assert fields["ok"] is True
    assert timestamp == 1690000000

    assert build_line_protocol(measurement, tags=tags, fields=fields, timestamp=timestamp) == line


def test_parse_line_protocol_errors():
    with pytest.raises(ValueError):
        parse_line_protocol("# just a comment")
    with pytest.raises(ParseError):
        parse_line_protocol("weather temp=hot")
