import asyncio
import io

import pytest

from lineproto import ParseError, Settings, aiter_stream, iter_points, iter_stream

DATA = (
    b"# sensors\n"
    b"weather,location=us-midwest temperature=82 1465839830100400200\r\n"
    b"\n"
    b'note,room=a text="two\\\nlines" 2\n'
    b"broken\n"
    b"count value=3i"
)


def test_iter_stream_matches_buffer_parse():
    expected = list(iter_points(DATA))

    for size in (1, 2, 7, 64, 4096):
        got = list(iter_stream(io.BytesIO(DATA), chunk_size=size, max_buffer=0))
        assert got == expected

    assert isinstance(expected[2], ParseError)
    assert expected[2].line == 5


def test_iter_stream_is_lazy():
    stream = iter_stream(io.BytesIO(b"m f=1\nn f=\n"), chunk_size=6, max_buffer=0)

    first = next(stream)
    assert first.measurement == "m"
    assert isinstance(next(stream), ParseError)
    with pytest.raises(StopIteration):
        next(stream)


def test_iter_stream_max_buffer():
    fp = io.BytesIO(b"m f=1\nm f=" + b"1" * 100)

    with pytest.raises(ValueError):
        list(iter_stream(fp, chunk_size=10, max_buffer=20))


def test_iter_stream_yields_completed_lines_before_overflow():
    stream = iter_stream(io.BytesIO(b"a f=1\nb f=2\n" + b"c" * 50), chunk_size=64, max_buffer=20)

    assert [next(stream).measurement, next(stream).measurement] == ["a", "b"]
    with pytest.raises(ValueError):
        next(stream)


def test_aiter_stream_yields_completed_lines_before_overflow():
    async def scenario():
        reader = asyncio.StreamReader()
        reader.feed_data(b"a f=1\n" + b"x" * 40)
        reader.feed_eof()
        seen = []
        with pytest.raises(ValueError):
            async for result in aiter_stream(reader, chunk_size=64, max_buffer=32):
                seen.append(result.measurement)
        return seen

    assert asyncio.run(scenario()) == ["a"]


def test_iter_stream_uses_settings():
    settings = Settings(chunk_size=3, max_buffer=None)

    points = list(iter_stream(io.BytesIO(b"m f=1\nn f=2\n"), settings=settings))
    assert [p.measurement for p in points] == ["m", "n"]


def test_aiter_stream_reads_stream_reader():
    async def scenario():
        reader = asyncio.StreamReader()
        reader.feed_data(DATA[:11])
        reader.feed_data(DATA[11:])
        reader.feed_eof()
        return [result async for result in aiter_stream(reader, chunk_size=5, max_buffer=0)]

    assert asyncio.run(scenario()) == list(iter_points(DATA))


def test_aiter_stream_max_buffer():
    async def scenario():
        reader = asyncio.StreamReader()
        reader.feed_data(b"x" * 64)
        reader.feed_eof()
        return [result async for result in aiter_stream(reader, chunk_size=16, max_buffer=32)]

    with pytest.raises(ValueError):
        asyncio.run(scenario())


def test_settings_from_env(monkeypatch):
    monkeypatch.setenv("LINEPROTO_CHUNK_SIZE", "7")
    monkeypatch.setenv("LINEPROTO_MAX_BUFFER", "0")

    assert Settings.from_env() == Settings(chunk_size=7, max_buffer=None)


def test_settings_defaults(monkeypatch):
    monkeypatch.delenv("LINEPROTO_CHUNK_SIZE", raising=False)
    monkeypatch.delenv("LINEPROTO_MAX_BUFFER", raising=False)

    assert Settings.from_env() == Settings()


def test_settings_validation_and_override():
    with pytest.raises(ValueError):
        Settings(chunk_size=0)
    with pytest.raises(ValueError):
        Settings(max_buffer=-1)

    assert Settings().override(chunk_size=5) == Settings(chunk_size=5)
    assert Settings().override() == Settings()
