import asyncio
import io

import pytest

from rfnetworks.errors import DisposedResourceUse
from rfnetworks.io.touchstone import Touchstone
from rfnetworks.io.touchstone_reader import AsyncTouchstoneReader, TouchstoneReaderSettings
from rfnetworks.io.touchstone_writer import AsyncTouchstoneWriter, TouchstoneWriterSettings

FOUR_PORT_LOWER = """\
[Version] 2.0
# GHz S MA R 50
[Number of Ports] 4
[Number of Frequencies] 2
[Matrix Format] Lower
[Network Data]
5.00000 0.60 161.24
 0.40 -42.20 0.60 161.20
 0.42 -66.58 0.53 -79.34 0.60 161.24
 0.53 -79.34 0.42 -66.58 0.40 -42.20 0.60 161.24
6.00000 0.57 150.37
 0.40 -44.34 0.57 150.37
 0.41 -81.24 0.57 -95.77 0.57 150.37
 0.57 -95.77 0.41 -81.24 0.40 -44.34 0.57 150.37
[End]
"""


class AsyncLines:
    """
    Text stream with a coroutine ``readline()``.
    """

    def __init__(self, text):
        self._buf = io.StringIO(text)
        self.closed = False

    async def readline(self):
        await asyncio.sleep(0)
        return self._buf.readline()

    def close(self):
        self.closed = True


class AsyncSink:
    """
    Text sink with a coroutine ``write()``.
    """

    def __init__(self):
        self._buf = io.StringIO()

    async def write(self, text):
        await asyncio.sleep(0)
        self._buf.write(text)

    def getvalue(self):
        return self._buf.getvalue()


def test_async_iteration():
    async def main():
        async with AsyncTouchstoneReader(AsyncLines(FOUR_PORT_LOWER)) as reader:
            assert reader.version == '2.0'
            assert reader.nports == 4
            return [(f, m) async for f, m in reader]

    records = asyncio.run(main())
    assert [f for f, _ in records] == [5e9, 6e9]
    sync = Touchstone.read(io.StringIO(FOUR_PORT_LOWER)).network_parameters
    for f, m in records:
        assert m == sync[f]


def test_async_plain_readline():
    async def main():
        async with AsyncTouchstoneReader(io.StringIO(FOUR_PORT_LOWER)) as reader:
            return await reader.read_touchstone()

    ts = asyncio.run(main())
    assert ts.keywords.matrix_format == 'lower'
    assert list(ts.frequencies) == [5e9, 6e9]


def test_async_frequency_selector():
    settings = TouchstoneReaderSettings(frequency_selector=lambda f: f > 5.5e9)

    async def main():
        async with AsyncTouchstoneReader(AsyncLines(FOUR_PORT_LOWER), settings) as reader:
            return await reader.read_collection()

    assert list(asyncio.run(main()).frequencies) == [6e9]


def test_async_read_cancel():
    async def main():
        cancel = asyncio.Event()
        async with AsyncTouchstoneReader(AsyncLines(FOUR_PORT_LOWER)) as reader:
            await reader.read()
            cancel.set()
            await reader.read_collection(cancel)

    with pytest.raises(asyncio.CancelledError):
        asyncio.run(main())


def test_async_reader_closed():
    source = AsyncLines(FOUR_PORT_LOWER)

    async def main():
        reader = AsyncTouchstoneReader(source, close_source=True)
        async with reader:
            pass
        with pytest.raises(DisposedResourceUse):
            await reader.read()

    asyncio.run(main())
    assert source.closed


def test_async_writer():
    ts = Touchstone.read(io.StringIO(FOUR_PORT_LOWER))
    sink = AsyncSink()

    async def main():
        settings = TouchstoneWriterSettings.from_touchstone(ts)
        async with AsyncTouchstoneWriter(sink, settings, ts) as writer:
            await writer.write_touchstone(ts)

    asyncio.run(main())
    text = sink.getvalue()
    assert text.splitlines()[-1] == '[End]'
    assert '[Matrix Format] Lower' in text
    copy = Touchstone.read(io.StringIO(text))
    for (f1, m1), (f2, m2) in zip(copy.network_parameters, ts.network_parameters):
        assert f1 == f2
        assert m1.allclose(m2)


def test_async_writer_cancel():
    ts = Touchstone.read(io.StringIO(FOUR_PORT_LOWER))
    sink = io.StringIO()

    async def main():
        cancel = asyncio.Event()
        cancel.set()
        writer = AsyncTouchstoneWriter(sink, TouchstoneWriterSettings(file_version='2.0'))
        await writer.write_touchstone(ts, cancel)

    with pytest.raises(asyncio.CancelledError):
        asyncio.run(main())
    assert '[Network Data]' in sink.getvalue()
    assert '5.0' not in sink.getvalue().split('[Network Data]')[1]
