from __future__ import annotations

import unittest
from typing import TYPE_CHECKING

from body_parser.decoders import decode_json, decode_raw, decode_text
from body_parser.exceptions import PayloadTooLargeError
from body_parser.reader import DEFAULT_PAYLOAD_LIMIT, has_body, iter_chunks, read_body

from .compat import Stream, parametrize, parametrize_class

if TYPE_CHECKING:
    from collections.abc import Iterator
    from typing import Any


def split_all(val: bytes) -> Iterator[tuple[bytes, bytes]]:
    """
    This function will split a value all possible ways.  For example:
        split_all(b"1234")
    will give:
        (b"1", b"234"), (b"12", b"34"), (b"123", b"4")
    """
    for i in range(1, len(val)):
        yield (val[:i], val[i:])


@parametrize_class
class TestHasBody(unittest.TestCase):
    @parametrize("method", ["POST", "PUT", "PATCH", "DELETE", "post", "Delete"])
    def test_body_methods(self, method: str) -> None:
        self.assertTrue(has_body(method))

    @parametrize("method", ["GET", "HEAD", "OPTIONS", "TRACE", "CONNECT", "", None])
    def test_other_methods(self, method: str) -> None:
        self.assertFalse(has_body(method))


@parametrize_class
class TestReadBody(unittest.IsolatedAsyncioTestCase):
    async def test_simple(self) -> None:
        body = await read_body(Stream([b"hello ", b"world"]), decode_raw)
        self.assertEqual(body, b"hello world")

    async def test_empty_stream(self) -> None:
        self.assertEqual(await read_body(Stream([]), decode_raw), b"")
        self.assertEqual(await read_body(Stream([]), decode_json), {})

    async def test_sync_iterable(self) -> None:
        self.assertEqual(await read_body([b"a", b"b", b"c"], decode_text), "abc")

    async def test_chunk_types(self) -> None:
        chunks = [b"a", bytearray(b"b"), memoryview(b"c"), "d", "é"]
        self.assertEqual(await read_body(Stream(chunks), decode_raw), "abcdé".encode("utf-8"))

    async def test_multibyte_split_across_chunks(self) -> None:
        data = "☃".encode("utf-8")
        body = await read_body(Stream([data[:1], data[1:]]), decode_text)
        self.assertEqual(body, "☃")

    async def test_chunk_boundary_independence(self) -> None:
        data = b'{"name": "snowman", "glyph": "\xe2\x98\x83"}'
        expected = decode_json(data)
        for first, last in split_all(data):
            body = await read_body(Stream([first, last]), decode_json, payload_limit=len(data))
            self.assertEqual(body, expected)

        # One byte at a time.
        single = [data[i : i + 1] for i in range(len(data))]
        self.assertEqual(await read_body(Stream(single), decode_json, len(data)), expected)

    async def test_async_decode(self) -> None:
        async def decode(body: bytes) -> str:
            return body.decode("ascii").upper()

        self.assertEqual(await read_body(Stream([b"abc"]), decode), "ABC")

    async def test_default_limit(self) -> None:
        self.assertEqual(DEFAULT_PAYLOAD_LIMIT, 100 * 1024 * 1024)

    async def test_limit_exact(self) -> None:
        body = await read_body(Stream([b"12345", b"67890"]), decode_raw, payload_limit=10)
        self.assertEqual(body, b"1234567890")

    @parametrize(
        "chunks",
        [
            [b"12345678901"],
            [b"12345", b"678901"],
            [b"1234567890", b"1"],
            [b"1"] * 11,
        ],
    )
    async def test_limit_exceeded(self, chunks: list[bytes]) -> None:
        decoded = []
        stream = Stream(chunks)
        with self.assertRaises(PayloadTooLargeError) as ctx:
            await read_body(stream, decoded.append, payload_limit=10)

        self.assertEqual(ctx.exception.limit, 10)
        self.assertEqual(str(ctx.exception), "Payload too large. Limit: 10 bytes")

        # The decoder never ran.
        self.assertEqual(decoded, [])

    async def test_stops_pulling_after_limit(self) -> None:
        stream = Stream([b"123", b"456", b"789", b"000"])
        with self.assertRaises(PayloadTooLargeError):
            await read_body(stream, decode_raw, payload_limit=5)
        self.assertEqual(stream.pulled, 2)
        # The stream is released before the error reaches the caller.
        self.assertTrue(stream.closed)

    async def test_stream_closed_after_read(self) -> None:
        stream = Stream([b"abc"])
        await read_body(stream, decode_raw)
        self.assertTrue(stream.closed)

    async def test_custom_limit_error(self) -> None:
        class TooBig(Exception):
            def __init__(self, limit: int) -> None:
                self.limit = limit

        with self.assertRaises(TooBig) as ctx:
            await read_body(Stream([b"abcdef"]), decode_raw, 3, TooBig)
        self.assertEqual(ctx.exception.limit, 3)

    async def test_zero_limit(self) -> None:
        self.assertEqual(await read_body(Stream([]), decode_raw, payload_limit=0), b"")
        with self.assertRaises(PayloadTooLargeError):
            await read_body(Stream([b"x"]), decode_raw, payload_limit=0)

    async def test_stream_error(self) -> None:
        err = ConnectionResetError("client went away")
        with self.assertRaises(ConnectionResetError) as ctx:
            await read_body(Stream([b"abc"], error=err), decode_raw)
        self.assertIs(ctx.exception, err)

    async def test_decode_error(self) -> None:
        def decode(body: bytes) -> Any:
            raise ValueError("bad")

        with self.assertRaises(ValueError):
            await read_body(Stream([b"abc"]), decode)


class TestIterChunks(unittest.IsolatedAsyncioTestCase):
    async def test_sync_and_async(self) -> None:
        got = [c async for c in iter_chunks(["a", b"b"])]
        self.assertEqual(got, [b"a", b"b"])

        got = [c async for c in iter_chunks(Stream([bytearray(b"c")]))]
        self.assertEqual(got, [b"c"])
