from __future__ import annotations

import json
import unittest
from urllib.parse import urlencode

from body_parser.decoders import decode_json, decode_raw, decode_text, decode_urlencoded
from body_parser.exceptions import DecodeError

from .compat import parametrize, parametrize_class


class TestRawDecoder(unittest.TestCase):
    def test_unchanged(self) -> None:
        self.assertEqual(decode_raw(b"\x00\xffabc"), b"\x00\xffabc")
        self.assertEqual(decode_raw(b""), b"")


class TestTextDecoder(unittest.TestCase):
    def test_simple(self) -> None:
        self.assertEqual(decode_text(b"hello"), "hello")

    def test_utf8(self) -> None:
        self.assertEqual(decode_text("naïve ☃".encode("utf-8")), "naïve ☃")

    def test_invalid(self) -> None:
        with self.assertRaises(DecodeError) as ctx:
            decode_text(b"\xff\xfe\xfa")
        self.assertIsInstance(ctx.exception.__cause__, UnicodeDecodeError)


class TestJSONDecoder(unittest.TestCase):
    def test_empty_body(self) -> None:
        self.assertEqual(decode_json(b""), {})

    def test_object(self) -> None:
        self.assertEqual(decode_json(b'{"a":1}'), {"a": 1})

    def test_array_and_primitives(self) -> None:
        self.assertEqual(decode_json(b"[1, 2]"), [1, 2])
        self.assertEqual(decode_json(b'"x"'), "x")
        self.assertEqual(decode_json(b"null"), None)

    def test_invalid(self) -> None:
        with self.assertRaises(DecodeError) as ctx:
            decode_json(b"{not json")
        self.assertIsInstance(ctx.exception.__cause__, json.JSONDecodeError)

    def test_invalid_utf8(self) -> None:
        with self.assertRaises(DecodeError):
            decode_json(b'"\xff"')

    def test_deeply_nested(self) -> None:
        for body in (b"[" * 100000 + b"]" * 100000, b'{"a":' * 100000 + b"1" + b"}" * 100000):
            with self.assertRaises(DecodeError) as ctx:
                decode_json(body)
            self.assertIsInstance(ctx.exception.__cause__, RecursionError)


@parametrize_class
class TestURLEncodedDecoder(unittest.TestCase):
    def test_simple(self) -> None:
        self.assertEqual(decode_urlencoded(b"a=1&b=2"), {"a": "1", "b": "2"})

    def test_last_value_wins(self) -> None:
        self.assertEqual(decode_urlencoded(b"a=1&a=2"), {"a": "2"})

    def test_keeps_first_position(self) -> None:
        result = decode_urlencoded(b"a=1&b=2&a=3")
        self.assertEqual(list(result.items()), [("a", "3"), ("b", "2")])

    def test_escapes(self) -> None:
        self.assertEqual(decode_urlencoded(b"q=hello+world%21&k%20ey=%E2%98%83"), {"q": "hello world!", "k ey": "☃"})

    def test_blank_values(self) -> None:
        self.assertEqual(decode_urlencoded(b"foo&bar=&baz=asdf"), {"foo": "", "bar": "", "baz": "asdf"})

    def test_empty(self) -> None:
        self.assertEqual(decode_urlencoded(b""), {})

    def test_blank_separators(self) -> None:
        self.assertEqual(decode_urlencoded(b"&&a=1&&"), {"a": "1"})

    @parametrize(
        "fields",
        [
            {"a": "1"},
            {"name": "Jane Doe", "email": "jane@example.com"},
            {"q": "a&b=c", "plus": "1+1", "pct": "100%"},
            {"unicode": "città ☃", "empty": ""},
        ],
    )
    def test_round_trip(self, fields: dict[str, str]) -> None:
        body = urlencode(fields).encode("ascii")
        self.assertEqual(decode_urlencoded(body), fields)
