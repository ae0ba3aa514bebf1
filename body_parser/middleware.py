from __future__ import annotations

import functools
import inspect
import logging
from numbers import Number
from typing import TYPE_CHECKING

from .decoders import decode_json, decode_raw, decode_text, decode_urlencoded
from .formdata import default_file_size_limit_error, get_boundary, parse_multipart, parse_options_header
from .reader import DEFAULT_PAYLOAD_LIMIT, default_payload_limit_error, has_body, read_body

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Awaitable, Callable, Mapping
    from typing import Any, Optional, Protocol, TypedDict, Union

    from .reader import ChunkStream, DecodeFn

    class ParserConfig(TypedDict, total=False):
        PAYLOAD_LIMIT: Union[int, float]
        PAYLOAD_LIMIT_ERROR_FN: Callable[[int], Exception]

    class MultipartParserConfig(ParserConfig, total=False):
        FILE_COUNT_LIMIT: Optional[int]
        FILE_SIZE_LIMIT: Optional[int]
        FILE_SIZE_LIMIT_ERROR_FN: Callable[[int], Exception]

    class Request(Protocol):
        method: str
        headers: Mapping[str, str]
        body: Any

        def stream(self) -> ChunkStream: ...

    CallNext = Callable[..., Union[None, Awaitable[None]]]

# Get logger for this module.
logger = logging.getLogger(__name__)


def get_header(headers: Mapping[Any, Any], name: str) -> Any:
    """
    Looks up a header without regard to the case of its name.  Returns None
    if the header isn't present.
    """
    value = headers.get(name)
    if value is not None:
        return value

    name = name.lower()
    for key, value in headers.items():
        if isinstance(key, bytes):
            key = key.decode("latin-1")
        if key.lower() == name:
            return value
    return None


async def _call_next(call_next: CallNext, err: Exception | None = None) -> None:
    result = call_next() if err is None else call_next(err)
    if inspect.isawaitable(result):
        await result


def _check_limit(config: Mapping[str, Any], key: str, allow_none: bool = False) -> None:
    value = config.get(key)
    if value is None and allow_none:
        return
    if not isinstance(value, Number) or isinstance(value, bool) or value < 0:  # type: ignore[operator]
        raise ValueError("%s must be a non-negative number, not %r" % (key, value))


def _check_callable(config: Mapping[str, Any], key: str) -> None:
    if not callable(config.get(key)):
        raise ValueError("%s must be callable, not %r" % (key, config.get(key)))


class BodyParser:
    """
    This class reads the body of a request, decodes it, and stores the result
    on ``request.body``.  Instances are middleware callables:

        await parser(request, response, call_next)

    Only POST, PUT, PATCH and DELETE requests have their body read; every
    other request is passed straight on with ``request.body`` left alone.

    ``call_next`` is called exactly once.  On success it is called with no
    arguments.  If reading or decoding fails - the payload is too large, the
    stream raised, the body is malformed - it is called with the exception
    instead, and ``request.body`` is not set.  Exceptions are never raised to
    the caller of the middleware.

    :param decode: called with the complete body as ``bytes``; its return
                   value becomes ``request.body``.
    :param config: overrides for :attr:`DEFAULT_CONFIG`.
    """

    # This is the default configuration for our body parsers.
    # Note: all sizes should be in bytes.
    DEFAULT_CONFIG: ParserConfig = {
        "PAYLOAD_LIMIT": DEFAULT_PAYLOAD_LIMIT,
        "PAYLOAD_LIMIT_ERROR_FN": default_payload_limit_error,
    }

    def __init__(self, decode: DecodeFn, config: ParserConfig = {}) -> None:
        self.decode = decode

        # Set configuration options.
        self.config = self.DEFAULT_CONFIG.copy()
        self.config.update(config)
        self.validate_config()

    def validate_config(self) -> None:
        _check_limit(self.config, "PAYLOAD_LIMIT")
        _check_callable(self.config, "PAYLOAD_LIMIT_ERROR_FN")

    def get_decoder(self, headers: Mapping[Any, Any]) -> DecodeFn:
        return self.decode

    async def read(self, headers: Mapping[Any, Any], stream: ChunkStream) -> Any:
        """
        Reads and decodes a body, raising any error instead of passing it on.
        """
        return await read_body(
            stream,
            self.get_decoder(headers),
            self.config["PAYLOAD_LIMIT"],
            self.config["PAYLOAD_LIMIT_ERROR_FN"],
        )

    async def __call__(self, request: Request, response: Any, call_next: CallNext) -> None:
        if not has_body(request.method):
            logger.debug("Not reading body of %s request", request.method)
            await _call_next(call_next)
            return

        try:
            body = await self.read(request.headers, request.stream())
        except Exception as err:
            logger.debug("Passing body error on: %r", err)
            await _call_next(call_next, err)
            return

        request.body = body
        await _call_next(call_next)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(decode={self.decode!r})"


class MultipartParser(BodyParser):
    """
    A :class:`BodyParser` for ``multipart/form-data`` bodies.  The boundary is
    taken from each request's Content-Type header; a request without one
    decodes to an empty dictionary.
    """

    DEFAULT_CONFIG: MultipartParserConfig = {
        "PAYLOAD_LIMIT": DEFAULT_PAYLOAD_LIMIT,
        "PAYLOAD_LIMIT_ERROR_FN": default_payload_limit_error,
        "FILE_COUNT_LIMIT": None,
        "FILE_SIZE_LIMIT": None,
        "FILE_SIZE_LIMIT_ERROR_FN": default_file_size_limit_error,
    }

    def __init__(self, config: MultipartParserConfig = {}) -> None:
        super().__init__(parse_multipart, config)

    def validate_config(self) -> None:
        super().validate_config()
        _check_limit(self.config, "FILE_COUNT_LIMIT", allow_none=True)
        _check_limit(self.config, "FILE_SIZE_LIMIT", allow_none=True)
        _check_callable(self.config, "FILE_SIZE_LIMIT_ERROR_FN")

    def get_decoder(self, headers: Mapping[Any, Any]) -> DecodeFn:
        boundary = get_boundary(get_header(headers, "content-type"))
        if boundary is None:
            logger.debug("No boundary given, body decodes to an empty dict")
            return lambda body: {}

        return functools.partial(parse_multipart, boundary=boundary, config=self.config)


def json(config: ParserConfig = {}) -> BodyParser:
    return BodyParser(decode_json, config)


def raw(config: ParserConfig = {}) -> BodyParser:
    return BodyParser(decode_raw, config)


def text(config: ParserConfig = {}) -> BodyParser:
    return BodyParser(decode_text, config)


def urlencoded(config: ParserConfig = {}) -> BodyParser:
    return BodyParser(decode_urlencoded, config)


def multipart(config: MultipartParserConfig = {}) -> MultipartParser:
    return MultipartParser(config)


def custom(fn: DecodeFn) -> BodyParser:
    """
    Returns a parser that applies ``fn`` to the raw body bytes.  ``fn`` may be
    a coroutine function.  The default limits apply.
    """
    return BodyParser(fn)


def create_body_parser(headers: Mapping[Any, Any], config: MultipartParserConfig = {}) -> BodyParser:
    """
    This function is a helper function to aid in creating a BodyParser
    instance.  The decoder is picked from the Content-Type header:

        - ``application/json`` and ``*+json`` types are decoded as JSON;
        - ``application/x-www-form-urlencoded`` as a form;
        - ``multipart/form-data`` with :func:`parse_multipart`;
        - ``text/*`` as a string;
        - anything else, or no Content-Type at all, is returned as raw bytes.

    :param headers: a dictionary-like object of HTTP headers.
    :param config: configuration passed on to the parser.
    """
    content_type, _ = parse_options_header(get_header(headers, "content-type"))
    content_type = content_type.lower()

    if content_type == b"application/json" or content_type.endswith(b"+json"):
        return json(config)
    elif content_type in (b"application/x-www-form-urlencoded", b"application/x-url-encoded"):
        return urlencoded(config)
    elif content_type == b"multipart/form-data":
        return multipart(config)
    elif content_type.startswith(b"text/"):
        return text(config)

    if not content_type:
        logger.debug("No Content-Type header given, reading raw body")
    return raw(config)


async def parse_body(
    headers: Mapping[Any, Any], stream: ChunkStream, config: MultipartParserConfig = {}
) -> Any:
    """
    This function is useful if you just want to read a request body outside
    of a middleware chain.  It picks a parser with
    :func:`create_body_parser`, reads the whole stream and returns the
    decoded body.  Unlike the middleware, errors are raised.

    :param headers: a dictionary-like object of HTTP headers.
    :param stream: an async iterable or iterable of body chunks.
    :param config: configuration passed on to the parser.
    """
    parser = create_body_parser(headers, config)
    return await parser.read(headers, stream)
