from __future__ import annotations

import inspect
import logging
from typing import TYPE_CHECKING

from .exceptions import PayloadTooLargeError

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import AsyncIterable, AsyncIterator, Awaitable, Callable, Iterable
    from typing import Any, TypeAlias, Union

    Chunk: TypeAlias = Union[bytes, bytearray, memoryview, str]
    ChunkStream: TypeAlias = Union[AsyncIterable[Chunk], Iterable[Chunk]]
    LimitErrorFn: TypeAlias = Callable[[int], Exception]
    DecodeFn: TypeAlias = Callable[[bytes], Union[Any, Awaitable[Any]]]

# Get logger for this module.
logger = logging.getLogger(__name__)

# 100 MiB.
DEFAULT_PAYLOAD_LIMIT = 104857600

# Methods whose requests conventionally carry a body.
BODY_METHODS = frozenset(("POST", "PUT", "PATCH", "DELETE"))


def has_body(method: str | None) -> bool:
    """
    Returns whether a request made with the given HTTP method is expected to
    carry a body that should be read.
    """
    if not method:
        return False
    return method.upper() in BODY_METHODS


def default_payload_limit_error(limit: int) -> Exception:
    return PayloadTooLargeError(f"Payload too large. Limit: {limit} bytes", limit)


async def iter_chunks(stream: ChunkStream) -> AsyncIterator[bytes]:
    """
    Iterates over either an async or a regular iterable of chunks, yielding
    each one as bytes.  Text chunks are encoded as UTF-8.
    """
    if hasattr(stream, "__aiter__"):
        source = stream.__aiter__()  # type: ignore[union-attr]
        try:
            async for chunk in source:
                yield _to_bytes(chunk)
        finally:
            # Release the request stream when the reader stops early.
            if hasattr(source, "aclose"):
                await source.aclose()
    else:
        for chunk in stream:  # type: ignore[union-attr]
            yield _to_bytes(chunk)


def _to_bytes(chunk: Chunk) -> bytes:
    if isinstance(chunk, str):
        return chunk.encode("utf-8")
    return bytes(chunk)


async def read_body(
    stream: ChunkStream,
    decode: DecodeFn,
    payload_limit: int | float = DEFAULT_PAYLOAD_LIMIT,
    payload_limit_error_fn: LimitErrorFn = default_payload_limit_error,
) -> Any:
    """
    Reads the whole of a chunked request body into memory and returns the
    result of calling ``decode`` on it.

    Before a chunk is kept we check that it still fits within
    ``payload_limit``.  If it doesn't, the error built by
    ``payload_limit_error_fn`` is raised straight away, the chunk is dropped
    and no further chunks are pulled from the stream.  This means the buffer
    handed to ``decode`` is never larger than ``payload_limit``.

    Errors raised by the stream itself, by the limit check or by ``decode``
    all propagate to the caller.

    :param stream: an async iterable or iterable of ``bytes`` or ``str``
                   chunks.
    :param decode: called with the complete body as ``bytes``.  May return an
                   awaitable, which is awaited.
    :param payload_limit: the maximum number of bytes to accumulate.
    :param payload_limit_error_fn: called with ``payload_limit`` to build the
                                   exception raised on overflow.
    """
    body = bytearray()

    chunks = iter_chunks(stream)
    try:
        async for chunk in chunks:
            if len(body) + len(chunk) > payload_limit:
                logger.warning(
                    "Body size would be %d (max %d), aborting read",
                    len(body) + len(chunk),
                    payload_limit,
                )
                raise payload_limit_error_fn(int(payload_limit))
            body += chunk
    finally:
        await chunks.aclose()

    logger.debug("Read body of %d bytes", len(body))
    result = decode(bytes(body))
    if inspect.isawaitable(result):
        result = await result
    return result
