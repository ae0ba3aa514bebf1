"""
Decoding of fully-read ``multipart/form-data`` bodies.

This is a deliberately small, single-pass parser: the body is split on the
boundary delimiter and each part is classified as a field or a file.  It
doesn't handle nested multipart bodies, Content-Transfer-Encoding or charsets.

The layout it understands is:

    body        = *( delimiter segment )
    delimiter   = "--" boundary
    segment     = [ "--" ] part          ; a closing "--" is dropped
    part        = header-line CRLF *( line CRLF )
    header-line = field-name ":" disposition *( ";" param )
    file-body   = "Content-Type:" value CRLF content

Segments that are empty or don't mention ``Content-Disposition`` (the
preamble and epilogue) are ignored.  Inside a part, blank lines are dropped
and only the first remaining line is treated as the header line.  A part is
a file if and only if its header line has a ``filename`` parameter.
"""

from __future__ import annotations

import logging
from email.message import Message
from io import BytesIO
from typing import TYPE_CHECKING

from .exceptions import FileTooLargeError, MalformedPartError, TooManyFilesError

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Callable
    from typing import Dict, List, Optional, TypeAlias, TypedDict, Union

    class MultipartConfig(TypedDict, total=False):
        FILE_COUNT_LIMIT: Optional[int]
        FILE_SIZE_LIMIT: Optional[int]
        FILE_SIZE_LIMIT_ERROR_FN: Callable[[int], Exception]

    ParsedBody: TypeAlias = Dict[str, List[Union[str, "File"]]]

# Get logger for this module.
logger = logging.getLogger(__name__)

CRLF = b"\r\n"
HYPHENS = b"--"
COLON = b":"
CONTENT_DISPOSITION = b"content-disposition"
CONTENT_TYPE = b"content-type"


def parse_options_header(value: str | bytes | None) -> tuple[bytes, dict[bytes, bytes]]:
    """
    Parses a Content-Type (or Content-Disposition) header into a value in the
    following format:
        (content_type, {parameters})
    """
    if not value:
        return (b"", {})

    # Header bytes are taken to be latin-1, as in WSGI.
    if isinstance(value, bytes):
        value = value.decode("latin-1")

    # If we have no options, return the string as-is.
    if ";" not in value:
        return (value.lower().strip().encode("latin-1"), {})

    # email.message.Message does the quoting, escaping and RFC 2231 work.
    # Ref: https://peps.python.org/pep-0594/#cgi
    message = Message()
    message["content-type"] = value
    params = message.get_params()
    assert params, "At least the content type value should be present"
    ctype = params.pop(0)[0].lower().strip().encode("latin-1")
    options: dict[bytes, bytes] = {}
    for key, param_value in params:
        # If the value returned from get_params() is a 3-tuple, the last
        # element corresponds to the value.
        # See: https://docs.python.org/3/library/email.compat32-message.html
        if isinstance(param_value, tuple):
            param_value = param_value[-1]

        # If the value is a filename, we need to fix a bug on IE6 that sends
        # the full file path instead of the filename.
        if key == "filename":
            if param_value[1:3] == ":\\" or param_value[:2] == "\\\\":
                param_value = param_value.split("\\")[-1]
        options[key.encode("latin-1")] = param_value.encode("latin-1")
    return ctype, options


def get_boundary(content_type: str | bytes | None) -> bytes | None:
    """
    Returns the ``boundary`` parameter of a Content-Type header, or None if
    the header doesn't declare one.
    """
    _, params = parse_options_header(content_type)
    boundary = params.get(b"boundary")
    if not boundary:
        return None
    return boundary


def default_file_size_limit_error(limit: int) -> Exception:
    return FileTooLargeError(f"File too large. Limit: {limit} bytes", limit)


def _to_str(value: bytes) -> str:
    # Browsers send names and values as raw UTF-8; anything else is kept
    # byte-for-byte as latin-1.
    try:
        return value.decode("utf-8")
    except UnicodeDecodeError:
        return value.decode("latin-1")


class File:
    """
    This class represents an uploaded file.  The whole of the file's content
    is held in memory, since the body it came from has already been read.
    """

    def __init__(
        self,
        file_name: str | None,
        field_name: str | None = None,
        content_type: str | None = None,
        content: bytes = b"",
    ) -> None:
        self._file_name = file_name
        self._field_name = field_name
        self._content_type = content_type
        self._content = content

    @property
    def field_name(self) -> str | None:
        """
        The form field associated with this file.
        """
        return self._field_name

    @property
    def file_name(self) -> str | None:
        """
        The file name given in the upload request.
        """
        return self._file_name

    @property
    def content_type(self) -> str | None:
        """
        The Content-Type declared for this file in the upload request.
        """
        return self._content_type

    @property
    def content(self) -> bytes:
        return self._content

    @property
    def size(self) -> int:
        return len(self._content)

    @property
    def file_object(self) -> BytesIO:
        """
        A new in-memory file object positioned at the start of the content.
        """
        return BytesIO(self._content)

    def text(self, encoding: str = "utf-8") -> str:
        return self._content.decode(encoding)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, File):
            return (
                self.field_name == other.field_name
                and self.file_name == other.file_name
                and self.content_type == other.content_type
                and self.content == other.content
            )
        else:
            return NotImplemented

    def __repr__(self) -> str:
        return "{}(file_name={!r}, field_name={!r}, content_type={!r}, size={})".format(
            self.__class__.__name__,
            self.file_name,
            self.field_name,
            self.content_type,
            self.size,
        )


def split_parts(body: bytes, boundary: bytes) -> list[bytes]:
    """
    Splits a multipart body on its boundary delimiter.  Segments that are
    empty or carry no Content-Disposition header are dropped.
    """
    delimiter = HYPHENS + boundary
    parts = []
    for segment in body.split(delimiter):
        # The closing delimiter is followed directly by "--".
        if segment.startswith(HYPHENS):
            segment = segment[len(HYPHENS) :]

        if not segment or CONTENT_DISPOSITION not in segment.lower():
            logger.debug("Skipping segment of %d bytes without a part", len(segment))
            continue

        parts.append(segment)

    return parts


def parse_part(
    part: bytes,
    file_size_limit: int | None = None,
    file_size_limit_error_fn: Callable[[int], Exception] = default_file_size_limit_error,
) -> tuple[str, str | File]:
    """
    Classifies a single part as a field or a file and returns a tuple of
    ``(name, value)``, where the value is a ``str`` for fields and a
    :class:`File` for files.
    """
    lines = [line for line in part.split(CRLF) if line]
    header_line = lines[0]
    data = CRLF.join(lines[1:]).strip()

    if file_size_limit is not None and len(data) > file_size_limit:
        logger.warning("Part is %d bytes (max %d)", len(data), file_size_limit)
        raise file_size_limit_error_fn(file_size_limit)

    # Everything after the colon is a disposition followed by its parameters.
    _, _, disposition = header_line.partition(COLON)
    _, options = parse_options_header(disposition.strip())

    name = options.get(b"name")
    if not name:
        msg = "Part has no name in its header line: %r" % (header_line,)
        logger.warning(msg)
        raise MalformedPartError(msg)

    file_name = options.get(b"filename")
    if file_name is None:
        # This is a regular field
        return _to_str(name), _to_str(data)

    # A file part's body starts with its own Content-Type line.
    type_line, _, content = data.partition(CRLF)
    header, colon, content_type = type_line.partition(COLON)
    if not colon or header.strip().lower() != CONTENT_TYPE:
        msg = "File part %r has no Content-Type line" % (name,)
        logger.warning(msg)
        raise MalformedPartError(msg)

    field_name = _to_str(name)
    f = File(_to_str(file_name), field_name, content_type=_to_str(content_type.strip()), content=content)
    return field_name, f


def parse_multipart(body: bytes, boundary: str | bytes, config: MultipartConfig = {}) -> ParsedBody:
    """
    Parses a complete ``multipart/form-data`` body.

    The result maps each part name to the list of its values, in the order
    they appeared in the body.  Field values are strings and file values are
    :class:`File` instances.

    :param body: the full request body.
    :param boundary: the boundary from the request's Content-Type header,
                     without the leading hyphens.
    :param config: optional ``FILE_COUNT_LIMIT``, ``FILE_SIZE_LIMIT`` and
                   ``FILE_SIZE_LIMIT_ERROR_FN`` settings.
    """
    if isinstance(boundary, str):
        boundary = boundary.encode("latin-1")

    file_count_limit = config.get("FILE_COUNT_LIMIT")
    file_size_limit = config.get("FILE_SIZE_LIMIT")
    file_size_limit_error_fn = config.get("FILE_SIZE_LIMIT_ERROR_FN") or default_file_size_limit_error

    parts = split_parts(body, boundary)

    if file_count_limit is not None and len(parts) > file_count_limit:
        logger.warning("Got %d parts (max %d)", len(parts), file_count_limit)
        raise TooManyFilesError(f"Too many files. Limit: {file_count_limit}", file_count_limit)

    parsed: ParsedBody = {}
    for part in parts:
        name, value = parse_part(part, file_size_limit, file_size_limit_error_fn)
        parsed.setdefault(name, []).append(value)

    return parsed
