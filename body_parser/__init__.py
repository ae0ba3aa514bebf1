from ._version import __version__
from .formdata import File, get_boundary, parse_multipart, parse_options_header
from .middleware import (
    BodyParser,
    MultipartParser,
    create_body_parser,
    custom,
    json,
    multipart,
    parse_body,
    raw,
    text,
    urlencoded,
)
from .reader import has_body, read_body

__all__ = (
    "__version__",
    "BodyParser",
    "File",
    "MultipartParser",
    "create_body_parser",
    "custom",
    "get_boundary",
    "has_body",
    "json",
    "multipart",
    "parse_body",
    "parse_multipart",
    "parse_options_header",
    "raw",
    "read_body",
    "text",
    "urlencoded",
)
