from __future__ import annotations


class BodyParserError(ValueError):
    """Base error class for our body parsers."""


class LimitError(BodyParserError):
    """This exception (or a subclass) is raised when a configured limit is
    exceeded while reading or splitting a request body.
    """

    #: The limit that was exceeded.
    limit: int | float

    def __init__(self, message: str, limit: int | float) -> None:
        super().__init__(message)
        self.limit = limit


class PayloadTooLargeError(LimitError):
    """Raised when the accumulated request body grows past the payload limit."""


class FileTooLargeError(LimitError):
    """Raised when a single multipart part is larger than the file size limit."""


class TooManyFilesError(LimitError):
    """Raised when a multipart body holds more parts than the file count limit."""


class ParseError(BodyParserError):
    """This exception (or a subclass) is raised when there is an error while
    parsing something.
    """


class DecodeError(ParseError):
    """This exception is raised when a complete body can't be decoded into the
    requested format - for example invalid JSON, or text that isn't UTF-8.
    """


class MultipartParseError(ParseError):
    """This is a specific error that is raised when the multipart decoder
    detects an error while splitting or classifying parts.
    """


class MalformedPartError(MultipartParseError):
    """Raised when a multipart part is missing a required header or
    attribute.
    """
