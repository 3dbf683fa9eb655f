"""Error types raised while reading and writing RDF graphs."""

from __future__ import annotations


class RdfError(ValueError):
    """Base class for all errors raised by this package."""


class ParseError(RdfError):
    """Raised on deterministic syntax/semantic parse errors."""

    def __init__(self, source: str, line: int, column: int, message: str):
        """Initialize a parse error with source location details."""
        super().__init__(f"{source}:{line}:{column}: {message}")
        self.source = source
        self.line = line
        self.column = column
        self.message = message


class LexicalError(ParseError):
    """Malformed token: bad escape, unterminated string or IRI."""


class RdfSyntaxError(ParseError):
    """Grammar violation detected by a parser."""

    def __init__(
        self, source: str, line: int, column: int, message: str, token: object = None
    ):
        super().__init__(source, line, column, message)
        self.token = token


class ResolutionError(ParseError):
    """Undefined namespace prefix, or a relative IRI with no base in effect."""


class WriterError(RdfError):
    """Raised when a node cannot be represented in the target syntax."""
