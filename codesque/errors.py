"""
Errors raised while parsing call notation and rendering diagrams.

Every parse failure is fatal for the document being parsed and carries the
1-based source line it was detected on.
"""

from typing import Optional


class ParseError(Exception):
    """Structural or lexical failure in a call-notation document."""

    def __init__(self, message: str, line_number: int, line_content: str = ""):
        self.message = message
        self.line_number = line_number
        self.line_content = line_content
        super().__init__(f"{message} at line {line_number}")


class RenderError(Exception):
    """The external diagram renderer could not produce an image."""

    def __init__(self, message: str, source: Optional[str] = None):
        self.message = message
        self.source = source
        super().__init__(f"{source}: {message}" if source else message)


def line_error(line_index: int, message: str, line_content: str = "") -> ParseError:
    """Build a ParseError from a 0-based line index."""
    return ParseError(message, line_index + 1, line_content)
