from __future__ import annotations


class RelintError(Exception):
    """ Base class for all relint errors"""
    pass


class RelintReadError(RelintError):
    """ Raised when source text cannot be read as Lisp data"""

    def __init__(self, offset: int, message: str):
        super().__init__(message)
        self.offset = offset
        self.message = message


class RelintUnknownSyntax(RelintReadError):
    """ Raised for a `#' reader extension the reader does not know"""


class PatternSyntaxError(RelintError):
    """ Raised by a pattern checker when a string cannot be parsed at all"""

    def __init__(self, message: str, offset: int | None = None):
        super().__init__(message)
        self.message = message
        self.offset = offset
