"""
Exception hierarchy for PySRS.

Every error raised by the library subclasses ``SRSError`` and the closest
built-in exception, so callers can catch either the library-specific class or
the usual Python one.
"""

from typing import Optional


class SRSError(Exception):
    """Base exception for all PySRS errors."""


class SRSWarning(UserWarning):
    """Warning category for best-effort repairs and assumptions."""


class ParseError(SRSError, ValueError):
    """Malformed CRS description text.

    Parameters
    ----------
    message : str
        Description of the problem
    offset : int, optional
        Character offset into the input where the problem was detected
    text : str, optional
        The input text, used to derive the line number
    """

    def __init__(self, message: str, offset: Optional[int] = None, text: Optional[str] = None):
        self.offset = offset
        self.line = None
        if offset is not None and text is not None:
            self.line = text.count("\n", 0, offset) + 1
        if offset is not None:
            message = f"{message} (at offset {offset}"
            if self.line is not None:
                message += f", line {self.line}"
            message += ")"
        super().__init__(message)


class ExportError(SRSError, ValueError):
    """The tree is structurally incomplete for the requested output format."""


class InvalidCRSError(SRSError, ValueError):
    """A structural invariant of the CRS tree is violated."""


class IncompatibleCRSError(SRSError, ValueError):
    """No sensible transformation path exists between two systems."""


class ParameterNotFoundError(SRSError, KeyError):
    """A projection parameter that was required is not present."""


class UnitUnknownError(SRSError, KeyError):
    """Unit name not present in the registry (strict mode only)."""


class UnsupportedCRSError(SRSError, NotImplementedError):
    """The CRS, method or authority code is not supported by an operation."""


class ParameterArrayLengthError(ParseError, ExportError):
    """A fixed-length parameter array (USGS, PCI) has the wrong length."""

    def __init__(self, fmt: str, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{fmt} parameter array must have exactly {expected} values, got {actual}"
        )
