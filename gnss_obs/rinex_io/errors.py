from typing import Optional


class RinexError(ValueError):
    """
    Base class for malformed RINEX observation input.

    `line_number` (1-based) and `line` are filled in by the reader when the
    error escapes a decoder, so the message points at the offending record.
    """

    def __init__(
        self,
        message: str,
        line: Optional[str] = None,
        line_number: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.line = line
        self.line_number = line_number

    def __str__(self) -> str:
        text = self.message
        if self.line_number is not None:
            text = f"line {self.line_number}: {text}"
        if self.line is not None:
            text += f" (line: {self.line.rstrip()!r})"
        return text


class FormatError(RinexError):
    """Input line cannot be framed (too wide, or not decodable text)."""


class HeaderError(RinexError):
    """Bad value in a header line that the reader interprets."""


class FieldError(RinexError):
    """Numeric field in a data line does not parse."""


class StructuralError(RinexError):
    """Record layout is inconsistent with the declared counts or catalogs."""
