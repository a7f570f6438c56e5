"""
Bounds-checked helpers for slicing and converting fixed-column fields.

RINEX records are addressed by column, so every field access goes through
`get_columns` / `get_column`, which turn "line too short" into a
`StructuralError` instead of silently returning a truncated slice.
"""

from typing import Optional, Type

from gnss_obs.rinex_io.errors import FieldError, RinexError, StructuralError


def get_columns(line: str, start: int, end: int, description: str) -> str:
    """
    Return `line[start:end]`, requiring the line to reach `end`.

    Args:
        line: framed line
        start: 0-based first index
        end: 0-based index one past the last character
        description: field name used in the error message

    Returns:
        the field text, unstripped
    """
    if len(line) < end:
        raise StructuralError(
            f"line too short for {description} (needs {end} columns, has {len(line)})"
        )
    return line[start:end]


def get_column(line: str, index: int, description: str) -> str:
    if len(line) <= index:
        raise StructuralError(
            f"line too short for {description} (needs {index + 1} columns, has {len(line)})"
        )
    return line[index]


def get_optional_columns(line: str, start: int, end: int) -> str:
    # columns past the end of the line read as blank
    return line[start:end]


def parse_int_field(
    text: str,
    description: str,
    default: Optional[int] = None,
    error: Type[RinexError] = FieldError,
) -> int:
    """
    Parse an unsigned integer field.

    Blank text yields `default` when one is given and raises otherwise.
    """
    stripped = text.strip()
    if not stripped:
        if default is not None:
            return default
        raise error(f"missing {description}")
    if not (stripped.isascii() and stripped.isdigit()):
        raise error(f"invalid {description}: {text!r}")
    return int(stripped)


def parse_float_field(
    text: str,
    description: str,
    default: Optional[float] = None,
    error: Type[RinexError] = FieldError,
) -> float:
    stripped = text.strip()
    if not stripped:
        if default is not None:
            return default
        raise error(f"missing {description}")
    # some writers still emit Fortran exponents
    stripped = stripped.replace("D", "E").replace("d", "e")
    try:
        value = float(stripped)
    except ValueError:
        raise error(f"invalid {description}: {text!r}") from None
    if value != value or value in (float("inf"), float("-inf")):
        raise error(f"invalid {description}: {text!r}")
    return value


def parse_digit(char: str, description: str) -> int:
    """Single-digit flag field; blank reads as 0."""
    if char in ("", " "):
        return 0
    if len(char) != 1 or not ("0" <= char <= "9"):
        raise FieldError(f"invalid {description}: {char!r}")
    return int(char)
