import io
from typing import Iterable, Iterator, Tuple, Union

from .errors import FormatError

# header lines, and every RINEX 2 line, are 80 columns wide
LINE_WIDTH = 80

Stream = Union[str, bytes, Iterable[str], Iterable[bytes]]


def iter_lines(stream: Stream) -> Iterator[Tuple[int, str]]:
    """
    Yield `(line_number, text)` for each line of `stream`, without the line
    terminator.  Line numbers start at 1.

    `stream` may be a text or binary file object, a whole `str`/`bytes`
    document, or any iterable of lines.  Bytes are decoded as latin-1 so that
    one byte stays one column.
    """
    if isinstance(stream, str):
        stream = io.StringIO(stream)
    elif isinstance(stream, (bytes, bytearray)):
        stream = io.BytesIO(stream)
    lines = iter(stream)
    line_number = 0
    while True:
        line_number += 1
        try:
            line = next(lines)
        except StopIteration:
            return
        except UnicodeDecodeError as err:
            # text-mode files decode while iterating; there is no line to show
            raise FormatError(
                f"input is not decodable text: {err.reason}",
                line="",
                line_number=line_number,
            ) from err
        if isinstance(line, (bytes, bytearray)):
            line = line.decode("latin-1")
        elif not isinstance(line, str):
            raise FormatError(
                f"expected text or bytes lines, got {type(line).__name__}",
                line_number=line_number,
            )
        yield line_number, line.rstrip("\r\n")


def frame_line(line: str, pad: bool) -> str:
    """
    Make `line` column-addressable for the current parser mode.

    With `pad` set, lines wider than 80 columns are rejected and shorter ones
    are space-padded to exactly 80 columns; otherwise the line is returned as
    is (RINEX 3 data lines are variable length).
    """
    if not pad:
        return line
    if len(line) > LINE_WIDTH:
        raise FormatError(f"Oversized input line ({len(line)} > {LINE_WIDTH} columns)")
    return line.ljust(LINE_WIDTH)
