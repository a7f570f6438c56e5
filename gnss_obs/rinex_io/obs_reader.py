"""
Streaming reader for RINEX 2.11 and 3.0x observation data.

The reader does not build a header object or a list of epochs.  Instead it
hands every header line to `on_header(label, value)` and every completed
epoch to `on_observation(record)` as the stream is read.  Either callback
stops parsing by returning anything other than None; `parse` then returns
that value.

Example:

    records = []
    reader = ObsReader(on_observation=lambda rec: records.append(rec.copy()))
    with open("SEPT0780.21O") as f:
        reader.parse(f)
    print(reader.version, dict(reader.observation_types))
"""

from enum import Enum
import logging
from typing import Any, Callable, Dict, Optional, Tuple, Union

from .errors import HeaderError, RinexError, StructuralError
from .framing import Stream, frame_line, iter_lines
from .header import HEADER_HANDLERS, split_header_line
from .obs_types import ObservationTypeCatalog
from .records import ObservationRecord
from .rinex2 import Rinex2Decoder
from .rinex3 import Rinex3Decoder

HeaderCallback = Callable[[str, str], Any]
ObservationCallback = Callable[[ObservationRecord], Any]


class ParserMode(Enum):
    HEADER = "header"
    DATA = "data"


class ObsReader:

    def __init__(
        self,
        on_header: Optional[HeaderCallback] = None,
        on_observation: Optional[ObservationCallback] = None,
    ) -> None:
        self.on_header = on_header
        self.on_observation = on_observation
        self._parsing = False
        self._reset()

    def _reset(self) -> None:
        self.mode = ParserMode.HEADER
        # 2 or 3 once "RINEX VERSION / TYPE" has been read
        self.version: Optional[int] = None
        self.observation_types = ObservationTypeCatalog()
        # RINEX 2 only: four-digit year of the latest epoch, seeded by TIME OF FIRST OBS
        self.year: Optional[int] = None
        # lines still to be read as header lines after an event epoch (flags 2-5)
        self.header_lines_remaining = 0
        # RINEX 3 system whose SYS / # / OBS TYPES list continues on the next line
        self.declaring_system: Optional[str] = None
        self.ignored_obs_types = 0
        self.interval: Optional[float] = None
        self.time_system: Optional[str] = None
        self.default_wavelength_factors: Tuple[int, int] = (1, 1)
        self.wavelength_factors: Dict[str, Tuple[int, int]] = {}
        self.pending_wavelength_factors: Optional[Tuple[Tuple[int, int], int]] = None
        self.record = ObservationRecord()
        self.decoder: Optional[Union[Rinex2Decoder, Rinex3Decoder]] = None

    def parse(
        self,
        stream: Stream,
        on_header: Optional[HeaderCallback] = None,
        on_observation: Optional[ObservationCallback] = None,
    ) -> Any:
        """
        Read `stream` to the end, invoking the callbacks.

        Args:
            stream: text or binary file object, str/bytes document, or
                iterable of lines
            on_header: if given, becomes the reader's header callback
            on_observation: if given, becomes the reader's observation
                callback

        Returns:
            None when the whole stream was read, else the first non-None
            value returned by a callback

        Raises:
            RinexError: malformed input; `line_number` and `line` identify
                the offending line
        """
        if self._parsing:
            raise RuntimeError("ObsReader.parse must not be re-entered from a callback")
        if on_header is not None:
            self.on_header = on_header
        if on_observation is not None:
            self.on_observation = on_observation
        self._parsing = True
        try:
            self._reset()
            return self._parse_lines(stream)
        finally:
            self._parsing = False

    def _parse_lines(self, stream: Stream) -> Any:
        line_number = 0
        raw = None
        try:
            for line_number, raw in iter_lines(stream):
                pad = self.mode is ParserMode.HEADER or self.version == 2
                line = frame_line(raw, pad)
                if self.mode is ParserMode.HEADER:
                    stop = self._handle_header_line(line)
                else:
                    stop = self.decoder.decode_line(line)
                if stop is not None:
                    return stop
            if self.decoder is not None and self.decoder.in_record:
                raise StructuralError("input ended inside an observation record")
        except RinexError as err:
            if err.line_number is None:
                err.line_number = line_number
            if err.line is None and raw is not None:
                err.line = raw
            raise
        return None

    def _handle_header_line(self, line: str) -> Any:
        # header lines embedded in the data by an event epoch
        if self.header_lines_remaining > 0:
            self.header_lines_remaining -= 1
            if self.header_lines_remaining == 0:
                self.mode = ParserMode.DATA

        label, value = split_header_line(line)
        handler = HEADER_HANDLERS.get(label)
        if handler is not None:
            handler(self, value)

        if self.on_header is not None:
            return self.on_header(label, value)
        return None

    def enter_data_mode(self) -> None:
        if self.version is None:
            raise HeaderError("END OF HEADER before RINEX VERSION / TYPE")
        self.mode = ParserMode.DATA
        self.header_lines_remaining = 0
        if self.decoder is None:
            if self.version == 2:
                self.decoder = Rinex2Decoder(self)
            else:
                self.decoder = Rinex3Decoder(self)
            logging.debug(f"Reading RINEX {self.version} observation records")

    def begin_embedded_header(self, num_lines: int) -> None:
        if num_lines > 0:
            logging.debug(f"Reading {num_lines} header lines embedded in the data")
            self.header_lines_remaining = num_lines
            self.mode = ParserMode.HEADER

    def emit_record(self) -> Any:
        if self.on_observation is not None:
            return self.on_observation(self.record)
        return None


def parse(
    stream: Stream,
    on_header: Optional[HeaderCallback] = None,
    on_observation: Optional[ObservationCallback] = None,
) -> ObsReader:
    """
    Parse a whole observation stream with a new `ObsReader`.

    Returns:
        the reader, for its `version` and `observation_types`
    """
    reader = ObsReader(on_header, on_observation)
    reader.parse(stream)
    return reader
