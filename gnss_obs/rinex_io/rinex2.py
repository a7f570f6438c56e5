"""
RINEX 2.11 observation records.

An epoch is an EPOCH/SAT (or EVENT FLAG) line, optional PRN continuation
lines when more than 12 satellites are listed, then one or more 80-column
lines of up to five observations for each satellite in PRN-list order.
"""

from enum import Enum
from typing import TYPE_CHECKING, Any, Optional

from gnss_obs.misc.parse_utils import (
    get_column,
    get_columns,
    parse_digit,
    parse_float_field,
    parse_int_field,
)

from .epoch import (
    RINEX2_EPOCH_LAYOUT,
    extend_two_digit_year,
    parse_epoch_flag,
    parse_epoch_time,
    set_record_time,
)
from .errors import StructuralError
from .obs_types import UNIVERSAL_SYSTEM
from .records import Observation, SatelliteObservation, carries_satellite_data

if TYPE_CHECKING:
    from .obs_reader import ObsReader

PRNS_PER_LINE = 12
PRN_COLUMN = 32
OBS_PER_LINE = 5
OBS_FIELD_WIDTH = 16
# a present observation value always has its decimal point here (F14.3)
OBS_DECIMAL_POINT = 10


class LineType(Enum):
    INTRO = "intro"
    PRN_LIST = "prn_list"
    OBSERVATIONS = "observations"


class Rinex2Decoder:

    def __init__(self, reader: "ObsReader") -> None:
        self._reader = reader
        self.line_type = LineType.INTRO
        # "number of satellites" of the current epoch
        self._num_sats = 0
        # satellite whose observations are being read, and its next field
        self._sat_index = 0
        self._obs_index = 0

    @property
    def in_record(self) -> bool:
        return self.line_type is not LineType.INTRO

    def decode_line(self, line: str) -> Any:
        """
        Consume one 80-column data line.

        Returns:
            the observation callback's return value when this line completed
            a record, else None
        """
        if self.line_type is LineType.INTRO:
            stop = self._decode_intro(line)
            if self.line_type is LineType.INTRO:
                return stop
            # the intro line also holds the first PRNs
        if self.line_type is LineType.PRN_LIST:
            return self._decode_prns(line)
        return self._decode_observations(line)

    def _decode_intro(self, line: str) -> Any:
        reader = self._reader
        record = reader.record
        record.reset()

        epoch_flag = parse_epoch_flag(get_column(line, 28, "epoch flag"))
        record.epoch_flag = epoch_flag
        num_sats = parse_int_field(get_columns(line, 29, 32, "number of satellites"), "number of satellites")

        epoch_time = parse_epoch_time(line, epoch_flag, RINEX2_EPOCH_LAYOUT)
        if epoch_time is not None:
            reader.year = extend_two_digit_year(reader.year, epoch_time[0])
            set_record_time(record, (reader.year,) + epoch_time[1:])

        if not carries_satellite_data(epoch_flag):
            # num_sats counts the special records that follow
            reader.begin_embedded_header(num_sats)
            return reader.emit_record()

        if get_column(line, 79, "receiver clock offset") != " ":
            record.clock_offset = parse_float_field(
                get_columns(line, 68, 80, "receiver clock offset"), "receiver clock offset"
            )

        self._num_sats = num_sats
        self.line_type = LineType.PRN_LIST
        return None

    def _decode_prns(self, line: str) -> Any:
        satellites = self._reader.record.satellites
        for i in range(PRNS_PER_LINE):
            if len(satellites) >= self._num_sats:
                break
            start = PRN_COLUMN + 3 * i
            prn = get_columns(line, start, start + 3, "satellite PRN")
            if prn[2] == " ":
                raise StructuralError("PRN list terminated early")
            if prn[0] == " ":
                prn = "G" + prn[1:]
            satellites.append(SatelliteObservation(prn))

        if len(satellites) < self._num_sats:
            # continued on the next line
            return None

        self._sat_index = 0
        self._obs_index = 0
        if self._num_sats == 0:
            self.line_type = LineType.INTRO
            return self._reader.emit_record()
        catalog = self._reader.observation_types
        if not catalog.is_declared(UNIVERSAL_SYSTEM) or catalog.length(UNIVERSAL_SYSTEM) == 0:
            raise StructuralError("observation record before any # / TYPES OF OBSERV")
        self.line_type = LineType.OBSERVATIONS
        return None

    def _decode_observations(self, line: str) -> Any:
        reader = self._reader
        num_obs = reader.observation_types.length(UNIVERSAL_SYSTEM)
        observations = reader.record.satellites[self._sat_index].observations

        for i in range(min(OBS_PER_LINE, num_obs - self._obs_index)):
            entry = get_columns(line, OBS_FIELD_WIDTH * i, OBS_FIELD_WIDTH * (i + 1), "observation")
            value = 0.0
            if entry[OBS_DECIMAL_POINT] == ".":
                value = parse_float_field(entry[0:14], "observation value")
            observations.append(
                Observation(
                    value=value,
                    lli=parse_digit(entry[14], "loss of lock indicator"),
                    ssi=parse_digit(entry[15], "signal strength"),
                )
            )
        self._obs_index += OBS_PER_LINE

        if self._obs_index < num_obs:
            return None

        # done with this satellite
        self._obs_index = 0
        self._sat_index += 1
        if self._sat_index < self._num_sats:
            return None
        self._sat_index = 0
        self.line_type = LineType.INTRO
        return reader.emit_record()
