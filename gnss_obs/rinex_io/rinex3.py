"""
RINEX 3.0x observation records.

An epoch starts with a line beginning with ">", followed by one line per
satellite holding all of that satellite's observations.
"""

from typing import TYPE_CHECKING, Any

from gnss_obs.misc.parse_utils import (
    get_column,
    get_columns,
    get_optional_columns,
    parse_digit,
    parse_float_field,
    parse_int_field,
)

from .epoch import RINEX3_EPOCH_LAYOUT, parse_epoch_flag, parse_epoch_time, set_record_time
from .errors import StructuralError
from .records import Observation, SatelliteObservation, carries_satellite_data

if TYPE_CHECKING:
    from .obs_reader import ObsReader

EPOCH_RECORD_IDENTIFIER = ">"
OBS_FIELD_WIDTH = 16
# within a satellite line: 3-character PRN, then fields of F14.3, LLI, SSI
OBS_VALUE_OFFSET = 3
OBS_LLI_OFFSET = 17
OBS_SSI_OFFSET = 18


class Rinex3Decoder:

    def __init__(self, reader: "ObsReader") -> None:
        self._reader = reader
        # satellite lines still expected for the current epoch
        self._sats_remaining = 0

    @property
    def in_record(self) -> bool:
        return self._sats_remaining > 0

    def decode_line(self, line: str) -> Any:
        if line.startswith(EPOCH_RECORD_IDENTIFIER):
            if self._sats_remaining > 0:
                raise StructuralError(
                    f"Unexpected start of new epoch with {self._sats_remaining} satellites still to read"
                )
            return self._decode_intro(line)

        if self._sats_remaining == 0:
            raise StructuralError("Observations found before epoch header")
        self._decode_satellite(line)
        self._sats_remaining -= 1
        if self._sats_remaining == 0:
            return self._reader.emit_record()
        return None

    def _decode_intro(self, line: str) -> Any:
        reader = self._reader
        record = reader.record
        record.reset()

        epoch_flag = parse_epoch_flag(get_column(line, 31, "epoch flag"))
        record.epoch_flag = epoch_flag
        num_sats = parse_int_field(get_columns(line, 32, 35, "number of satellites"), "number of satellites")

        epoch_time = parse_epoch_time(line, epoch_flag, RINEX3_EPOCH_LAYOUT)
        if epoch_time is not None:
            set_record_time(record, epoch_time)

        if not carries_satellite_data(epoch_flag):
            reader.begin_embedded_header(num_sats)
            return reader.emit_record()

        offset_str = get_optional_columns(line, 41, 56)
        if offset_str.strip():
            record.clock_offset = parse_float_field(offset_str, "receiver clock offset")

        if num_sats == 0:
            return reader.emit_record()
        self._sats_remaining = num_sats
        return None

    def _decode_satellite(self, line: str) -> None:
        catalog = self._reader.observation_types
        prn = get_columns(line, 0, 3, "satellite PRN")
        system_letter = prn[0]
        if system_letter == " " or not catalog.is_declared(system_letter):
            raise StructuralError(f"Unexpected GNSS type {system_letter!r}")

        observations = []
        for i in range(catalog.length(system_letter)):
            start = OBS_FIELD_WIDTH * i
            value_str = get_optional_columns(
                line, start + OBS_VALUE_OFFSET, start + OBS_VALUE_OFFSET + 14
            )
            value = 0.0
            if value_str.strip():
                value = parse_float_field(value_str, "observation value")
            lli_str = get_optional_columns(line, start + OBS_LLI_OFFSET, start + OBS_LLI_OFFSET + 1)
            ssi_str = get_optional_columns(line, start + OBS_SSI_OFFSET, start + OBS_SSI_OFFSET + 1)
            observations.append(
                Observation(
                    value=value,
                    lli=parse_digit(lli_str, "loss of lock indicator"),
                    ssi=parse_digit(ssi_str, "signal strength"),
                )
            )
        self._reader.record.satellites.append(SatelliteObservation(prn, observations))
