"""
Header lines that change how the rest of an observation stream is read.

Every header line is passed to the caller's header callback; the labels in
`HEADER_HANDLERS` are additionally interpreted here.
"""

import logging
import math
from typing import TYPE_CHECKING, Callable, Dict, Tuple

from gnss_obs.misc.parse_utils import parse_float_field, parse_int_field

from .errors import HeaderError
from .obs_types import UNIVERSAL_SYSTEM

if TYPE_CHECKING:
    from .obs_reader import ObsReader

LABEL_COLUMN = 60
LABEL_WIDTH = 20

LABEL_RINEX_VERSION_TYPE = "RINEX VERSION / TYPE"
LABEL_END_OF_HEADER = "END OF HEADER"
LABEL_TIME_OF_FIRST_OBS = "TIME OF FIRST OBS"
LABEL_TYPES_OF_OBSERV = "# / TYPES OF OBSERV"
LABEL_SYS_NUM_OBS = "SYS / # / OBS TYPES"
LABEL_INTERVAL = "INTERVAL"
LABEL_WAVELENGTH_FACT = "WAVELENGTH FACT L1/2"
LABEL_COMMENT = "COMMENT"

OBSERVATION_FILE_TYPE = "O"

# codes per line in the two catalog declarations
TYPES_OF_OBSERV_PER_LINE = 9
SYS_OBS_TYPES_PER_LINE = 13
WAVELENGTH_FACT_PRNS_PER_LINE = 7


def split_header_line(line: str) -> Tuple[str, str]:
    """Split a framed 80-column header line into (label, value)."""
    return line[LABEL_COLUMN:LABEL_COLUMN + LABEL_WIDTH], line[:LABEL_COLUMN]


def round_half_away_from_zero(x: float) -> int:
    return int(math.copysign(math.floor(abs(x) + 0.5), x))


def handle_rinex_version(reader: "ObsReader", value: str) -> None:
    version = round_half_away_from_zero(
        parse_float_field(value[0:9], "RINEX version", error=HeaderError)
    )
    if version not in (2, 3):
        raise HeaderError(f"Invalid RINEX version {value[0:9].strip()!r}")
    if value[20] != OBSERVATION_FILE_TYPE:
        raise HeaderError(f"Expected observation file, but got file type {value[20]!r}")
    if reader.decoder is not None and version != reader.version:
        raise HeaderError(
            f"RINEX version changed from {reader.version} to {version} within the stream"
        )
    reader.version = version
    logging.debug(f"RINEX observation stream version {version}")


def handle_end_of_header(reader: "ObsReader", value: str) -> None:
    reader.enter_data_mode()


def handle_time_of_first_obs(reader: "ObsReader", value: str) -> None:
    time_system = value[48:51].strip()
    if time_system:
        reader.time_system = time_system
    if reader.version != 2:
        return
    reader.year = parse_int_field(value[0:6], "TIME OF FIRST OBS year", error=HeaderError)


def handle_types_of_observ(reader: "ObsReader", value: str) -> None:
    if reader.version != 2:
        return
    catalog = reader.observation_types
    if not catalog.is_declared(UNIVERSAL_SYSTEM):
        count = parse_int_field(value[0:6], "number of observation types", error=HeaderError)
        catalog.declare(UNIVERSAL_SYSTEM, count)
    elif catalog.is_complete(UNIVERSAL_SYSTEM):
        # a complete list never changes; this also covers a restated list in an event block
        logging.warning("Ignoring # / TYPES OF OBSERV after the list was complete")
        return
    codes = [value[10 + 6 * i:12 + 6 * i] for i in range(TYPES_OF_OBSERV_PER_LINE)]
    catalog.extend(UNIVERSAL_SYSTEM, codes)


def handle_sys_num_obs_types(reader: "ObsReader", value: str) -> None:
    if reader.version != 3:
        return
    catalog = reader.observation_types
    if reader.ignored_obs_types > 0:
        # continuation of a declaration that was ignored
        reader.ignored_obs_types -= SYS_OBS_TYPES_PER_LINE
        return
    if reader.declaring_system is None:
        system_letter = value[0]
        count = parse_int_field(value[3:6], "number of observation types", error=HeaderError)
        if not catalog.declare(system_letter, count):
            reader.ignored_obs_types = count - SYS_OBS_TYPES_PER_LINE
            return
        reader.declaring_system = system_letter
    system_letter = reader.declaring_system
    codes = [value[7 + 4 * i:10 + 4 * i] for i in range(SYS_OBS_TYPES_PER_LINE)]
    catalog.extend(system_letter, codes)
    if catalog.is_complete(system_letter):
        reader.declaring_system = None


def handle_interval(reader: "ObsReader", value: str) -> None:
    reader.interval = parse_float_field(value[0:10], "INTERVAL", error=HeaderError)


def handle_wavelength_fact(reader: "ObsReader", value: str) -> None:
    if reader.version != 2:
        return
    if reader.pending_wavelength_factors is not None:
        # continuation line: more PRNs for the factors of the previous line
        factors, num_sats = reader.pending_wavelength_factors
    else:
        l1_factor = parse_int_field(value[0:6], "L1 wavelength factor", error=HeaderError)
        l2_factor = parse_int_field(value[6:12], "L2 wavelength factor", default=0, error=HeaderError)
        num_sats = parse_int_field(
            value[12:18], "wavelength factor satellite count", default=0, error=HeaderError
        )
        factors = (l1_factor, l2_factor)
        if num_sats == 0:
            reader.default_wavelength_factors = factors
            return
    n = min(num_sats, WAVELENGTH_FACT_PRNS_PER_LINE)
    for i in range(n):
        prn = value[21 + 6 * i:24 + 6 * i]
        if prn[2] == " ":
            raise HeaderError("WAVELENGTH FACT L1/2 lists fewer satellites than declared")
        if prn[0] == " ":
            prn = "G" + prn[1:]
        reader.wavelength_factors[prn] = factors
    if num_sats > n:
        reader.pending_wavelength_factors = (factors, num_sats - n)
    else:
        reader.pending_wavelength_factors = None


HEADER_HANDLERS: Dict[str, Callable[["ObsReader", str], None]] = {
    label.ljust(LABEL_WIDTH): handler
    for label, handler in [
        (LABEL_RINEX_VERSION_TYPE, handle_rinex_version),
        (LABEL_END_OF_HEADER, handle_end_of_header),
        (LABEL_TIME_OF_FIRST_OBS, handle_time_of_first_obs),
        (LABEL_TYPES_OF_OBSERV, handle_types_of_observ),
        (LABEL_SYS_NUM_OBS, handle_sys_num_obs_types),
        (LABEL_INTERVAL, handle_interval),
        (LABEL_WAVELENGTH_FACT, handle_wavelength_fact),
    ]
}
