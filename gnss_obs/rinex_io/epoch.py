"""
Timestamp and epoch-flag fields shared by RINEX 2 and RINEX 3 epoch lines.
"""

from dataclasses import dataclass
from typing import Optional, Tuple

from gnss_obs.misc.parse_utils import get_column, get_columns, parse_float_field, parse_int_field

from .errors import FieldError, StructuralError
from .records import EpochFlag, ObservationRecord


@dataclass(frozen=True)
class EpochLayout:
    # 0-based [start, end) slices of the epoch line
    blank_column: int  # a space here means the line carries no timestamp
    year: Tuple[int, int]
    month: Tuple[int, int]
    day: Tuple[int, int]
    hour: Tuple[int, int]
    minute: Tuple[int, int]
    second: Tuple[int, int]


# " yy mm dd hh mm ss.sssssss  f nnn"
RINEX2_EPOCH_LAYOUT = EpochLayout(
    blank_column=2,
    year=(1, 3),
    month=(4, 6),
    day=(7, 9),
    hour=(10, 12),
    minute=(13, 15),
    second=(15, 26),
)

# "> yyyy mm dd hh mm ss.sssssss  f nnn"
RINEX3_EPOCH_LAYOUT = EpochLayout(
    blank_column=2,
    year=(2, 6),
    month=(7, 9),
    day=(10, 12),
    hour=(13, 15),
    minute=(16, 18),
    second=(18, 29),
)


def parse_epoch_flag(char: str) -> EpochFlag:
    # a blank flag is read as a nominal epoch
    if char == " ":
        return EpochFlag.OK
    if not ("0" <= char <= "6"):
        raise FieldError(f"invalid epoch flag: {char!r}")
    return EpochFlag(int(char))


def parse_epoch_time(
    line: str, epoch_flag: int, layout: EpochLayout
) -> Optional[Tuple[int, int, int, int, int, float]]:
    """
    Parse the timestamp of an epoch line.

    Returns:
        (year, month, day, hour, minute, second), with the year as written
        (two digits in RINEX 2), or None when the line has no timestamp and
        the epoch flag allows that
    """
    if get_column(line, layout.blank_column, "epoch date") == " ":
        if epoch_flag in (EpochFlag.OK, EpochFlag.POWER_FAILURE):
            raise StructuralError(f"epoch flag {int(epoch_flag)} requires an epoch timestamp")
        return None
    year = parse_int_field(get_columns(line, *layout.year, "epoch year"), "epoch year")
    month = parse_int_field(get_columns(line, *layout.month, "epoch month"), "epoch month")
    day = parse_int_field(get_columns(line, *layout.day, "epoch day"), "epoch day")
    hour = parse_int_field(get_columns(line, *layout.hour, "epoch hour"), "epoch hour")
    minute = parse_int_field(get_columns(line, *layout.minute, "epoch minute"), "epoch minute")
    second = parse_float_field(get_columns(line, *layout.second, "epoch second"), "epoch second")
    return year, month, day, hour, minute, second


def extend_two_digit_year(carried_year: Optional[int], two_digit_year: int) -> int:
    """
    Extend a RINEX 2 two-digit year using the most recent four-digit year.

    Epochs only move forward within a stream, so a two-digit year below the
    carried one means the century rolled over.  Without a carried year (no
    TIME OF FIRST OBS header), the RINEX 2 convention 80-99 -> 19xx,
    00-79 -> 20xx applies.
    """
    if carried_year is None:
        return two_digit_year + (1900 if two_digit_year >= 80 else 2000)
    century = carried_year // 100 * 100
    if two_digit_year < carried_year % 100:
        century += 100
    return century + two_digit_year


def set_record_time(
    record: ObservationRecord, epoch_time: Tuple[int, int, int, int, int, float]
) -> None:
    record.year, record.month, record.day, record.hour, record.minute, record.second = epoch_time
