from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import IntEnum
from typing import List


class EpochFlag(IntEnum):
    OK = 0
    POWER_FAILURE = 1
    ANTENNA_MOVING = 2
    NEW_SITE_OCCUPATION = 3
    HEADER_INFORMATION = 4
    EXTERNAL_EVENT = 5
    CYCLE_SLIP = 6


# flags whose records are followed by satellite data; the others announce
# special events and count embedded header lines instead of satellites
SATELLITE_DATA_FLAGS = (EpochFlag.OK, EpochFlag.POWER_FAILURE, EpochFlag.CYCLE_SLIP)


def carries_satellite_data(epoch_flag: int) -> bool:
    return epoch_flag in SATELLITE_DATA_FLAGS


@dataclass(slots=True)
class Observation:
    # value has three fractional digits of resolution; 0.0 means not observed
    value: float = 0.0
    # loss-of-lock indicator (3-bit mask), 0 when blank
    lli: int = 0
    # signal strength projected onto 1-9, 0 when blank
    ssi: int = 0

    @property
    def is_present(self) -> bool:
        return self.value != 0.0


@dataclass(slots=True)
class SatelliteObservation:
    # system letter followed by two-digit number, e.g. "G12"
    prn: str
    # ordered like the catalog entry for this satellite's system
    observations: List[Observation] = field(default_factory=list)

    @property
    def system(self) -> str:
        return self.prn[0]


@dataclass(slots=True)
class ObservationRecord:
    """
    One epoch of a RINEX observation stream.

    The reader fills a single instance and hands it to the observation
    callback by reference; it is reset and refilled for the next epoch.
    Use `copy()` to keep the contents past the callback.
    """

    year: int = 0
    month: int = 0
    day: int = 0
    hour: int = 0
    minute: int = 0
    # up to seven significant fractional digits
    second: float = 0.0
    epoch_flag: int = EpochFlag.OK
    # receiver clock offset in seconds, 0.0 when not given
    clock_offset: float = 0.0
    satellites: List[SatelliteObservation] = field(default_factory=list)

    def reset(self) -> None:
        # time fields are kept: event records without a timestamp inherit them
        self.epoch_flag = EpochFlag.OK
        self.clock_offset = 0.0
        self.satellites.clear()

    @property
    def has_timestamp(self) -> bool:
        return self.year != 0 and self.month != 0 and self.day != 0

    def time(self) -> datetime:
        """
        Converts the record timestamp to a naive `datetime` in the file's
        time system (GPS time unless the header says otherwise).
        """
        if not self.has_timestamp:
            raise ValueError("Observation record has no timestamp")
        whole_seconds = int(self.second)
        microseconds = round((self.second - whole_seconds) * 1e6)
        return datetime(
            self.year, self.month, self.day, self.hour, self.minute
        ) + timedelta(seconds=whole_seconds, microseconds=microseconds)

    def copy(self) -> "ObservationRecord":
        return ObservationRecord(
            year=self.year,
            month=self.month,
            day=self.day,
            hour=self.hour,
            minute=self.minute,
            second=self.second,
            epoch_flag=self.epoch_flag,
            clock_offset=self.clock_offset,
            satellites=[
                SatelliteObservation(
                    sat.prn,
                    [Observation(obs.value, obs.lli, obs.ssi) for obs in sat.observations],
                )
                for sat in self.satellites
            ],
        )
